import pytest

from hostprep.utils.commands import CommandError
from hostprep.utils.pkg_installer import PackageValidationError, ensure_package, install_script


class FakeRunner:
    def __init__(self, check_rc=1, install_rc=0):
        self.check_rc = check_rc
        self.install_rc = install_rc
        self.calls = []

    def run(self, cmd):
        self.calls.append(cmd)
        if cmd.startswith("command -v"):
            return self.check_rc, "", ""
        return self.install_rc, "", "E: Unable to locate package" if self.install_rc else ""


def test_skips_when_check_passes():
    r = FakeRunner(check_rc=0)
    res = ensure_package(r, "python3")
    assert res.skipped and not res.installed
    assert r.calls == ["command -v 'python3' >/dev/null 2>&1"]


def test_installs_when_check_fails():
    r = FakeRunner(check_rc=1)
    res = ensure_package(r, "python3", check_cmd="command -v python3 >/dev/null 2>&1")
    assert res.installed and not res.skipped
    assert r.calls[0] == "command -v python3 >/dev/null 2>&1"
    assert r.calls[1] == install_script("python3")


def test_force_skips_the_check():
    r = FakeRunner(check_rc=0)
    ensure_package(r, "htop", force=True)
    assert len(r.calls) == 1
    assert "apt-get install -y 'htop'" in r.calls[0]


def test_install_failure_raises_command_error():
    r = FakeRunner(check_rc=1, install_rc=100)
    try:
        ensure_package(r, "nope")
        assert False, "expected CommandError"
    except CommandError as e:
        assert e.step == "install"
        assert e.rc == 100
        assert "Unable to locate package" in str(e)


def test_script_covers_all_package_managers():
    script = install_script("python3")
    for pm in ("apt-get", "yum", "dnf", "zypper --non-interactive"):
        assert pm in script
    assert "no supported package manager found" in script


@pytest.mark.parametrize("name, check", [("", None), ("  ", None), ("git", "   ")])
def test_validation(name, check):
    with pytest.raises(PackageValidationError):
        ensure_package(FakeRunner(), name, check_cmd=check)
