import base64

import pytest

from hostprep.privilege.errors import (
    AuthenticationRejectedError,
    FallbackUnavailableError,
    PasswordMissingError,
    PermissionDeniedError,
    ToolUnrecoverableError,
    UnclassifiedElevationError,
)
from hostprep.privilege.resolver import (
    ENSURE_SUDO_SCRIPT,
    SUDO_CHECK,
    ElevationMethod,
    ProbeOutcome,
    classify_sudo_probe,
    install_sudo_command,
    privileged_command,
    resolve_elevation,
)

SUDO = ElevationMethod.SUDO
SU = ElevationMethod.SU

SUDO_PROBE = privileged_command(SUDO, "true")
SU_PROBE = privileged_command(SU, "true")
SUDO_INSTALL_VIA_SUDO = privileged_command(SUDO, install_sudo_command())
SUDO_INSTALL_VIA_SU = privileged_command(SU, install_sudo_command())

# ----------------- Fakes -----------------

class FakeRunner:
    """Scripted responses per exact command; each entry is consumed in order, the last one sticks."""

    def __init__(self, responses=None):
        self.responses = {k: list(v) for k, v in (responses or {}).items()}
        self.calls = []

    def run(self, cmd, *, stdin=None):
        self.calls.append((cmd, stdin))
        queue = self.responses.get(cmd)
        if not queue:
            return 0, "", ""
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def commands(self):
        return [c for c, _ in self.calls]


# ----------------- Command shapes -----------------

def test_privileged_command_forms_quote_the_command():
    assert privileged_command(SUDO, "true") == "sudo -S -p '' -k bash -c 'true'"
    assert privileged_command(SU, "echo 'hi'") == "su - root -c 'echo '\"'\"'hi'\"'\"''"


def test_install_command_ships_script_base64():
    cmd = install_sudo_command()
    assert cmd.startswith("printf %s '") and cmd.endswith("' | base64 -d | bash")
    encoded = cmd[len("printf %s '"):-len("' | base64 -d | bash")]
    assert base64.b64decode(encoded).decode() == ENSURE_SUDO_SCRIPT


@pytest.mark.parametrize(
    "rc, stderr, outcome",
    [
        (0, "", ProbeOutcome.OK),
        (1, "bash: sudo: command not found", ProbeOutcome.TOOL_MISSING),
        (127, "sh: 1: sudo: not found", ProbeOutcome.TOOL_MISSING),
        (1, "deploy is not in the sudoers file.  This incident will be reported.", ProbeOutcome.UNAUTHORIZED),
        (1, "Sorry, user deploy may not run sudo on host.", ProbeOutcome.UNAUTHORIZED),
        (1, "Sorry, try again.\nsudo: 1 incorrect password attempt", ProbeOutcome.AUTH_FAILED),
        (1, "segfault", ProbeOutcome.OTHER),
    ],
)
def test_probe_classification(rc, stderr, outcome):
    assert classify_sudo_probe(rc, stderr) is outcome


# ----------------- Resolution -----------------

def test_empty_password_is_rejected_before_any_command():
    r = FakeRunner()
    with pytest.raises(PasswordMissingError):
        resolve_elevation(r, "")
    assert r.calls == []


def test_happy_path_resolves_sudo_and_password_only_on_stdin():
    r = FakeRunner()
    session = resolve_elevation(r, "s3cret")

    assert session.method is SUDO
    assert r.commands() == [SUDO_PROBE, privileged_command(SUDO, SUDO_CHECK)]
    assert all(stdin == "s3cret\n" for _, stdin in r.calls)
    assert not any("s3cret" in cmd for cmd in r.commands())
    assert "s3cret" not in repr(session)


def test_second_resolve_on_configured_host_never_reinstalls():
    r = FakeRunner()
    resolve_elevation(r, "pw")
    resolve_elevation(r, "pw")
    assert SUDO_INSTALL_VIA_SUDO not in r.commands()
    assert SUDO_INSTALL_VIA_SU not in r.commands()


def test_sudo_present_but_check_fails_installs_via_sudo():
    r = FakeRunner({privileged_command(SUDO, SUDO_CHECK): [(1, "", "")]})
    session = resolve_elevation(r, "pw")
    assert session.method is SUDO
    assert r.commands()[-1] == SUDO_INSTALL_VIA_SUDO


def test_auth_failure_short_circuits_without_su():
    r = FakeRunner({SUDO_PROBE: [(1, "", "Sorry, try again.\nsudo: 3 incorrect password attempts")]})
    with pytest.raises(AuthenticationRejectedError) as ei:
        resolve_elevation(r, "bad")
    assert ei.value.method == "sudo"
    assert SU_PROBE not in r.commands()
    assert r.commands() == [SUDO_PROBE]


def test_unauthorized_falls_back_to_su_and_ensures_sudo_via_su():
    r = FakeRunner(
        {
            SUDO_PROBE: [(1, "", "deploy is not in the sudoers file.  This incident will be reported.")],
            privileged_command(SU, SUDO_CHECK): [(1, "", "")],
        }
    )
    session = resolve_elevation(r, "pw")

    assert session.method is SU
    cmds = r.commands()
    assert cmds[:2] == [SUDO_PROBE, SU_PROBE]
    assert SUDO_INSTALL_VIA_SU in cmds
    assert cmds.count(SUDO_PROBE) == 2


def test_unauthorized_then_sudo_works_upgrades_to_sudo():
    r = FakeRunner(
        {SUDO_PROBE: [(1, "", "user may not run sudo on host"), (0, "", "")]}
    )
    session = resolve_elevation(r, "pw")
    assert session.method is SUDO
    assert SU_PROBE in r.commands()


def test_missing_sudo_installed_via_su_then_upgrades():
    r = FakeRunner(
        {
            SUDO_PROBE: [(127, "", "bash: sudo: command not found"), (0, "", "")],
            privileged_command(SU, SUDO_CHECK): [(1, "", "")],
        }
    )
    session = resolve_elevation(r, "pw")
    assert session.method is SUDO
    cmds = r.commands()
    assert cmds.index(SUDO_INSTALL_VIA_SU) < len(cmds) - 1
    assert cmds[-1] == SUDO_PROBE


def test_su_auth_failure_is_terminal():
    r = FakeRunner(
        {
            SUDO_PROBE: [(127, "", "sudo: command not found")],
            SU_PROBE: [(1, "", "su: Authentication failure")],
        }
    )
    with pytest.raises(AuthenticationRejectedError) as ei:
        resolve_elevation(r, "pw")
    assert ei.value.method == "su"


def test_unauthorized_and_su_unavailable_is_permission_denied():
    r = FakeRunner(
        {
            SUDO_PROBE: [(1, "", "deploy is not in the sudoers file")],
            SU_PROBE: [(1, "", "su: must be run from a terminal")],
        }
    )
    with pytest.raises(PermissionDeniedError) as ei:
        resolve_elevation(r, "pw")
    assert isinstance(ei.value.__cause__, FallbackUnavailableError)


def test_missing_sudo_and_su_unavailable_is_fallback_unavailable():
    r = FakeRunner(
        {
            SUDO_PROBE: [(127, "", "sudo: command not found")],
            SU_PROBE: [(1, "", "su: must be run from a terminal")],
        }
    )
    with pytest.raises(FallbackUnavailableError):
        resolve_elevation(r, "pw")


def test_install_failure_is_tool_unrecoverable():
    r = FakeRunner(
        {
            SUDO_PROBE: [(127, "", "sudo: command not found")],
            privileged_command(SU, SUDO_CHECK): [(1, "", "")],
            SUDO_INSTALL_VIA_SU: [(1, "", "unable to install sudo: no supported package manager found")],
        }
    )
    with pytest.raises(ToolUnrecoverableError) as ei:
        resolve_elevation(r, "pw")
    assert "no supported package manager" in str(ei.value)


def test_unknown_sudo_failure_carries_stderr():
    r = FakeRunner({SUDO_PROBE: [(1, "", "sudo: unable to resolve host")]})
    with pytest.raises(UnclassifiedElevationError) as ei:
        resolve_elevation(r, "pw")
    assert ei.value.stderr == "sudo: unable to resolve host"
    assert SU_PROBE not in r.commands()


def test_session_reuses_method_and_credential():
    r = FakeRunner({SUDO_PROBE: [(1, "", "is not in the sudoers file"), (1, "", "is not in the sudoers file")]})
    session = resolve_elevation(r, "pw")
    r.calls.clear()

    session.run("id -u")
    session.run("whoami")

    assert r.calls == [
        (privileged_command(SU, "id -u"), "pw\n"),
        (privileged_command(SU, "whoami"), "pw\n"),
    ]
