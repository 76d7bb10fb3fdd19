import paramiko
import pytest

from hostprep.pipeline.errors import InputRequestError
from hostprep.pipeline.store import Store, input_key, set_input
from hostprep.steps.ssh_connect import (
    AUTH_METHOD,
    SSH_CLIENT,
    SSH_PASSWORD,
    STEP_ID,
    TARGET_HOST,
    TARGET_USER,
    SSHConnectStep,
)
from hostprep.utils.execution import ExecutionContext
from hostprep.utils.ssh import SSHAuthenticationError

# ----------------- Fakes -----------------

class FakeSSHClient(paramiko.SSHClient):
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeConnector:
    def __init__(self, fail=None):
        self.calls = []
        self.fail = fail
        self.clients = []

    def __call__(self, host, username, **kw):
        self.calls.append((host, username, kw))
        if self.fail is not None:
            err, self.fail = self.fail, None
            raise err
        client = FakeSSHClient()
        self.clients.append(client)
        return client


def _answers(store, **values):
    for k, v in values.items():
        set_input(store, STEP_ID, k, v)


def _run(step, store):
    step.run(store, ExecutionContext())


# ----------------- Tests -----------------

def test_requests_host_first():
    step = SSHConnectStep(connect=FakeConnector())
    with pytest.raises(InputRequestError) as ei:
        _run(step, Store())
    assert ei.value.step_id == STEP_ID
    assert ei.value.input.id == "host"


def test_password_login_publishes_artifacts():
    conn = FakeConnector()
    store = Store()
    _answers(store, host=" 10.0.0.5 ", username="deploy", auth_method="password", password="pw")

    _run(SSHConnectStep(connect=conn), store)

    assert conn.calls == [("10.0.0.5", "deploy", {"port": 22, "password": "pw", "key_path": None})]
    assert SSH_CLIENT.get(store) is conn.clients[0]
    assert SSH_PASSWORD.get(store) == "pw"
    assert TARGET_HOST.get(store) == "10.0.0.5"
    assert TARGET_USER.get(store) == "deploy"
    assert AUTH_METHOD.get(store) == "password"


def test_key_login_needs_key_path_and_stores_no_password():
    conn = FakeConnector()
    store = Store()
    _answers(store, host="h", username="u", auth_method="private_key", port="2222")

    step = SSHConnectStep(connect=conn)
    with pytest.raises(InputRequestError) as ei:
        _run(step, store)
    assert ei.value.input.id == "key_path"

    _answers(store, key_path="~/.ssh/id_ed25519")
    _run(step, store)
    assert conn.calls[0][2] == {"port": 2222, "password": None, "key_path": "~/.ssh/id_ed25519"}
    assert SSH_PASSWORD.get(store) is None


def test_bad_port_is_re_requested():
    store = Store()
    _answers(store, host="h", username="u", auth_method="password", password="pw", port="ssh")
    with pytest.raises(InputRequestError) as ei:
        _run(SSHConnectStep(connect=FakeConnector()), store)
    assert ei.value.input.id == "port"
    assert "positive integer" in ei.value.reason


def test_unknown_auth_method_is_re_requested():
    store = Store()
    _answers(store, host="h", username="u", auth_method="kerberos")
    with pytest.raises(InputRequestError) as ei:
        _run(SSHConnectStep(connect=FakeConnector()), store)
    assert ei.value.input.id == "auth_method"


def test_rejected_password_is_cleared_and_asked_again():
    conn = FakeConnector(fail=SSHAuthenticationError("u", Exception("denied")))
    store = Store()
    _answers(store, host="h", username="u", auth_method="password", password="wrong")

    with pytest.raises(InputRequestError) as ei:
        _run(SSHConnectStep(connect=conn), store)

    assert ei.value.input.id == "password"
    assert ei.value.input.secret
    assert input_key(STEP_ID, "password") not in store
    assert SSH_CLIENT.get(store) is None


def test_key_auth_failure_propagates():
    conn = FakeConnector(fail=SSHAuthenticationError("u", Exception("denied")))
    store = Store()
    _answers(store, host="h", username="u", auth_method="private_key", key_path="/k")
    with pytest.raises(SSHAuthenticationError):
        _run(SSHConnectStep(connect=conn), store)


def test_rerun_closes_previous_client():
    conn = FakeConnector()
    store = Store()
    _answers(store, host="h", username="u", auth_method="password", password="pw")
    step = SSHConnectStep(connect=conn)
    _run(step, store)
    _run(step, store)
    assert conn.clients[0].closed
    assert SSH_CLIENT.get(store) is conn.clients[1]
