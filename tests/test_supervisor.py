import os
import signal

import pytest

from clickward.core.errors import NotRunningError, SpawnFailedError
from clickward.core.models import NodeKind
from clickward.runtime import supervisor as supervisor_module
from clickward.runtime.supervisor import (
    NodeState,
    ProcessSupervisor,
    is_process_alive,
    read_pid_file,
    write_pid_file,
)


class FakePopen:
    calls = []

    def __init__(self, args, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.pid = 4242
        self.killed = False
        FakePopen.calls.append(self)

    def kill(self):
        self.killed = True


@pytest.fixture
def fake_popen(monkeypatch):
    FakePopen.calls = []
    monkeypatch.setattr(supervisor_module.subprocess, "Popen", FakePopen)
    return FakePopen


def test_start_spawns_binary_and_records_pid(deployment_config, fake_popen):
    supervisor = ProcessSupervisor(deployment_config)

    handle = supervisor.start(NodeKind.KEEPER, 2)

    placement = deployment_config.placement(NodeKind.KEEPER, 2)
    assert handle.pid == 4242
    assert handle.pid_path == placement.pid_path
    assert placement.pid_path.read_text() == "4242\n"

    call = fake_popen.calls[0]
    assert call.args == ["clickhouse", "keeper", "-C", str(placement.config_path)]
    assert call.kwargs["start_new_session"] is True


def test_start_server_uses_server_subcommand(deployment_config, fake_popen):
    ProcessSupervisor(deployment_config).start(NodeKind.SERVER, 1)

    assert fake_popen.calls[0].args[1] == "server"


def test_start_failure_raises_spawn_failed(deployment_config, monkeypatch):
    def broken_popen(*args, **kwargs):
        raise FileNotFoundError("No such file or directory: 'clickhouse'")

    monkeypatch.setattr(supervisor_module.subprocess, "Popen", broken_popen)

    with pytest.raises(SpawnFailedError) as excinfo:
        ProcessSupervisor(deployment_config).start(NodeKind.KEEPER, 1)

    assert excinfo.value.node_id == 1
    assert not deployment_config.placement(NodeKind.KEEPER, 1).pid_path.exists()


def test_stop_keeper_kills_pid_and_removes_marker(deployment_config, monkeypatch):
    placement = deployment_config.placement(NodeKind.KEEPER, 1)
    write_pid_file(placement.pid_path, 4242)
    killed = []
    monkeypatch.setattr(supervisor_module.os, "kill", lambda pid, sig: killed.append((pid, sig)))

    targets = ProcessSupervisor(deployment_config).stop(NodeKind.KEEPER, 1)

    assert targets == [4242]
    assert killed == [(4242, signal.SIGKILL)]
    assert not placement.pid_path.exists()


def test_stop_server_kills_watchdog_and_children(deployment_config, monkeypatch):
    placement = deployment_config.placement(NodeKind.SERVER, 3)
    write_pid_file(placement.pid_path, 4242)
    killed = []
    monkeypatch.setattr(supervisor_module.os, "kill", lambda pid, sig: killed.append(pid))

    class FakeChild:
        pid = 4243

    class FakeProcess:
        def __init__(self, pid):
            assert pid == 4242

        def children(self):
            return [FakeChild()]

    monkeypatch.setattr(supervisor_module.psutil, "Process", FakeProcess)

    targets = ProcessSupervisor(deployment_config).stop(NodeKind.SERVER, 3)

    assert targets == [4242, 4243]
    assert killed == [4242, 4243]


def test_stop_tolerates_already_exited_process(deployment_config, monkeypatch):
    placement = deployment_config.placement(NodeKind.KEEPER, 1)
    write_pid_file(placement.pid_path, 4242)

    def gone(pid, sig):
        raise ProcessLookupError(pid)

    monkeypatch.setattr(supervisor_module.os, "kill", gone)

    assert ProcessSupervisor(deployment_config).stop(NodeKind.KEEPER, 1) == [4242]
    assert not placement.pid_path.exists()


def test_stop_without_pid_file_raises_not_running(deployment_config):
    with pytest.raises(NotRunningError):
        ProcessSupervisor(deployment_config).stop(NodeKind.KEEPER, 1)


def test_probe_absent(deployment_config):
    result = ProcessSupervisor(deployment_config).probe(NodeKind.KEEPER, 1)

    assert result.state == NodeState.ABSENT
    assert result.pid is None


def test_probe_running(deployment_config):
    write_pid_file(deployment_config.placement(NodeKind.SERVER, 1).pid_path, os.getpid())

    result = ProcessSupervisor(deployment_config).probe(NodeKind.SERVER, 1)

    assert result.state == NodeState.RUNNING
    assert result.pid == os.getpid()


def test_probe_stale(deployment_config, monkeypatch):
    write_pid_file(deployment_config.placement(NodeKind.KEEPER, 2).pid_path, 999999)
    monkeypatch.setattr(supervisor_module, "is_process_alive", lambda pid: False)

    result = ProcessSupervisor(deployment_config).probe(NodeKind.KEEPER, 2)

    assert result.state == NodeState.STALE
    assert "not alive" in result.reason


def test_probe_invalid_pid_file(deployment_config):
    pid_path = deployment_config.placement(NodeKind.KEEPER, 1).pid_path
    pid_path.parent.mkdir(parents=True)
    pid_path.write_text("not-a-pid")

    result = ProcessSupervisor(deployment_config).probe(NodeKind.KEEPER, 1)

    assert result.state == NodeState.STALE
    assert "Invalid pid file" in result.reason


def test_pid_file_round_trip(tmp_path):
    path = write_pid_file(tmp_path / "nested" / "node.pid", 77)

    assert read_pid_file(path) == 77


def test_is_process_alive():
    assert is_process_alive(os.getpid()) is True
    assert is_process_alive(0) is False


def test_start_kills_process_when_pid_file_cannot_be_written(deployment_config, fake_popen, monkeypatch):
    def read_only(pid_path, pid):
        raise PermissionError(f"Permission denied: '{pid_path}'")

    monkeypatch.setattr(supervisor_module, "write_pid_file", read_only)

    with pytest.raises(SpawnFailedError, match="pid file"):
        ProcessSupervisor(deployment_config).start(NodeKind.KEEPER, 1)

    assert fake_popen.calls[0].killed is True


def test_stop_server_when_children_cannot_be_listed(deployment_config, monkeypatch):
    placement = deployment_config.placement(NodeKind.SERVER, 1)
    write_pid_file(placement.pid_path, 4242)
    killed = []
    monkeypatch.setattr(supervisor_module.os, "kill", lambda pid, sig: killed.append(pid))

    class DeniedProcess:
        def __init__(self, pid):
            self.pid = pid

        def children(self):
            raise supervisor_module.psutil.AccessDenied(pid=self.pid)

    monkeypatch.setattr(supervisor_module.psutil, "Process", DeniedProcess)

    assert ProcessSupervisor(deployment_config).stop(NodeKind.SERVER, 1) == [4242]
    assert killed == [4242]
    assert not placement.pid_path.exists()
