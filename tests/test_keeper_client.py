import subprocess

import pytest

from clickward.core.errors import KeeperQueryError, UnexpectedResponseError
from clickward.keeper import client as client_module
from clickward.keeper.client import CONFIG_QUERY, KeeperClient, parse_keeper_config


def test_parse_keeper_config_two_servers():
    output = "server.1=127.0.0.1:20001;role=leader\nserver.2=127.0.0.1:20002;role=follower\n"

    assert parse_keeper_config(output) == {1: "127.0.0.1:20001", 2: "127.0.0.1:20002"}


def test_parse_keeper_config_ipv6_host():
    output = "server.3=::1:21003;participant;1\n"

    assert parse_keeper_config(output) == {3: "::1:21003"}


def test_parse_keeper_config_without_role_suffix():
    assert parse_keeper_config("server.5=localhost:21005") == {5: "localhost:21005"}


def test_parse_keeper_config_empty_output():
    assert parse_keeper_config("\n") == {}


@pytest.mark.parametrize(
    "output",
    [
        "garbage\n",
        "server.1=127.0.0.1:20001\nnonsense\n",
        "server.x=127.0.0.1:20001\n",
        "server.0=127.0.0.1:20001\n",
        "server.1=127.0.0.1\n",
    ],
)
def test_parse_keeper_config_rejects_unexpected_lines(output):
    with pytest.raises(UnexpectedResponseError):
        parse_keeper_config(output)


def test_client_builds_keeper_client_command():
    seen = []

    def runner(command):
        seen.append(command)
        return "server.1=::1:21001;participant;1\n"

    client = KeeperClient("::1", 20001, clickhouse_binary="/usr/bin/clickhouse", runner=runner)

    assert client.config() == {1: "::1:21001"}
    assert seen == [
        ["/usr/bin/clickhouse", "keeper-client", "--host", "::1", "--port", "20001", "--query", CONFIG_QUERY]
    ]


def test_client_propagates_parse_errors():
    client = KeeperClient("::1", 20001, runner=lambda command: "Connection refused\n")

    with pytest.raises(UnexpectedResponseError, match="Connection refused"):
        client.config()


def test_run_keeper_client_non_zero_exit(monkeypatch):
    def fake_run(command, **kwargs):
        return subprocess.CompletedProcess(command, 1, stdout="")

    monkeypatch.setattr(client_module.subprocess, "run", fake_run)

    with pytest.raises(KeeperQueryError, match="status 1"):
        KeeperClient("::1", 20001).query(CONFIG_QUERY)


def test_run_keeper_client_missing_binary(monkeypatch):
    def fake_run(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(client_module.subprocess, "run", fake_run)

    with pytest.raises(KeeperQueryError):
        KeeperClient("::1", 20001, clickhouse_binary="missing-clickhouse").config()


def test_run_keeper_client_returns_stdout(monkeypatch):
    def fake_run(command, **kwargs):
        assert kwargs["text"] is True
        return subprocess.CompletedProcess(command, 0, stdout="server.1=::1:21001\n")

    monkeypatch.setattr(client_module.subprocess, "run", fake_run)

    assert KeeperClient("::1", 20001).config() == {1: "::1:21001"}
