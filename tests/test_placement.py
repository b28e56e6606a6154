from pathlib import Path

import pytest

from clickward.core.errors import InvalidPlacementError
from clickward.core.models import BasePorts, NodeKind
from clickward.core.placement import format_address, format_host, node_dir_name, place_node


def test_keeper_placement_paths_and_ports():
    placement = place_node(NodeKind.KEEPER, 3, Path("/d"), BasePorts())

    assert placement.directory == Path("/d/keeper-3")
    assert placement.config_path == Path("/d/keeper-3/keeper-config.xml")
    assert placement.pid_path == Path("/d/keeper-3/keeper.pid")
    assert placement.log_path == Path("/d/keeper-3/logs/clickhouse-keeper.log")
    assert placement.log_storage_path == Path("/d/keeper-3/coordination/log")
    assert placement.snapshot_storage_path == Path("/d/keeper-3/coordination/snapshots")
    assert placement.tcp_port == 20003
    assert placement.raft_port == 21003
    assert placement.http_port is None


def test_server_placement_paths_and_ports():
    placement = place_node(NodeKind.SERVER, 2, Path("/d"), BasePorts())

    assert placement.directory == Path("/d/clickhouse-2")
    assert placement.config_path == Path("/d/clickhouse-2/clickhouse-config.xml")
    assert placement.pid_path == Path("/d/clickhouse-2/clickhouse.pid")
    assert placement.data_path == Path("/d/clickhouse-2/data")
    assert placement.tcp_port == 22002
    assert placement.http_port == 23002
    assert placement.interserver_http_port == 24002
    assert placement.raft_port is None


def test_placement_is_deterministic_and_independent_of_call_order():
    ports = BasePorts(keeper=30000, raft=31000)
    later = [place_node(NodeKind.KEEPER, i, Path("/d"), ports) for i in (5, 1, 9)]
    again = [place_node(NodeKind.KEEPER, i, Path("/d"), ports) for i in (9, 5, 1)]

    assert later[0] == again[1]
    assert later[1] == again[2]
    assert later[2] == again[0]
    assert later[0].tcp_port == 30005


def test_placement_rejects_port_overflow():
    with pytest.raises(InvalidPlacementError, match="exceeds"):
        place_node(NodeKind.KEEPER, 100, Path("/d"), BasePorts(keeper=65500))


def test_placement_rejects_non_positive_id():
    with pytest.raises(ValueError):
        place_node(NodeKind.SERVER, 0, Path("/d"), BasePorts())


def test_node_dir_name():
    assert node_dir_name(NodeKind.KEEPER, 7) == "keeper-7"
    assert node_dir_name(NodeKind.SERVER, 7) == "clickhouse-7"


def test_format_address_brackets_ipv6():
    assert format_address("::1", 20001) == "[::1]:20001"
    assert format_address("127.0.0.1", 20001) == "127.0.0.1:20001"


def test_deployment_config_addresses(deployment_config):
    assert deployment_config.keeper_address(2) == "[::1]:20002"
    assert deployment_config.http_address(4) == "[::1]:23004"


def test_format_host_brackets_only_unbracketed_ipv6():
    assert format_host("::1") == "[::1]"
    assert format_host("[::1]") == "[::1]"
    assert format_host("localhost") == "localhost"
