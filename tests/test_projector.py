from clickward.core.context import DeploymentConfig
from clickward.core.models import ClickwardSettings, NodeKind, Topology
from clickward.render.projector import ConfigProjector, config_schema


def test_keeper_config_lists_every_live_keeper_as_raft_peer(deployment_config):
    topology = Topology.new({1, 2, 4}, {1})
    projector = ConfigProjector(deployment_config)

    config = projector.keeper_config(2, topology)

    assert config.server_id == 2
    assert config.tcp_port == 20002
    assert [(s.id, s.port) for s in config.raft_servers] == [(1, 21001), (2, 21002), (4, 21004)]
    assert config.log_storage_path == deployment_config.path / "keeper-2" / "coordination" / "log"


def test_render_keeper_xml(deployment_config):
    topology = Topology.new({1, 2}, {1})
    xml = ConfigProjector(deployment_config).render(NodeKind.KEEPER, 1, topology)

    assert xml.startswith("<clickhouse>")
    assert "<server_id>1</server_id>" in xml
    assert "<tcp_port>20001</tcp_port>" in xml
    assert "<port>21002</port>" in xml
    assert xml.count("<server>") == 2
    assert "<level>trace</level>" in xml
    assert "{%" not in xml


def test_replica_config_includes_all_replicas_and_keepers(deployment_config):
    topology = Topology.new({1, 3}, {1, 2})
    projector = ConfigProjector(deployment_config)

    config = projector.replica_config(2, topology)

    assert config.macros.replica == 2
    assert config.macros.cluster == "test_cluster"
    assert [r.port for r in config.remote_servers.replicas] == [22001, 22002]
    assert [(n.host, n.port) for n in config.keepers.nodes] == [("[::1]", 20001), ("[::1]", 20003)]
    assert config.http_port == 23002
    assert config.interserver_http_port == 24002


def test_render_replica_xml(tmp_path):
    config = DeploymentConfig(
        path=tmp_path,
        settings=ClickwardSettings(cluster_name="analytics", secret="s3cret"),
    )
    xml = ConfigProjector(config).render(NodeKind.SERVER, 1, Topology.new({1, 2, 3}, {1, 2}))

    assert "<analytics>" in xml
    assert "</analytics>" in xml
    assert "<secret>s3cret</secret>" in xml
    assert xml.count("<host>::1</host>") == 2
    assert xml.count("<host>[::1]</host>") == 3
    assert xml.count("<node>") == 3
    assert "<display_name>analytics-1</display_name>" in xml
    assert f"<path>{tmp_path / 'clickhouse-1' / 'data'}</path>" in xml


def test_write_creates_directory_and_file(deployment_config):
    topology = Topology.generate(1, 1)
    projector = ConfigProjector(deployment_config)

    path = projector.write(NodeKind.KEEPER, 1, topology)

    assert path == deployment_config.path / "keeper-1" / "keeper-config.xml"
    assert path.read_text() == projector.render(NodeKind.KEEPER, 1, topology)
    assert (deployment_config.path / "keeper-1" / "logs").is_dir()


def test_config_schema_per_kind():
    keeper_schema = config_schema(NodeKind.KEEPER)
    replica_schema = config_schema(NodeKind.SERVER)

    assert "raft_servers" in keeper_schema["properties"]
    assert "remote_servers" in replica_schema["properties"]
