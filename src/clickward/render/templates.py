LOGGER_TEMPLATE = """\
    <logger>
        <level>{{ logger.level }}</level>
        <log>{{ logger.log }}</log>
        <errorlog>{{ logger.errorlog }}</errorlog>
        <size>{{ logger.size }}</size>
        <count>{{ logger.count }}</count>
    </logger>
"""

KEEPER_TEMPLATE = """\
<clickhouse>
{% include "logger" %}
    <listen_host>{{ config.listen_host }}</listen_host>
    <keeper_server>
        <enable_reconfiguration>false</enable_reconfiguration>
        <tcp_port>{{ config.tcp_port }}</tcp_port>
        <server_id>{{ config.server_id }}</server_id>
        <log_storage_path>{{ config.log_storage_path }}</log_storage_path>
        <snapshot_storage_path>{{ config.snapshot_storage_path }}</snapshot_storage_path>
        <coordination_settings>
            <operation_timeout_ms>{{ config.coordination_settings.operation_timeout_ms }}</operation_timeout_ms>
            <session_timeout_ms>{{ config.coordination_settings.session_timeout_ms }}</session_timeout_ms>
            <raft_logs_level>{{ config.coordination_settings.raft_logs_level }}</raft_logs_level>
        </coordination_settings>
        <raft_configuration>
{% for server in config.raft_servers %}
            <server>
                <id>{{ server.id }}</id>
                <hostname>{{ server.hostname }}</hostname>
                <port>{{ server.port }}</port>
            </server>
{% endfor %}
        </raft_configuration>
    </keeper_server>
</clickhouse>
"""

REPLICA_TEMPLATE = """\
<clickhouse>
{% include "logger" %}
    <path>{{ config.data_path }}</path>

    <profiles>
        <default>
            <load_balancing>random</load_balancing>
        </default>
    </profiles>

    <users>
        <default>
            <password></password>
            <networks>
                <ip>::/0</ip>
            </networks>
            <profile>default</profile>
            <quota>default</quota>
        </default>
    </users>

    <quotas>
        <default>
            <interval>
                <duration>3600</duration>
                <queries>0</queries>
                <errors>0</errors>
                <result_rows>0</result_rows>
                <read_rows>0</read_rows>
                <execution_time>0</execution_time>
            </interval>
        </default>
    </quotas>

    <user_files_path>{{ config.data_path }}/user_files</user_files_path>
    <default_profile>default</default_profile>
    <format_schema_path>{{ config.data_path }}/format_schemas</format_schema_path>
    <display_name>{{ config.macros.cluster }}-{{ config.macros.replica }}</display_name>
    <listen_host>{{ config.listen_host }}</listen_host>
    <http_port>{{ config.http_port }}</http_port>
    <tcp_port>{{ config.tcp_port }}</tcp_port>
    <interserver_http_port>{{ config.interserver_http_port }}</interserver_http_port>
    <interserver_http_host>{{ config.listen_host }}</interserver_http_host>
    <distributed_ddl>
        <task_max_lifetime>604800</task_max_lifetime>
        <cleanup_delay_period>60</cleanup_delay_period>
        <max_tasks_in_queue>1000</max_tasks_in_queue>
    </distributed_ddl>

    <macros>
        <shard>{{ config.macros.shard }}</shard>
        <replica>{{ config.macros.replica }}</replica>
        <cluster>{{ config.macros.cluster }}</cluster>
    </macros>

    <remote_servers replace="true">
        <{{ config.remote_servers.cluster }}>
            <secret>{{ config.remote_servers.secret }}</secret>
            <shard>
                <internal_replication>true</internal_replication>
{% for replica in config.remote_servers.replicas %}
                <replica>
                    <host>{{ replica.host }}</host>
                    <port>{{ replica.port }}</port>
                </replica>
{% endfor %}
            </shard>
        </{{ config.remote_servers.cluster }}>
    </remote_servers>

    <zookeeper>
{% for node in config.keepers.nodes %}
        <node>
            <host>{{ node.host }}</host>
            <port>{{ node.port }}</port>
        </node>
{% endfor %}
    </zookeeper>
</clickhouse>
"""

TEMPLATES = {
    "logger": LOGGER_TEMPLATE,
    "keeper": KEEPER_TEMPLATE,
    "replica": REPLICA_TEMPLATE,
}
