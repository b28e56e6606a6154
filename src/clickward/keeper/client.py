from __future__ import annotations

import re
import subprocess
from typing import Callable, Dict, List, Optional

from clickward.core.errors import KeeperQueryError, UnexpectedResponseError

CONFIG_QUERY = "get /keeper/config"

# server.<id>=<host>:<port>[;<role info>]
SERVER_LINE_PATTERN = re.compile(r"server\.(\d+)=([^;]+):(\d+)(?:;.*)?")

QueryRunner = Callable[[List[str]], str]


def parse_keeper_config(output: str) -> Dict[int, str]:
    """Parse a `get /keeper/config` response into {keeper id: "host:port"}.

    Any line that does not match fails the whole parse.
    """
    config: Dict[int, str] = {}
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped:
            continue

        match = SERVER_LINE_PATTERN.fullmatch(stripped)
        if match is None:
            raise UnexpectedResponseError(stripped)

        node_id = int(match.group(1))
        if node_id < 1:
            raise UnexpectedResponseError(stripped)
        config[node_id] = f"{match.group(2)}:{match.group(3)}"
    return config


def run_keeper_client(command: List[str]) -> str:
    try:
        completed = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except OSError as exc:
        raise KeeperQueryError(f"Failed to run keeper client: {exc}") from exc

    if completed.returncode != 0:
        raise KeeperQueryError(f"Keeper client exited with status {completed.returncode}")
    return completed.stdout


class KeeperClient:
    """
    A client for reading a running keeper's own view of its raft membership.

    Read-only: the result is for comparing against the recorded topology.
    """

    def __init__(
        self,
        host: str,
        port: int,
        clickhouse_binary: str = "clickhouse",
        runner: Optional[QueryRunner] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.clickhouse_binary = clickhouse_binary
        self.runner = runner or run_keeper_client

    def command(self, query: str) -> List[str]:
        return [
            self.clickhouse_binary,
            "keeper-client",
            "--host",
            self.host,
            "--port",
            str(self.port),
            "--query",
            query,
        ]

    def query(self, query: str) -> str:
        return self.runner(self.command(query))

    def config(self) -> Dict[int, str]:
        return parse_keeper_config(self.query(CONFIG_QUERY))
