import typer
from enum import Enum
from pathlib import Path
from typing import Optional

from clickward.cli.formatter import OutputFormatter
from clickward.core.context import DeploymentConfig
from clickward.core.errors import ClickwardError
from clickward.core.models import NodeKind
from clickward.render.projector import config_schema
from clickward.runtime import Deployment

app = typer.Typer(
    name="clickward",
    help="Generate, deploy and reconfigure local ClickHouse and Keeper clusters.",
    rich_markup_mode=None,
    no_args_is_help=True,
)

PATH_OPTION = typer.Option(..., "--path", "-p", help="Root path of all configuration")
TARGET_DIR_OPTION = typer.Option(
    None,
    "--target-dir",
    help="Deployment directory below the root path (default: deployment)",
)


class OutputFormat(str, Enum):
    text = "text"
    json = "json"


class SchemaKind(str, Enum):
    keeper = "keeper"
    server = "server"


def _deployment(path: Path, target_dir: Optional[Path]) -> Deployment:
    try:
        config = DeploymentConfig.from_root(path, target_dir)
    except ClickwardError as exc:
        OutputFormatter.log(f"Error: {exc}", severity="error")
        raise typer.Exit(code=1)
    except ValueError as exc:
        OutputFormatter.log(f"Error: invalid clickward.yaml: {exc}", severity="error")
        raise typer.Exit(code=1)
    return Deployment(config)


def _node_address(config: DeploymentConfig, kind: NodeKind, node_id: int) -> str:
    if kind is NodeKind.KEEPER:
        return config.keeper_address(node_id)
    return config.http_address(node_id)


def _fail(exc: Exception) -> None:
    OutputFormatter.log(f"Error: {exc}", severity="error")
    raise typer.Exit(code=1)


@app.command("gen-config")
def gen_config(
    path: Path = PATH_OPTION,
    num_keepers: int = typer.Option(..., "--num-keepers", min=0, help="Number of clickhouse keepers"),
    num_replicas: int = typer.Option(..., "--num-replicas", min=0, help="Number of clickhouse replicas"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing deployment's metadata"),
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Generate configuration for our clickhouse and keeper clusters."""
    deployment = _deployment(path, target_dir)
    try:
        deployment.generate_config(num_keepers, num_replicas, force=force)
    except ClickwardError as exc:
        _fail(exc)


@app.command()
def deploy(
    path: Path = PATH_OPTION,
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Launch our deployment given generated configs."""
    deployment = _deployment(path, target_dir)
    try:
        started = deployment.deploy()
    except ClickwardError as exc:
        _fail(exc)
    OutputFormatter.log(f"Started {len(started)} node(s).", severity="success")


@app.command()
def teardown(
    path: Path = PATH_OPTION,
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Stop all our deployed processes."""
    deployment = _deployment(path, target_dir)
    try:
        result = deployment.teardown()
    except ClickwardError as exc:
        _fail(exc)
    OutputFormatter.log(
        f"Teardown stopped {len(result.stopped)} node(s); {len(result.failed)} could not be stopped.",
        severity="success" if not result.failed else "warning",
    )


@app.command()
def show(
    path: Path = PATH_OPTION,
    output_format: OutputFormat = typer.Option(OutputFormat.text, "--format", help="text or json"),
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Show metadata about the deployment."""
    deployment = _deployment(path, target_dir)
    try:
        topology = deployment.show()
    except ClickwardError as exc:
        _fail(exc)

    if output_format == OutputFormat.json:
        OutputFormatter.print_data(topology)
    else:
        OutputFormatter.print_topology(topology)


@app.command()
def status(
    path: Path = PATH_OPTION,
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Show whether each node's recorded process is still alive."""
    deployment = _deployment(path, target_dir)
    try:
        results = deployment.status()
    except ClickwardError as exc:
        _fail(exc)

    rows = [
        {
            "kind": result.kind.label,
            "node_id": result.node_id,
            "state": result.state.value,
            "pid": result.pid,
            "address": _node_address(deployment.config, result.kind, result.node_id),
            "reason": result.reason,
        }
        for result in results
    ]
    if not rows:
        OutputFormatter.log("Deployment has no live nodes.", severity="info")
    OutputFormatter.print_node_status(rows)


@app.command("add-keeper")
def add_keeper(
    path: Path = PATH_OPTION,
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Add a keeper node to the keeper cluster."""
    deployment = _deployment(path, target_dir)
    try:
        new_id = deployment.add_keeper()
    except ClickwardError as exc:
        _fail(exc)
    typer.echo(new_id)


@app.command("remove-keeper")
def remove_keeper(
    path: Path = PATH_OPTION,
    node_id: int = typer.Option(..., "--id", min=1, help="Id of the keeper node to remove"),
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Remove a keeper node."""
    deployment = _deployment(path, target_dir)
    try:
        deployment.remove_keeper(node_id)
    except ClickwardError as exc:
        _fail(exc)


@app.command("add-server")
def add_server(
    path: Path = PATH_OPTION,
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Add a clickhouse server."""
    deployment = _deployment(path, target_dir)
    try:
        new_id = deployment.add_server()
    except ClickwardError as exc:
        _fail(exc)
    typer.echo(new_id)


@app.command("remove-server")
def remove_server(
    path: Path = PATH_OPTION,
    node_id: int = typer.Option(..., "--id", min=1, help="Id of the clickhouse server node to remove"),
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Remove a clickhouse server."""
    deployment = _deployment(path, target_dir)
    try:
        deployment.remove_server(node_id)
    except ClickwardError as exc:
        _fail(exc)


@app.command("keeper-config")
def keeper_config(
    node_id: int = typer.Option(..., "--id", min=1, help="Id of the keeper node to query"),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Root path of all configuration"),
    output_format: OutputFormat = typer.Option(OutputFormat.text, "--format", help="text or json"),
    target_dir: Optional[Path] = TARGET_DIR_OPTION,
):
    """Get the raft membership as reported by a given keeper."""
    deployment = _deployment(path, target_dir)
    try:
        membership = deployment.keeper_membership(node_id)
    except ClickwardError as exc:
        _fail(exc)

    if output_format == OutputFormat.json:
        OutputFormatter.print_data({str(k): v for k, v in sorted(membership.items())})
    else:
        OutputFormatter.print_membership(node_id, membership)


@app.command("config-schema")
def schema(
    kind: SchemaKind = typer.Option(..., "--kind", help="keeper or server"),
):
    """Print the JSON schema of a node config."""
    node_kind = NodeKind.KEEPER if kind == SchemaKind.keeper else NodeKind.SERVER
    OutputFormatter.print_data(config_schema(node_kind))


if __name__ == "__main__":
    app()
