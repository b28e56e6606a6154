import tomllib
from pathlib import Path


def _pyproject():
    pyproject_path = Path(__file__).resolve().parents[1] / "pyproject.toml"
    return tomllib.loads(pyproject_path.read_text(encoding="utf-8"))


def test_pyproject_exposes_clickward_console_script():
    payload = _pyproject()

    assert payload["project"]["scripts"]["clickward"] == "clickward.cli.main:app"


def test_pyproject_declares_runtime_and_test_dependencies():
    payload = _pyproject()

    names = {dep.split(">")[0].split("=")[0].strip().lower() for dep in payload["project"]["dependencies"]}
    assert {"typer", "pydantic", "pydantic-settings", "pyyaml", "rich", "jinja2", "psutil"} <= names

    test_extra = payload["project"]["optional-dependencies"]["test"]
    assert any(dep.startswith("pytest") for dep in test_extra)
