import json
from pathlib import Path

from typer.testing import CliRunner

import authzgate.persistence as persistence
from authzgate.cli import app
from authzgate.persistence import InMemoryPolicyRepository

FIXTURE = Path(__file__).parent.parent / "fixtures" / "policies.yaml"


def _setup_repo(monkeypatch, tmp_path) -> InMemoryPolicyRepository:
    monkeypatch.setenv("AUTHZGATE_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("AUTHZGATE_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    repo = InMemoryPolicyRepository()
    persistence._repository_instance = repo
    return repo


def test_load_then_enforce(monkeypatch, tmp_path):
    _setup_repo(monkeypatch, tmp_path)
    runner = CliRunner()

    result = runner.invoke(app, ["load", str(FIXTURE)])
    assert result.exit_code == 0, result.stdout
    assert "3 permission(s)" in result.stdout

    result = runner.invoke(
        app, ["enforce", "alice", "data1", "read", "--model-id", "built-in/rbac"]
    )
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == [True, False]

    result = runner.invoke(
        app, ["enforce", "bob", "data2", "write", "--permission-id", "built-in/missing"]
    )
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == [False]


def test_batch_enforce_from_file(monkeypatch, tmp_path):
    _setup_repo(monkeypatch, tmp_path)
    runner = CliRunner()
    runner.invoke(app, ["load", str(FIXTURE)])

    requests_file = tmp_path / "requests.json"
    requests_file.write_text(json.dumps([["alice", "data1", "read"], ["bob", "data1", "read"]]))
    result = runner.invoke(
        app, ["batch-enforce", str(requests_file), "--enforcer-id", "built-in/main"]
    )
    assert result.exit_code == 0, result.stdout
    assert json.loads(result.stdout) == [[True, False]]


def test_caller_errors_exit_with_code_2(monkeypatch, tmp_path):
    _setup_repo(monkeypatch, tmp_path)
    runner = CliRunner()

    result = runner.invoke(app, ["enforce", "alice", "data1", "read"])
    assert result.exit_code == 2
    assert "MissingSelector" in result.stdout

    empty = tmp_path / "empty.json"
    empty.write_text("")
    result = runner.invoke(app, ["batch-enforce", str(empty), "--model-id", "built-in/rbac"])
    assert result.exit_code == 2
    assert "EmptyInput" in result.stdout


def test_missing_evaluator_exits_with_code_1(monkeypatch, tmp_path):
    _setup_repo(monkeypatch, tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        app, ["enforce", "alice", "data1", "read", "--enforcer-id", "built-in/nope"]
    )
    assert result.exit_code == 1
    assert "NotFound" in result.stdout


def test_invalid_document_exits_with_code_2(monkeypatch, tmp_path):
    repo = _setup_repo(monkeypatch, tmp_path)
    runner = CliRunner()

    broken = tmp_path / "broken.yaml"
    broken.write_text("models: [\n")
    result = runner.invoke(app, ["load", str(broken)])
    assert result.exit_code == 2
    assert "Invalid policy document" in result.stdout

    misshapen = tmp_path / "misshapen.yaml"
    misshapen.write_text("permissions:\n  - owner: built-in\n")
    result = runner.invoke(app, ["load", str(misshapen)])
    assert result.exit_code == 2
    assert "Invalid policy document" in result.stdout
    assert repo._permissions == {}
