"""Tests for the modelbridge command line interface"""
import json

import pytest
from click.testing import CliRunner

from modelbridge.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_path):
    """Run the CLI against a throwaway working directory."""
    home = tmp_path / "home"

    def _invoke(*args, input=None):
        return runner.invoke(
            cli,
            ["--working-dir", str(home), *args],
            input=input,
            catch_exceptions=False,
        )

    return _invoke


@pytest.fixture
def with_acme(invoke):
    invoke(
        "providers",
        "add",
        "--name",
        "Acme",
        "--endpoint",
        "https://api.acme.dev",
        "--api-key",
        "sk-acme-123456",
    )
    invoke(
        "models",
        "add",
        "--provider",
        "Acme",
        "--model-id",
        "gpt-4o",
        "--swe-score",
        "33.2",
        "--role",
        "main",
    )
    return invoke


class TestProviders:
    def test_defaults_are_listed(self, invoke):
        result = invoke("providers", "list", "--json")

        assert result.exit_code == 0
        names = [p["name"] for p in json.loads(result.output)]
        assert names == ["OpenAI", "Anthropic", "FoApi"]

    def test_add_masks_key_in_listing(self, with_acme):
        result = with_acme("providers", "list", "--json")

        acme = json.loads(result.output)[-1]
        assert acme["name"] == "Acme"
        assert acme["apiKey"] == "sk-*******3456"

    def test_add_prompts_for_missing_values(self, invoke):
        result = invoke(
            "providers",
            "add",
            input="Globex\nhttps://api.globex.io\n\n",
        )

        assert result.exit_code == 0
        assert "Added provider Globex" in result.output

    def test_duplicate_name_fails(self, with_acme):
        result = with_acme(
            "providers",
            "add",
            "--name",
            "acme",
            "--endpoint",
            "https://other.dev",
            "--api-key",
            "",
        )

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_invalid_endpoint_lists_errors(self, invoke):
        result = invoke(
            "providers",
            "add",
            "--name",
            "Acme",
            "--endpoint",
            "https://api.acme.dev/v1",
            "--api-key",
            "",
        )

        assert result.exit_code == 1
        assert "Endpoint must not end with /v1" in result.output

    def test_update_and_mark(self, with_acme):
        update = with_acme("providers", "update", "Acme", "--name", "Acme Two")
        mark = with_acme("providers", "mark", "Acme Two", "--valid")
        listing = json.loads(with_acme("providers", "list", "--json").output)

        assert update.exit_code == 0
        assert mark.exit_code == 0
        assert listing[-1]["name"] == "Acme Two"
        assert listing[-1]["isValid"] is True

    def test_unknown_provider(self, invoke):
        result = invoke("providers", "delete", "Nobody", "--yes")

        assert result.exit_code == 1
        assert "Unknown provider: Nobody" in result.output

    def test_delete_cascades_to_models(self, with_acme):
        result = with_acme("providers", "delete", "Acme", "--yes")
        models = json.loads(with_acme("models", "list", "--json").output)

        assert result.exit_code == 0
        assert "and 1 model(s)" in result.output
        assert models == []


class TestModels:
    def test_add_and_list(self, with_acme):
        models = json.loads(with_acme("models", "list", "--json").output)

        assert len(models) == 1
        assert models[0]["modelId"] == "gpt-4o"
        assert models[0]["name"] == "Gpt 4o"
        assert models[0]["sweScore"] == 33.2
        assert models[0]["allowedRoles"] == ["main"]

    def test_roles_default_to_main_and_fallback(self, with_acme):
        with_acme(
            "models",
            "add",
            "--provider",
            "Acme",
            "--model-id",
            "o3-mini",
        )

        fallback = with_acme("models", "list", "--role", "fallback", "--json")

        assert [m["modelId"] for m in json.loads(fallback.output)] == [
            "o3-mini",
        ]

    def test_duplicate_model_id_fails(self, with_acme):
        result = with_acme(
            "models",
            "add",
            "--provider",
            "Acme",
            "--model-id",
            "gpt-4o",
        )

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_update_and_delete(self, with_acme):
        model_id = json.loads(
            with_acme("models", "list", "--json").output,
        )[0]["id"]

        update = with_acme("models", "update", model_id, "--no-roles")
        models = json.loads(with_acme("models", "list", "--json").output)
        delete = with_acme("models", "delete", model_id)

        assert update.exit_code == 0
        assert models[0]["allowedRoles"] == []
        assert delete.exit_code == 0
        assert "No models configured." in with_acme("models", "list").output


class TestExchange:
    def test_export_writes_documents(self, with_acme, tmp_path):
        project = tmp_path / "project"

        result = with_acme("export", "--project", str(project))

        assert result.exit_code == 0
        assert "main     : acme / gpt-4o" in result.output
        config = json.loads(
            (project / ".taskmaster" / "config.json").read_text("utf-8"),
        )
        assert config["models"] == {
            "main": {"provider": "acme", "model": "gpt-4o"},
        }
        assert (
            project / "scripts" / "modules" / "supported-models.json"
        ).is_file()

    def test_export_requires_project(self, with_acme):
        result = with_acme("export")

        assert result.exit_code == 1
        assert "No project configured" in result.output

    def test_dry_run_prints_documents(self, with_acme):
        result = with_acme("export", "--dry-run")

        document = json.loads(result.output)
        assert document["supportedModels"]["acme"][0]["swe_score"] == 0.332

    def test_saved_project_then_import(self, with_acme, tmp_path):
        project = tmp_path / "project"
        with_acme("project", "set", str(project))
        with_acme("export")

        result = with_acme("import", "--yes")
        providers = json.loads(with_acme("providers", "list", "--json").output)

        assert result.exit_code == 0
        assert "Imported 1 provider(s) and 1 model(s)" in result.output
        # providers without models are not carried by the documents
        assert [p["name"] for p in providers] == ["Acme"]
        assert "exists" in with_acme("project", "show").output

    def test_import_without_documents_fails(self, with_acme, tmp_path):
        result = with_acme(
            "import",
            "--project",
            str(tmp_path / "empty"),
            "--yes",
        )

        assert result.exit_code == 1
        assert "supported-models.json not found" in result.output

    def test_backup_restore_and_reset(self, with_acme, tmp_path):
        backup_file = tmp_path / "backup.json"
        with_acme("backup", "-o", str(backup_file))
        with_acme("reset", "--yes")
        after_reset = json.loads(with_acme("models", "list", "--json").output)

        result = with_acme("restore", str(backup_file))
        restored = json.loads(with_acme("models", "list", "--json").output)

        assert after_reset == []
        assert result.exit_code == 0
        assert [m["modelId"] for m in restored] == ["gpt-4o"]


class TestApp:
    @pytest.fixture
    def served(self, monkeypatch):
        calls = []
        monkeypatch.setattr(
            "uvicorn.run",
            lambda app, **kwargs: calls.append(kwargs),
        )
        return calls

    def test_log_level_from_environment(self, invoke, served, monkeypatch):
        monkeypatch.setenv("MODELBRIDGE_LOG_LEVEL", "debug")

        result = invoke("app", "--port", "9000")

        assert result.exit_code == 0
        assert served == [
            {"host": "127.0.0.1", "port": 9000, "log_level": "debug"},
        ]

    def test_log_level_option_wins(self, invoke, served, monkeypatch):
        monkeypatch.setenv("MODELBRIDGE_LOG_LEVEL", "debug")

        invoke("--log-level", "error", "app")

        assert served[0]["log_level"] == "error"
