"""Tests for the HTTP API"""
import pytest
from fastapi.testclient import TestClient

from modelbridge.app import create_app


@pytest.fixture
def project(tmp_path):
    return tmp_path / "project"


@pytest.fixture
def client(store, project):
    return TestClient(create_app(store, project_dir=project))


@pytest.fixture
def acme_id(client, acme):
    response = client.post("/api/providers", json=acme)
    assert response.status_code == 201
    return response.json()["id"]


class TestProvidersApi:
    def test_create_masks_key(self, client, acme):
        response = client.post("/api/providers", json=acme)

        body = response.json()
        assert response.status_code == 201
        assert body["id"].startswith("provider_")
        assert body["has_api_key"] is True
        assert body["current_api_key"] == "sk-*******3456"
        assert "apiKey" not in body

    def test_list_and_get(self, client, acme_id):
        listing = client.get("/api/providers").json()
        single = client.get(f"/api/providers/{acme_id}")

        assert [p["name"] for p in listing] == ["Acme"]
        assert single.json()["model_count"] == 0

    def test_unknown_provider_is_404(self, client):
        response = client.get("/api/providers/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "provider_not_found"

    def test_validation_errors_are_400(self, client):
        response = client.post(
            "/api/providers",
            json={"name": "A", "endpoint": "https://x/v1"},
        )

        body = response.json()
        assert response.status_code == 400
        assert body["error_code"] == "validation_failed"
        assert "Name must be 2-50 characters long" in body["detail"]
        assert "Endpoint must not end with /v1" in body["detail"]

    def test_duplicate_name_is_409(self, client, acme, acme_id):
        response = client.post(
            "/api/providers",
            json=dict(acme, name="ACME"),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "duplicate_name"

    def test_key_collision_is_409(self, client, acme, acme_id):
        response = client.post(
            "/api/providers",
            json=dict(acme, name="A-C-M-E"),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "key_collision"

    def test_partial_update(self, client, acme_id):
        response = client.put(
            f"/api/providers/{acme_id}",
            json={"endpoint": "https://api.acme.dev/api"},
        )

        body = response.json()
        assert response.status_code == 200
        assert body["name"] == "Acme"
        assert body["endpoint"] == "https://api.acme.dev/api"
        assert body["has_api_key"] is True

    def test_validity(self, client, acme_id):
        response = client.put(
            f"/api/providers/{acme_id}/validity",
            json={"isValid": True},
        )

        assert response.json()["is_valid"] is True

    def test_delete_cascades(self, client, acme_id):
        client.post(
            "/api/models",
            json={"providerId": acme_id, "modelId": "gpt-4o"},
        )

        response = client.delete(f"/api/providers/{acme_id}")

        assert response.status_code == 204
        assert client.get("/api/models").json() == []


class TestModelsApi:
    def test_create_with_defaults(self, client, acme_id):
        response = client.post(
            "/api/models",
            json={
                "providerId": acme_id,
                "modelId": "deepseek-ai/DeepSeek-R1",
            },
        )

        body = response.json()
        assert response.status_code == 201
        assert body["name"] == "DeepSeek R1"
        assert body["allowedRoles"] == ["main", "fallback"]
        assert body["sweScore"] is None

    def test_unknown_provider_is_404(self, client):
        response = client.post(
            "/api/models",
            json={"providerId": "ghost", "modelId": "m"},
        )

        assert response.status_code == 404

    def test_duplicate_model_is_409(self, client, acme_id):
        data = {"providerId": acme_id, "modelId": "m"}
        client.post("/api/models", json=data)

        response = client.post("/api/models", json=data)

        assert response.status_code == 409
        assert response.json()["error_code"] == "duplicate_model_id"

    def test_filter_by_role(self, client, acme_id):
        for model_id, roles in (("a", ["main"]), ("b", ["research"])):
            client.post(
                "/api/models",
                json={
                    "providerId": acme_id,
                    "modelId": model_id,
                    "allowedRoles": roles,
                },
            )

        research = client.get("/api/models", params={"role": "research"})
        unknown = client.get("/api/models", params={"role": "coder"})

        assert [m["modelId"] for m in research.json()] == ["b"]
        assert unknown.status_code == 400

    def test_update_merges_fields(self, client, acme_id):
        created = client.post(
            "/api/models",
            json={"providerId": acme_id, "modelId": "m", "maxTokens": 8192},
        ).json()

        response = client.put(
            f"/api/models/{created['id']}",
            json={"sweScore": 61.5},
        )

        body = response.json()
        assert body["sweScore"] == 61.5
        assert body["maxTokens"] == 8192
        assert body["modelId"] == "m"

    def test_delete_unknown_is_404(self, client):
        assert client.delete("/api/models/missing").status_code == 404


class TestExchangeApi:
    def _seed(self, client, acme_id):
        client.post(
            "/api/models",
            json={
                "providerId": acme_id,
                "modelId": "gpt-4o",
                "sweScore": 50,
                "allowedRoles": ["main"],
            },
        )

    def test_preview(self, client, acme_id):
        self._seed(client, acme_id)

        document = client.get("/api/exchange/preview").json()

        assert document["supportedModels"]["acme"][0]["swe_score"] == 0.5
        assert document["config"]["models"] == {
            "main": {"provider": "acme", "model": "gpt-4o"},
        }

    def test_configuration_backup(self, client, acme_id):
        backup = client.get("/api/configuration").json()

        assert backup["version"] == "1.0.0"
        assert backup["providers"][0]["id"] == acme_id

    def test_export_then_import(self, client, acme_id, project):
        self._seed(client, acme_id)

        exported = client.post("/api/exchange/export")
        imported = client.post("/api/exchange/import")

        assert exported.status_code == 200
        assert (project / ".taskmaster" / "config.json").is_file()
        body = imported.json()
        assert [p["name"] for p in body["providers"]] == ["Acme"]
        assert body["providers"][0]["id"] != acme_id
        assert [m["modelId"] for m in body["models"]] == ["gpt-4o"]

    def test_explicit_project(self, client, acme_id, tmp_path):
        other = tmp_path / "other"

        response = client.post(
            "/api/exchange/export",
            json={"project_dir": str(other)},
        )

        assert response.status_code == 200
        supported = other / "scripts" / "modules" / "supported-models.json"
        assert supported.exists()

    def test_import_missing_documents_is_400(self, client):
        response = client.post("/api/exchange/import")

        assert response.status_code == 400
        assert response.json()["error_code"] == "document_error"

    def test_no_project_configured(self, store):
        client = TestClient(create_app(store))

        response = client.post("/api/exchange/export")

        assert response.status_code == 400
        assert "No project directory configured" in response.json()["detail"]
