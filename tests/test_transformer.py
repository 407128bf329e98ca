"""Unit tests for editor <-> deployment conversion"""
import pytest

from modelbridge.providers import (
    DeploymentConfig,
    KeyCollision,
    TransformInvalid,
    ValidationFailed,
)
from modelbridge.providers.transformer import (
    model_display_name,
    normalize_endpoint,
    to_deployment_format,
    to_editor_format,
)


def _counter():
    """Deterministic id factory: provider_1, model_2, ..."""
    state = {"n": 0}

    def factory(prefix):
        state["n"] += 1
        return f"{prefix}_{state['n']}"

    return factory


@pytest.fixture
def acme_provider():
    return {
        "id": "p1",
        "name": "Acme",
        "endpoint": "https://x",
        "type": "openai",
        "apiKey": "k",
    }


@pytest.fixture
def gpt_x():
    return {
        "id": "m1",
        "providerId": "p1",
        "modelId": "gpt-x",
        "allowedRoles": ["main"],
        "sweScore": 50,
        "maxTokens": 1000,
        "costPer1MTokens": {"input": 1, "output": 2},
    }


class TestHelpers:
    @pytest.mark.parametrize(
        "model_id,expected",
        [
            ("deepseek-ai/DeepSeek-R1", "DeepSeek R1"),
            ("gpt-4o", "Gpt 4o"),
            ("claude-3-5-sonnet", "Claude 3 5 Sonnet"),
        ],
    )
    def test_model_display_name(self, model_id, expected):
        assert model_display_name(model_id) == expected

    @pytest.mark.parametrize(
        "endpoint,expected",
        [
            ("https://api.polo.ai/v1", "https://api.polo.ai"),
            ("https://api.polo.ai/v1/", "https://api.polo.ai"),
            ("https://api.polo.ai/", "https://api.polo.ai"),
            ("https://api.polo.ai", "https://api.polo.ai"),
        ],
    )
    def test_normalize_endpoint(self, endpoint, expected):
        assert normalize_endpoint(endpoint) == expected


class TestToDeploymentFormat:
    def test_single_provider_single_model(self, acme_provider, gpt_x):
        result = to_deployment_format([acme_provider], [gpt_x]).to_dict()

        assert result == {
            "supportedModels": {
                "acme": [
                    {
                        "id": "gpt-x",
                        "swe_score": 0.5,
                        "cost_per_1m_tokens": {"input": 1.0, "output": 2.0},
                        "allowed_roles": ["main"],
                        "max_tokens": 1000,
                    },
                ],
            },
            "config": {
                "models": {"main": {"provider": "acme", "model": "gpt-x"}},
                "providers": {
                    "acme": {
                        "name": "Acme",
                        "endpoint": "https://x",
                        "type": "openai",
                        "apiKey": "k",
                    },
                },
            },
        }

    def test_first_model_in_collection_order_wins_a_role(
        self,
        acme_provider,
        gpt_x,
    ):
        weaker = dict(gpt_x, id="m0", modelId="weak", sweScore=10)
        stronger = dict(gpt_x, sweScore=90)

        result = to_deployment_format([acme_provider], [weaker, stronger])

        assert result.config.models.main.model == "weak"

    def test_roles_across_providers(self, acme_provider, gpt_x):
        globex = {
            "id": "p2",
            "name": "Globex Labs",
            "endpoint": "https://api.globex.io",
            "type": "anthropic",
        }
        research = {
            "id": "m2",
            "providerId": "p2",
            "modelId": "deep-search",
            "allowedRoles": ["research", "fallback"],
        }

        config = to_deployment_format(
            [acme_provider, globex],
            [gpt_x, research],
        ).config_document()

        assert config["models"] == {
            "main": {"provider": "acme", "model": "gpt-x"},
            "fallback": {"provider": "globexlabs", "model": "deep-search"},
            "research": {"provider": "globexlabs", "model": "deep-search"},
        }

    def test_provider_without_models(self, acme_provider):
        result = to_deployment_format([acme_provider], [])

        assert result.supported_models == {}
        assert list(result.config.providers) == ["acme"]
        assert result.config_document()["models"] == {}

    def test_defaults_for_absent_fields(self, acme_provider):
        bare = {"id": "m1", "providerId": "p1", "modelId": "bare"}

        entry = to_deployment_format(
            [acme_provider],
            [bare],
        ).supported_models_document()["acme"][0]

        assert entry == {
            "id": "bare",
            "swe_score": None,
            "cost_per_1m_tokens": {"input": 0.0, "output": 0.0},
            "allowed_roles": [],
            "max_tokens": 200000,
        }

    def test_zero_score_is_kept(self, acme_provider, gpt_x):
        result = to_deployment_format(
            [acme_provider],
            [dict(gpt_x, sweScore=0)],
        )

        assert result.supported_models["acme"][0].swe_score == 0

    def test_key_collision(self, acme_provider):
        twin = dict(acme_provider, id="p2", name="A.C.M.E")

        with pytest.raises(KeyCollision) as excinfo:
            to_deployment_format([acme_provider, twin], [])

        assert excinfo.value.key == "acme"
        assert excinfo.value.names == ["Acme", "A.C.M.E"]

    def test_invalid_input_is_rejected(self, acme_provider, gpt_x):
        with pytest.raises(ValidationFailed) as excinfo:
            to_deployment_format(
                [acme_provider],
                [dict(gpt_x, providerId="missing")],
            )

        assert excinfo.value.errors == [
            "Model 1: Referenced provider not found",
        ]

    def test_accepts_records(self, store, acme, make_model):
        provider = store.add_provider(acme)
        store.add_model(make_model(provider.id, "gpt-4o"))

        result = to_deployment_format(
            store.get_providers(),
            store.get_models(),
        )

        assert [e.id for e in result.supported_models["acme"]] == ["gpt-4o"]


class TestToEditorFormat:
    def test_round_trip(self, acme_provider, gpt_x):
        deployment = to_deployment_format([acme_provider], [gpt_x])

        editor = to_editor_format(deployment, id_factory=_counter())

        assert len(editor.providers) == 1
        provider = editor.providers[0]
        assert provider.id == "provider_1"
        assert provider.name == "Acme"
        assert provider.endpoint == "https://x"
        assert provider.api_key == "k"
        assert provider.is_valid is True

        model = editor.models[0]
        assert model.id == "model_2"
        assert model.provider_id == "provider_1"
        assert model.model_id == "gpt-x"
        assert model.name == "Gpt X"
        assert model.swe_score == 50
        assert model.max_tokens == 1000
        assert model.cost_per_1m_tokens.input == 1
        assert model.cost_per_1m_tokens.output == 2
        assert model.allowed_roles == ["main"]

    def test_providers_without_models_are_dropped(self, acme_provider):
        deployment = to_deployment_format([acme_provider], [])

        editor = to_editor_format(deployment)

        assert editor.providers == []
        assert editor.models == []

    def test_defaults_for_sparse_entries(self):
        document = {
            "supportedModels": {"openai": [{"id": "gpt-4o"}]},
            "config": {},
        }

        editor = to_editor_format(document, id_factory=_counter())

        provider = editor.providers[0]
        assert provider.name == "OpenAI"
        assert provider.endpoint == "https://api.openai.com"
        assert provider.type == "openai"
        assert provider.api_key == ""
        assert provider.is_valid is False

        model = editor.models[0]
        assert model.allowed_roles == ["main", "fallback"]
        assert model.max_tokens == 200000
        assert model.swe_score is None
        assert model.cost_per_1m_tokens.input == 0

    def test_config_providers_override_registry(self):
        document = {
            "supportedModels": {"polo": [{"id": "m", "swe_score": 0.123}]},
            "config": {
                "providers": {
                    "polo": {
                        "name": "Polo",
                        "endpoint": "https://proxy.local/v1",
                        "type": "custom",
                        "apiKey": "secret",
                    },
                },
            },
        }

        editor = to_editor_format(document)

        provider = editor.providers[0]
        assert provider.name == "Polo"
        assert provider.endpoint == "https://proxy.local"
        assert provider.type == "custom"
        assert editor.models[0].swe_score == 12.3

    def test_role_assignments_are_not_read_back(self):
        document = {
            "supportedModels": {
                "openai": [{"id": "gpt-4o", "allowed_roles": ["research"]}],
            },
            "config": {
                "models": {"main": {"provider": "openai", "model": "gpt-4o"}},
            },
        }

        editor = to_editor_format(document)

        assert editor.models[0].allowed_roles == ["research"]

    def test_malformed_document(self):
        with pytest.raises(ValidationFailed) as excinfo:
            to_editor_format({"config": {}})

        assert "Missing supportedModels section" in excinfo.value.errors

    def test_out_of_range_entry(self):
        document = {
            "supportedModels": {"openai": [{"id": "m", "swe_score": 72}]},
            "config": {},
        }

        with pytest.raises(ValidationFailed) as excinfo:
            to_editor_format(document)

        assert excinfo.value.errors == [
            "Provider openai, Model 1: "
            "swe_score must be a fraction between 0 and 1",
        ]

    def test_unknown_key_without_settings_is_invalid(self):
        document = {
            "supportedModels": {"mistral": [{"id": "large"}]},
            "config": {},
        }

        with pytest.raises(TransformInvalid) as excinfo:
            to_editor_format(document)

        assert "Provider 1: Endpoint is required" in excinfo.value.errors

    def test_accepts_deployment_config_instance(self):
        deployment = DeploymentConfig.model_validate(
            {"supportedModels": {"xai": [{"id": "grok-3"}]}},
        )

        editor = to_editor_format(deployment)

        assert editor.providers[0].name == "xAI"
        assert editor.providers[0].endpoint == "https://api.x.ai"
