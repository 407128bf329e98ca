"""Pytest configuration and shared fixtures"""
import pytest

from modelbridge.providers import ConfigStore, MemoryBlobStore


@pytest.fixture
def blob():
    return MemoryBlobStore()


@pytest.fixture
def store(blob):
    """Empty store (no default providers) backed by memory."""
    return ConfigStore(blob, seed_defaults=False).load()


@pytest.fixture
def acme():
    return {
        "name": "Acme",
        "endpoint": "https://api.acme.dev",
        "type": "openai",
        "apiKey": "sk-acme-123456",
    }


@pytest.fixture
def globex():
    return {
        "name": "Globex",
        "endpoint": "https://api.globex.io",
        "type": "anthropic",
        "apiKey": "",
    }


def model_data(provider_id, model_id, **extra):
    data = {
        "providerId": provider_id,
        "modelId": model_id,
        "allowedRoles": ["main", "fallback"],
        "maxTokens": 128000,
        "costPer1MTokens": {"input": 1, "output": 2},
    }
    data.update(extra)
    return data


@pytest.fixture
def make_model():
    return model_data
