from __future__ import annotations

import os

os.environ.setdefault("LOG_FILE_ENABLED", "false")

import pytest

from haloai.config import Settings

CREDENTIAL_FIELDS = (
    "bing_api_key",
    "serpapi_key",
    "google_pse_key",
    "google_pse_cx",
    "brave_api_key",
    "tavily_api_key",
    "groq_api_key",
    "openai_api_key",
)


def build_settings(**overrides) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values = {name: "" for name in CREDENTIAL_FIELDS}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def make_settings():
    return build_settings
