from __future__ import annotations

import pytest

from phishlabs_agent.config.settings import Settings


def build_settings(**overrides) -> Settings:
    values = {
        "api_base_url": "https://api.phishlabs.test/v1",
        "api_key": "test-key",
        "service_path": "/incidents/phishing",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def make_settings():
    return build_settings
