"""ProviderConfig 环境变量加载测试"""

import pytest
from nexusboard.provider.config import ProviderConfig, load_provider_config
from pydantic import ValidationError

_ENV_VARS = (
    "LITELLM_PROXY_URL",
    "LITELLM_PROXY_KEY",
    "NEXUSBOARD_LLM_MODE",
    "NEXUSBOARD_LLM_TIMEOUT_S",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadProviderConfig:
    def test_defaults(self):
        config = load_provider_config()
        assert config.proxy_base_url == "http://localhost:4000"
        assert config.proxy_api_key.get_secret_value() == ""
        assert config.llm_mode == "litellm"
        assert config.timeout_s == 30

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LITELLM_PROXY_URL", "http://proxy:4000")
        monkeypatch.setenv("LITELLM_PROXY_KEY", "sk-master")
        monkeypatch.setenv("NEXUSBOARD_LLM_MODE", "offline")
        monkeypatch.setenv("NEXUSBOARD_LLM_TIMEOUT_S", "12")

        config = load_provider_config()
        assert config.proxy_base_url == "http://proxy:4000"
        assert config.proxy_api_key.get_secret_value() == "sk-master"
        assert config.llm_mode == "offline"
        assert config.timeout_s == 12

    def test_secret_not_in_repr(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LITELLM_PROXY_KEY", "sk-master")
        assert "sk-master" not in repr(load_provider_config())

    def test_invalid_timeout_falls_back(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("NEXUSBOARD_LLM_TIMEOUT_S", "soon")
        assert load_provider_config().timeout_s == 30

    def test_unknown_mode_rejected(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("NEXUSBOARD_LLM_MODE", "echo")
        with pytest.raises(ValidationError):
            load_provider_config()

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            ProviderConfig(timeout_s=0)
