import pytest
from pydantic import ValidationError

from transmute.config import Config, ProviderConfig, RateLimitConfig, default_provider_configs
from transmute.core.provider import Provider
from transmute.utils.pydantic_utils import ConfigFileError


class TestConfigDefaults:
    def test_defaults(self):
        config = Config()

        assert config.cache.enabled is True
        assert config.cache.store == "default"
        assert config.cache.ttl.content_fetch == 1800
        assert config.cache.ttl.transformer_data == 3600
        assert config.rate_limiting.enabled is False
        assert config.rate_limiting.max_attempts == 60
        assert config.rate_limiting.decay_seconds == 60
        assert config.rate_limiting.key_prefix == "transmute_rate_limit"
        assert config.transformation.tries == 3
        assert config.transformation.timeout == 60
        assert config.transformation.async_queue == "default"
        assert config.content_fetcher.timeout == 30
        assert config.content_fetcher.retry.max_attempts == 3

    def test_every_provider_has_a_default_model(self):
        config = Config()

        for provider in Provider:
            assert config.default_model(provider)

    def test_provider_env_overrides(self, monkeypatch):
        monkeypatch.setenv("TRANSMUTE_OPENAI_MODEL", "gpt-4o")
        monkeypatch.setenv("TRANSMUTE_OPENAI_MAX_TOKENS", "2048")
        monkeypatch.setenv("TRANSMUTE_OPENAI_TEMPERATURE", "0.4")

        openai = default_provider_configs()["openai"]

        assert openai.default_model == "gpt-4o"
        assert openai.max_tokens == 2048
        assert openai.temperature == 0.4

    def test_invalid_max_tokens_env_is_ignored(self, monkeypatch):
        monkeypatch.setenv("TRANSMUTE_GROQ_MAX_TOKENS", "lots")

        assert default_provider_configs()["groq"].max_tokens is None

    def test_missing_provider_config_uses_fallback_model(self):
        config = Config(providers={})

        assert config.provider_config(Provider.MISTRAL) == ProviderConfig()
        assert config.default_model(Provider.MISTRAL) == Provider.MISTRAL.fallback_model

    def test_extra_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            Config(unknown_section={})  # type: ignore[call-arg]

    def test_rate_limit_values_are_validated(self):
        with pytest.raises(ValidationError):
            RateLimitConfig(max_attempts=0)

    def test_api_key_is_secret(self):
        provider = ProviderConfig(api_key="sk-123")

        assert "sk-123" not in repr(provider)
        assert provider.api_key.get_secret_value() == "sk-123"


class TestConfigFile:
    def test_load_from_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MY_ANTHROPIC_KEY", "secret-key")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            """
default_provider: anthropic
providers:
  anthropic:
    default_model: claude-test
    temperature: 0.2
    api_key: "{{ env.MY_ANTHROPIC_KEY }}"
cache:
  prefix: myapp
  ttl:
    transformer_data: 60
rate_limiting:
  enabled: true
  max_attempts: 10
"""
        )

        config = Config.load_from_file(config_file)

        assert config.default_provider == Provider.ANTHROPIC
        assert config.default_model(Provider.ANTHROPIC) == "claude-test"
        assert config.provider_config(Provider.ANTHROPIC).api_key.get_secret_value() == "secret-key"
        assert config.cache.prefix == "myapp"
        assert config.cache.ttl.transformer_data == 60
        assert config.cache.ttl.content_fetch == 1800
        assert config.rate_limiting.enabled is True
        assert config.rate_limiting.max_attempts == 10
        # providers missing from the file keep their defaults
        assert config.default_model(Provider.OPENAI)
        assert "openai" in config.providers

    def test_invalid_file_raises_config_file_error(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("cache:\n  enabled: true\n  colour: blue\n")

        with pytest.raises(ConfigFileError) as exc_info:
            Config.load_from_file(config_file)

        assert exc_info.value.bad_fields == ["cache.colour"]

    def test_missing_env_var_raises(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TRANSMUTE_TEST_UNSET", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("cache:\n  prefix: '{{ env.TRANSMUTE_TEST_UNSET }}'\n")

        with pytest.raises(ValueError, match="TRANSMUTE_TEST_UNSET"):
            Config.load_from_file(config_file)

    def test_empty_file_gives_defaults(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert Config.load_from_file(config_file).cache.enabled is True

    def test_no_file_falls_back_to_env(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            "transmute.common.env_vars.TRANSMUTE_CONFIG_PATH", str(tmp_path / "missing.yaml")
        )

        config = Config.load_from_file(None)

        assert config.cache.prefix == "transmute"
