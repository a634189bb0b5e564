# tests/test_gateway.py
import pytest

from codestream.core.config import EnvConfigSource, MappingConfigSource
from codestream.providers.deepseek import DeepSeekClient
from codestream.providers.gateway import ProviderGateway
from codestream.providers.lm_studio import LMStudioClient
from codestream.providers.ollama import OllamaClient
from codestream.providers.openai_compatible import OpenAICompatibleClient
from codestream.providers.registry import (
    PROVIDERS,
    ProviderId,
    list_descriptors,
    parse_provider_id,
    resolve_provider_config,
)


def make_gateway(default=None, values=None) -> ProviderGateway:
    return ProviderGateway(default_provider=default, config_source=MappingConfigSource(values or {}))


def test_unknown_provider_falls_back_to_configured_default():
    # Unknown ids never raise; they resolve to the configured default.
    client = make_gateway(default="deepseek").resolve("unknown_provider")
    assert isinstance(client, DeepSeekClient)


def test_unknown_default_falls_back_to_builtin():
    gw = make_gateway(default="nope")
    assert gw.default_id() is ProviderId.DEEPSEEK
    assert isinstance(gw.resolve(None), DeepSeekClient)


@pytest.mark.parametrize(
    "requested, expected",
    [
        ("deepseek", DeepSeekClient),
        ("openai_compatible", OpenAICompatibleClient),
        ("ollama", OllamaClient),
        ("LM_STUDIO", LMStudioClient),
    ],
)
def test_recognized_provider_wins_over_default(requested, expected):
    assert isinstance(make_gateway(default="ollama").resolve(requested), expected)


def test_missing_id_uses_configured_default():
    assert isinstance(make_gateway(default="lm_studio").resolve(), LMStudioClient)


def test_list_returns_full_catalog_in_order():
    ids = [d.id.value for d in make_gateway().list()]
    assert ids == ["deepseek", "openai_compatible", "ollama", "lm_studio"]
    assert [d.is_local for d in list_descriptors()] == [False, False, True, True]


def test_parse_provider_id():
    assert parse_provider_id(" Ollama ") is ProviderId.OLLAMA
    assert parse_provider_id("") is None
    assert parse_provider_id(None) is None
    assert parse_provider_id("gpt") is None


def test_config_resolution_order():
    # explicit override -> config source -> built-in default
    desc = PROVIDERS[ProviderId.OPENAI_COMPATIBLE]
    source = MappingConfigSource({"OPENAI_COMPATIBLE_API_BASE": "https://api.groq.com/openai/v1/", "OPENAI_COMPATIBLE_API_KEY": "k1"})

    cfg = resolve_provider_config(desc, source)
    assert cfg.base_url == "https://api.groq.com/openai/v1"
    assert cfg.api_key == "k1"

    cfg = resolve_provider_config(desc, source, base_url="http://override/v1", api_key="k2")
    assert cfg.base_url == "http://override/v1"
    assert cfg.api_key == "k2"

    cfg = resolve_provider_config(desc, MappingConfigSource())
    assert cfg.base_url == "https://api.openai.com/v1"
    assert cfg.api_key is None


def test_local_providers_never_carry_api_key():
    source = MappingConfigSource({"OLLAMA_API_KEY": "ignored"})
    cfg = resolve_provider_config(PROVIDERS[ProviderId.OLLAMA], source, api_key="also-ignored")
    assert cfg.base_url == "http://localhost:11434"
    assert cfg.api_key is None


def test_config_is_read_on_every_resolve(monkeypatch):
    # Changing the environment between calls is picked up; nothing is cached.
    gw = ProviderGateway(default_provider=None, config_source=EnvConfigSource())
    monkeypatch.setenv("OLLAMA_API_BASE", "http://gpu-box:11434")
    assert gw.resolve("ollama").config.base_url == "http://gpu-box:11434"
    monkeypatch.setenv("OLLAMA_API_BASE", "http://other:11434")
    assert gw.resolve("ollama").config.base_url == "http://other:11434"
    monkeypatch.delenv("OLLAMA_API_BASE")
    assert gw.resolve("ollama").config.base_url == "http://localhost:11434"


def test_resolve_passes_overrides_to_client():
    client = make_gateway().resolve("deepseek", api_key="sk-test")
    assert client.config.api_key == "sk-test"
    assert client.config.base_url == "https://api.deepseek.com/v1"
