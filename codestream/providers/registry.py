# static catalog of supported backends: identity, locality and where their
# connection parameters come from. Defined once at import, never mutated.

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from codestream.core.config import ConfigSource


class ProviderId(str, Enum):
    DEEPSEEK = "deepseek"
    OPENAI_COMPATIBLE = "openai_compatible"
    OLLAMA = "ollama"
    LM_STUDIO = "lm_studio"


BUILTIN_DEFAULT_PROVIDER = ProviderId.DEEPSEEK


@dataclass(frozen=True)
class ProviderDescriptor:
    id: ProviderId
    name: str
    description: str
    is_local: bool
    base_url_env: str
    api_key_env: Optional[str]  # None if the backend takes no API key
    default_base_url: str
    examples: Tuple[str, ...] = field(default_factory=tuple)
    # backend has no server-side default system prompt, the client sends ours
    injects_system_prompt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "isLocal": self.is_local,
        }
        if self.examples:
            data["examples"] = list(self.examples)
        return data


@dataclass(frozen=True)
class ProviderConfig:
    base_url: str
    api_key: Optional[str] = None


PROVIDERS: Dict[ProviderId, ProviderDescriptor] = {
    ProviderId.DEEPSEEK: ProviderDescriptor(
        id=ProviderId.DEEPSEEK,
        name="DeepSeek",
        description="AI models from DeepSeek",
        is_local=False,
        base_url_env="DEEPSEEK_API_BASE",
        api_key_env="DEEPSEEK_API_KEY",
        default_base_url="https://api.deepseek.com/v1",
    ),
    ProviderId.OPENAI_COMPATIBLE: ProviderDescriptor(
        id=ProviderId.OPENAI_COMPATIBLE,
        name="Custom API",
        description="Configure your own OpenAI-compatible API",
        is_local=False,
        base_url_env="OPENAI_COMPATIBLE_API_BASE",
        api_key_env="OPENAI_COMPATIBLE_API_KEY",
        default_base_url="https://api.openai.com/v1",
        examples=("OpenAI", "Together AI", "Anyscale", "Groq", "Claude AI", "Anthropic"),
    ),
    ProviderId.OLLAMA: ProviderDescriptor(
        id=ProviderId.OLLAMA,
        name="Ollama",
        description="Local AI models with Ollama",
        is_local=True,
        base_url_env="OLLAMA_API_BASE",
        api_key_env=None,
        default_base_url="http://localhost:11434",
        injects_system_prompt=True,
    ),
    ProviderId.LM_STUDIO: ProviderDescriptor(
        id=ProviderId.LM_STUDIO,
        name="LM Studio",
        description="Local AI models with LM Studio",
        is_local=True,
        base_url_env="LM_STUDIO_API_BASE",
        api_key_env=None,
        default_base_url="http://localhost:1234/v1",
        injects_system_prompt=True,
    ),
}


def parse_provider_id(value: Optional[str]) -> Optional[ProviderId]:
    if not value:
        return None
    try:
        return ProviderId(value.strip().lower())
    except ValueError:
        return None


def get_descriptor(provider_id: ProviderId) -> ProviderDescriptor:
    return PROVIDERS[provider_id]


def list_descriptors() -> List[ProviderDescriptor]:
    return list(PROVIDERS.values())


def resolve_provider_config(
    descriptor: ProviderDescriptor,
    source: ConfigSource,
    *,
    base_url: Optional[str] = None,
    api_key: Optional[str] = None,
) -> ProviderConfig:
    """
    Resolution order for each value: explicit override -> config source -> built-in default.
    Recomputed on every call; nothing here is cached.
    """
    url = base_url or source.get(descriptor.base_url_env) or descriptor.default_base_url
    key = None
    if descriptor.api_key_env:
        key = api_key or source.get(descriptor.api_key_env)
    return ProviderConfig(base_url=url.rstrip("/"), api_key=key)
