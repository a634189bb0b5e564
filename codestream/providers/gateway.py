import logging
from typing import Callable, Dict, List, Optional

from codestream.core.config import ConfigSource
from codestream.providers.base import ProviderClient
from codestream.providers.deepseek import DeepSeekClient
from codestream.providers.lm_studio import LMStudioClient
from codestream.providers.ollama import OllamaClient
from codestream.providers.openai_compatible import OpenAICompatibleClient
from codestream.providers.registry import (
    BUILTIN_DEFAULT_PROVIDER,
    ProviderConfig,
    ProviderDescriptor,
    ProviderId,
    get_descriptor,
    list_descriptors,
    parse_provider_id,
    resolve_provider_config,
)

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProviderConfig], ProviderClient]

CLIENTS: Dict[ProviderId, ClientFactory] = {
    ProviderId.DEEPSEEK: DeepSeekClient,
    ProviderId.OPENAI_COMPATIBLE: OpenAICompatibleClient,
    ProviderId.OLLAMA: OllamaClient,
    ProviderId.LM_STUDIO: LMStudioClient,
}


class ProviderGateway:
    """
    Single entry point for picking a backend client.

    resolve() never fails on a missing or unknown provider id: it falls back to
    the configured default, then to the built-in default. Errors raised by the
    returned client are not touched here.
    """

    def __init__(
        self,
        *,
        default_provider: Optional[str],
        config_source: ConfigSource,
        clients: Optional[Dict[ProviderId, ClientFactory]] = None,
    ) -> None:
        self._default_provider = default_provider
        self._source = config_source
        self._clients = {**CLIENTS, **(clients or {})}

    def default_id(self) -> ProviderId:
        return parse_provider_id(self._default_provider) or BUILTIN_DEFAULT_PROVIDER

    def resolve_id(self, requested_id: Optional[str] = None) -> ProviderId:
        provider_id = parse_provider_id(requested_id)
        if provider_id is None:
            provider_id = self.default_id()
            if requested_id:
                logger.debug("unknown provider %r, using %s", requested_id, provider_id.value)
        return provider_id

    def resolve(
        self,
        requested_id: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> ProviderClient:
        provider_id = self.resolve_id(requested_id)
        cfg = resolve_provider_config(get_descriptor(provider_id), self._source, base_url=base_url, api_key=api_key)
        return self._clients[provider_id](cfg)

    def list(self) -> List[ProviderDescriptor]:
        return list_descriptors()
