from typing import Any, Dict, List, Optional

from codestream.core import config
from codestream.providers.base import GenerationRequest, ModelDescriptor
from codestream.providers.registry import PROVIDERS, ProviderConfig, ProviderId
from codestream.providers.wire import ChunkStream, build_messages, get_json, open_stream, parse_ollama_lines


def _options(max_tokens: Optional[int]) -> Dict[str, Any]:
    opts: Dict[str, Any] = {}
    if max_tokens:
        opts["num_predict"] = max_tokens
    if config.TEMPERATURE is not None:
        opts["temperature"] = config.TEMPERATURE
    return opts


def _display_name(model_name: str) -> str:
    # "qwen2.5-coder:7b" -> "qwen2.5-coder"
    return model_name.split(":", 1)[0] if ":" in model_name else model_name


class OllamaClient:
    descriptor = PROVIDERS[ProviderId.OLLAMA]

    def __init__(self, cfg: ProviderConfig) -> None:
        self.config = cfg

    async def list_models(self) -> List[ModelDescriptor]:
        data = await get_json(self.descriptor, f"{self.config.base_url}/api/tags")
        entries = data.get("models") if isinstance(data, dict) else None
        models: List[ModelDescriptor] = []
        for entry in entries or []:
            name = entry.get("name") if isinstance(entry, dict) else None
            if isinstance(name, str) and name:
                models.append(ModelDescriptor(id=name, name=_display_name(name)))
        return models

    async def generate(self, request: GenerationRequest) -> ChunkStream:
        payload: Dict[str, Any] = {
            "model": request.model,
            "messages": build_messages(self.descriptor, request),
            "stream": True,
        }
        opts = _options(request.max_tokens or config.MAX_TOKENS)
        if opts:
            payload["options"] = opts
        return await open_stream(
            self.descriptor,
            f"{self.config.base_url}/api/chat",
            payload=payload,
            parse=parse_ollama_lines,
        )
