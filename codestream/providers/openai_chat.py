# chat-completions backends (DeepSeek, OpenAI-compatible, LM Studio) over the openai SDK.
# SDK errors are mapped onto the provider error kinds here so callers never see openai types.

import logging
from typing import Any, Dict, List, Optional

import httpx
import openai
from openai import AsyncOpenAI

from codestream.core import config
from codestream.providers.base import (
    REASONING_END,
    REASONING_START,
    GenerationRequest,
    ModelDescriptor,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    StreamInterrupted,
    UpstreamError,
)
from codestream.providers.registry import ProviderConfig, ProviderDescriptor
from codestream.providers.wire import build_messages, make_timeout

logger = logging.getLogger(__name__)

# the SDK refuses to start without a key; keyless local servers ignore it
NO_KEY = "not-needed"


def make_client(cfg: ProviderConfig, read_timeout: Optional[float] = None) -> AsyncOpenAI:
    return AsyncOpenAI(
        base_url=cfg.base_url,
        api_key=cfg.api_key or NO_KEY,
        timeout=make_timeout(read_timeout),
        max_retries=0,
    )


def _status_message(e: openai.APIStatusError) -> str:
    body = e.body
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    if isinstance(body, str) and body.strip():
        return body.strip()
    return e.message or f"HTTP {e.status_code}"


def map_error(descriptor: ProviderDescriptor, e: openai.APIError) -> ProviderError:
    provider = descriptor.id.value
    if isinstance(e, openai.APIConnectionError):
        # APITimeoutError is a subclass
        return ProviderConnectionError(
            f"Could not reach {descriptor.name} at {e.request.url}: {e.message}",
            provider=provider,
            is_local=descriptor.is_local,
        )
    if isinstance(e, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return ProviderAuthError(_status_message(e), provider=provider)
    if isinstance(e, openai.APIStatusError):
        return UpstreamError(_status_message(e), status_code=e.status_code, provider=provider)
    return UpstreamError(e.message, status_code=502, provider=provider)


def _completion_kwargs(descriptor: ProviderDescriptor, request: GenerationRequest) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "model": request.model,
        "messages": build_messages(descriptor, request),
        "stream": True,
    }
    max_tokens = request.max_tokens or config.MAX_TOKENS
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    if config.TEMPERATURE is not None:
        kwargs["temperature"] = config.TEMPERATURE
    return kwargs


def _delta_text(chunk: Any) -> tuple:
    """(reasoning, content) from one chunk; events that don't fit the shape give ("", "")."""
    choices = getattr(chunk, "choices", None)
    if not isinstance(choices, list) or not choices:
        return "", ""
    delta = getattr(choices[0], "delta", None)
    if delta is None:
        return "", ""
    content = getattr(delta, "content", None)
    # deepseek-reasoner sends its chain of thought outside the typed fields
    extra = getattr(delta, "model_extra", None)
    reasoning = extra.get("reasoning_content") if isinstance(extra, dict) else None
    return (
        reasoning if isinstance(reasoning, str) else "",
        content if isinstance(content, str) else "",
    )


class CompletionStream:
    """
    Text chunks from one streamed chat completion.

    `reasoning_content` deltas come out wrapped in reasoning markers, so the
    extractor sees one format whichever way the backend reports reasoning.
    The SDK client is closed with the stream, also when aclose() runs before
    iteration started.
    """

    def __init__(self, descriptor: ProviderDescriptor, client: AsyncOpenAI, stream: Any) -> None:
        self._descriptor = descriptor
        self._client = client
        self._stream = stream
        self._chunks = stream.__aiter__()
        self._pending: List[str] = []
        self._reasoning_open = False
        self._done = False
        self._closed = False

    def __aiter__(self) -> "CompletionStream":
        return self

    async def _next_texts(self) -> List[str]:
        try:
            chunk = await self._chunks.__anext__()
        except StopAsyncIteration:
            self._done = True
            if self._reasoning_open:
                self._reasoning_open = False
                return [REASONING_END]
            return []
        reasoning, content = _delta_text(chunk)
        out: List[str] = []
        if reasoning:
            if not self._reasoning_open:
                self._reasoning_open = True
                reasoning = REASONING_START + reasoning
            out.append(reasoning)
        if content:
            if self._reasoning_open:
                self._reasoning_open = False
                content = REASONING_END + content
            out.append(content)
        return out

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            while not self._pending:
                if self._done:
                    raise StopAsyncIteration
                self._pending.extend(await self._next_texts())
            return self._pending.pop(0)
        except StopAsyncIteration:
            await self.aclose()
            raise
        except (openai.APIError, httpx.TransportError, ValueError) as e:
            # in-band error events, dropped connections and undecodable events
            await self.aclose()
            raise StreamInterrupted(
                f"{self._descriptor.name} stream interrupted: {e}",
                provider=self._descriptor.id.value,
            ) from e
        except BaseException:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stream.close()
        finally:
            await self._client.close()


class OpenAIChatClient:
    """Shared list_models / generate for backends that speak chat completions."""

    descriptor: ProviderDescriptor

    def __init__(self, cfg: ProviderConfig) -> None:
        self.config = cfg

    async def list_models(self) -> List[ModelDescriptor]:
        async with make_client(self.config, config.LIST_TIMEOUT) as client:
            try:
                page = await client.models.list()
            except openai.APIError as e:
                raise map_error(self.descriptor, e) from e
        models: List[ModelDescriptor] = []
        for entry in page.data or []:
            model_id = getattr(entry, "id", None)
            if isinstance(model_id, str) and model_id:
                models.append(ModelDescriptor(id=model_id, name=model_id))
        return models

    async def generate(self, request: GenerationRequest) -> CompletionStream:
        client = make_client(self.config)
        try:
            stream = await client.chat.completions.create(**_completion_kwargs(self.descriptor, request))
        except openai.APIError as e:
            await client.close()
            raise map_error(self.descriptor, e) from e
        except BaseException:
            await client.close()
            raise
        logger.debug("%s: streaming from %s", self.descriptor.name, self.config.base_url)
        return CompletionStream(self.descriptor, client, stream)
