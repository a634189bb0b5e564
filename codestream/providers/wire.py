# httpx plumbing for the Ollama client (timeouts, error classification, NDJSON chunk
# reader) plus the message building every backend shares.

import json
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

import httpx

from codestream.core import config
from codestream.providers.base import (
    GenerationRequest,
    ProviderAuthError,
    ProviderConnectionError,
    StreamInterrupted,
    UpstreamError,
)
from codestream.providers.registry import ProviderConfig, ProviderDescriptor
from codestream.services.system_prompts import FALLBACK_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def make_timeout(read: Optional[float] = None) -> httpx.Timeout:
    return httpx.Timeout(read if read is not None else config.READ_TIMEOUT, connect=config.CONNECT_TIMEOUT)


def require_api_key(descriptor: ProviderDescriptor, cfg: ProviderConfig) -> None:
    if not cfg.api_key:
        raise ProviderAuthError(
            f"No API key configured for {descriptor.name} (set {descriptor.api_key_env})",
            provider=descriptor.id.value,
        )


def build_messages(descriptor: ProviderDescriptor, request: GenerationRequest) -> List[Dict[str, str]]:
    system = request.system_prompt
    if system is None and descriptor.injects_system_prompt:
        system = FALLBACK_SYSTEM_PROMPT
    messages: List[Dict[str, str]] = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": request.prompt})
    return messages


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str) and err["message"]:
            return err["message"]
        if isinstance(err, str) and err:
            return err
        for key in ("message", "detail"):
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


def _status_error(descriptor: ProviderDescriptor, status_code: int, message: str) -> Exception:
    if status_code in (401, 403):
        return ProviderAuthError(message, provider=descriptor.id.value)
    return UpstreamError(message, status_code=status_code, provider=descriptor.id.value)


def raise_for_status(descriptor: ProviderDescriptor, response: httpx.Response) -> None:
    if response.is_success:
        return
    raise _status_error(descriptor, response.status_code, _error_message(response))


def connection_error(descriptor: ProviderDescriptor, url: str, exc: Exception) -> ProviderConnectionError:
    return ProviderConnectionError(
        f"Could not reach {descriptor.name} at {url}: {exc}",
        provider=descriptor.id.value,
        is_local=descriptor.is_local,
    )


async def get_json(descriptor: ProviderDescriptor, url: str, *, headers: Optional[Dict[str, str]] = None) -> Any:
    try:
        async with httpx.AsyncClient(timeout=make_timeout(config.LIST_TIMEOUT)) as client:
            r = await client.get(url, headers=headers)
    except httpx.TransportError as e:
        raise connection_error(descriptor, url, e) from e
    raise_for_status(descriptor, r)
    try:
        return r.json()
    except ValueError as e:
        raise UpstreamError(
            f"Unexpected non-JSON response from {descriptor.name}",
            status_code=r.status_code,
            provider=descriptor.id.value,
        ) from e


class ChunkStream:
    """
    Async iterator of text chunks over one open streaming response.

    Owns the httpx client and response: both are closed when the stream is
    exhausted, fails, or aclose() is called (also before iteration started).
    Transport failures while reading surface as StreamInterrupted.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        client: httpx.AsyncClient,
        response: httpx.Response,
        parse: Callable[[ProviderDescriptor, AsyncIterator[str]], AsyncIterator[str]],
    ) -> None:
        self._descriptor = descriptor
        self._client = client
        self._response = response
        self._chunks = parse(descriptor, response.aiter_lines())
        self._closed = False

    def __aiter__(self) -> "ChunkStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            await self.aclose()
            raise
        except httpx.TransportError as e:
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
            await self._chunks.aclose()
        finally:
            await self._response.aclose()
            await self._client.aclose()


async def open_stream(
    descriptor: ProviderDescriptor,
    url: str,
    *,
    payload: Dict[str, Any],
    parse: Callable[[ProviderDescriptor, AsyncIterator[str]], AsyncIterator[str]],
    headers: Optional[Dict[str, str]] = None,
) -> ChunkStream:
    """Sends the request with stream=True and checks the status before returning."""
    client = httpx.AsyncClient(timeout=make_timeout())
    try:
        response = await client.send(client.build_request("POST", url, json=payload, headers=headers), stream=True)
    except httpx.TransportError as e:
        await client.aclose()
        raise connection_error(descriptor, url, e) from e
    except BaseException:
        await client.aclose()
        raise

    if not response.is_success:
        try:
            await response.aread()
        except httpx.TransportError as e:
            raise _status_error(descriptor, response.status_code, f"HTTP {response.status_code}") from e
        finally:
            await response.aclose()
            await client.aclose()
        raise_for_status(descriptor, response)

    logger.debug("%s: streaming from %s", descriptor.name, url)
    return ChunkStream(descriptor, client, response, parse)


def _in_band_error(descriptor: ProviderDescriptor, data: Dict[str, Any]) -> Optional[StreamInterrupted]:
    err = data.get("error")
    if not err:
        return None
    if isinstance(err, dict):
        err = err.get("message") or json.dumps(err)
    return StreamInterrupted(f"{descriptor.name} error: {err}", provider=descriptor.id.value)


async def parse_ollama_lines(descriptor: ProviderDescriptor, lines: AsyncIterator[str]) -> AsyncIterator[str]:
    async for line in lines:
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(data, dict):
            continue
        message = data.get("message")
        piece = message.get("content") if isinstance(message, dict) else None
        if isinstance(piece, str) and piece:
            yield piece
        err = _in_band_error(descriptor, data)
        if err is not None:
            raise err
        if data.get("done"):
            break

