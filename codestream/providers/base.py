# declares the provider contract (list_models / generate) every backend client implements
# and the error kinds they raise, so the HTTP layer can map them without knowing the backend

from __future__ import annotations
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from codestream.providers.registry import ProviderDescriptor

# markers reasoning models put around their deliberation; clients that receive
# reasoning out of band wrap it in the same pair
REASONING_START = "<think>"
REASONING_END = "</think>"


class ProviderError(Exception):
    """Base class for provider-level failures."""

    def __init__(self, message: str, *, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider


class ProviderConnectionError(ProviderError, ConnectionError):
    """
    Backend unreachable: connection refused, DNS failure, timeout before
    any byte was streamed. `is_local` lets callers suggest starting the server.
    """

    def __init__(self, message: str, *, provider: Optional[str] = None, is_local: bool = False):
        super().__init__(message, provider=provider)
        self.is_local = is_local


class ProviderAuthError(ProviderError):
    """Backend rejected the credentials, or a required API key is not configured."""


class UpstreamError(ProviderError):
    """Any other non-2xx response. `message` is the backend's own text when it sent one."""

    def __init__(self, message: str, *, status_code: int, provider: Optional[str] = None):
        super().__init__(message, provider=provider)
        self.status_code = status_code


class StreamInterrupted(ProviderError):
    """The stream failed after it had started delivering chunks."""


class GenerationRequestError(ValueError):
    pass


@dataclass(frozen=True)
class ModelDescriptor:
    id: str
    name: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    model: str
    system_prompt: Optional[str] = None
    max_tokens: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.prompt or not self.prompt.strip() or not self.model or not self.model.strip():
            raise GenerationRequestError("Prompt and model are required")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise GenerationRequestError("maxTokens must be a positive integer")


class ProviderClient(Protocol):
    """
    Interface the gateway hands out for any backend.

    generate() performs the request and checks the response status before it
    returns, so ProviderConnectionError / ProviderAuthError / UpstreamError are
    raised by the await itself. The returned iterator yields raw text chunks in
    arrival order and raises StreamInterrupted if the transport fails mid-way.
    """

    descriptor: "ProviderDescriptor"

    async def list_models(self) -> list[ModelDescriptor]:
        ...

    async def generate(self, request: GenerationRequest) -> AsyncIterator[str]:
        ...
