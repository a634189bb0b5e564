# maps provider error kinds to HTTP responses so the UI can show backend-specific guidance
# (a local server that isn't running vs. a bad remote API key)

import logging
from fastapi.responses import JSONResponse

from codestream.providers.base import (
    GenerationRequestError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    StreamInterrupted,
    UpstreamError,
)
from codestream.providers.registry import parse_provider_id, get_descriptor

logger = logging.getLogger(__name__)


def error_kind(exc: Exception) -> str:
    if isinstance(exc, GenerationRequestError):
        return "validation"
    if isinstance(exc, ProviderConnectionError):
        return "connection"
    if isinstance(exc, ProviderAuthError):
        return "auth"
    if isinstance(exc, UpstreamError):
        return "upstream"
    if isinstance(exc, StreamInterrupted):
        return "stream_interrupted"
    return "internal"


def error_message(exc: Exception) -> str:
    message = str(exc)
    if isinstance(exc, ProviderConnectionError) and exc.is_local:
        provider_id = parse_provider_id(exc.provider)
        name = get_descriptor(provider_id).name if provider_id else "local"
        message = f"{message}. Is the {name} server running?"
    return message


def error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, GenerationRequestError):
        status = 400
    elif isinstance(exc, ProviderConnectionError):
        status = 503
    elif isinstance(exc, ProviderAuthError):
        status = 401
    elif isinstance(exc, (UpstreamError, StreamInterrupted)):
        status = 502
    else:
        status = 500

    if isinstance(exc, ProviderError):
        logger.warning("provider error [%s] provider=%s: %s", error_kind(exc), exc.provider, exc)
    return JSONResponse({"error": error_message(exc), "kind": error_kind(exc)}, status_code=status)
