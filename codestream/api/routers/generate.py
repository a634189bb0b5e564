import json
import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from codestream.api.deps import get_gateway
from codestream.api.errors import error_kind, error_message, error_response
from codestream.providers.base import GenerationRequestError, ProviderError
from codestream.providers.gateway import ProviderGateway
from codestream.schemas.generate import GenerateCodeRequest
from codestream.services.session import GenerationSession

router = APIRouter(tags=["generate"])
logger = logging.getLogger(__name__)

STREAM_HEADERS = {"Cache-Control": "no-cache"}


@router.post("/api/generate-code")
async def generate_code(body: GenerateCodeRequest, request: Request, gateway: ProviderGateway = Depends(get_gateway)):
    # raw backend text, relayed unmodified; the caller runs its own extraction
    try:
        gen_request = body.to_generation_request()
    except GenerationRequestError as e:
        return error_response(e)

    client = gateway.resolve(body.provider)
    try:
        stream = await client.generate(gen_request)
    except ProviderError as e:
        return error_response(e)

    async def relay():
        try:
            async for chunk in stream:
                if await request.is_disconnected():
                    logger.info("client disconnected, stopping stream")
                    break
                yield chunk.encode("utf-8")
        except ProviderError as e:
            logger.exception("streaming error occurred: %s", e)
            raise
        finally:
            await stream.aclose()

    return StreamingResponse(relay(), media_type="text/plain; charset=utf-8", headers=STREAM_HEADERS)


def _ndjson(data: dict) -> bytes:
    return (json.dumps(data, ensure_ascii=False) + "\n").encode("utf-8")


@router.post("/api/generate-code/snapshots")
async def generate_snapshots(body: GenerateCodeRequest, request: Request, gateway: ProviderGateway = Depends(get_gateway)):
    # one JSON line per snapshot: {"reasoning", "content", "reasoningActive"}
    try:
        gen_request = body.to_generation_request()
    except GenerationRequestError as e:
        return error_response(e)

    session = GenerationSession(gateway.resolve(body.provider), gen_request)
    snapshots = session.snapshots()

    # pull the first snapshot here so failures before streaming get a real status code
    try:
        first = await snapshots.__anext__()
    except StopAsyncIteration:
        first = None
    except ProviderError as e:
        await snapshots.aclose()
        return error_response(e)

    async def streamer():
        try:
            if first is not None:
                yield _ndjson(first.to_dict())
            async for snap in snapshots:
                if await request.is_disconnected():
                    logger.info("client disconnected, cancelling generation")
                    session.cancel()
                    break
                yield _ndjson(snap.to_dict())
        except ProviderError as e:
            logger.exception("streaming error occurred: %s", e)
            yield _ndjson({"error": error_message(e), "kind": error_kind(e)})
        finally:
            await snapshots.aclose()

    return StreamingResponse(streamer(), media_type="application/x-ndjson", headers=STREAM_HEADERS)
