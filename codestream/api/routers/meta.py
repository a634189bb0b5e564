from typing import List, Optional
from fastapi import APIRouter, Depends

from codestream.api.deps import get_gateway
from codestream.api.errors import error_response
from codestream.providers.base import ProviderError
from codestream.providers.gateway import ProviderGateway
from codestream.schemas.generate import DefaultProviderResponse, ModelInfo, ProviderInfo
from codestream.services.system_prompts import list_presets

router = APIRouter(tags=["meta"])


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/api/providers", response_model=List[ProviderInfo])
def list_providers(gateway: ProviderGateway = Depends(get_gateway)):
    return [d.to_dict() for d in gateway.list()]


@router.get("/api/default-provider", response_model=DefaultProviderResponse)
def default_provider(gateway: ProviderGateway = Depends(get_gateway)):
    return {"defaultProvider": gateway.default_id().value}


@router.get("/api/system-prompts")
def system_prompts() -> dict:
    return {"presets": list_presets()}


@router.get("/api/models", response_model=List[ModelInfo])
async def list_models(provider: Optional[str] = None, gateway: ProviderGateway = Depends(get_gateway)):
    client = gateway.resolve(provider)
    try:
        models = await client.list_models()
    except ProviderError as e:
        return error_response(e)
    return [m.to_dict() for m in models]
