from fastapi import Request
from codestream.providers.gateway import ProviderGateway

def get_gateway(request: Request) -> ProviderGateway:
    return request.app.state.gateway
