# tests/conftest.py
import os
import logging
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Ensure test-friendly env: nothing leaks in from a developer's .env
for _name in ("DEFAULT_PROVIDER", "MAX_TOKENS", "TEMPERATURE"):
    os.environ.pop(_name, None)
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# IMPORTANT: import the app after envs are set
from codestream.main import create_app
from codestream.core.config import MappingConfigSource
from codestream.providers.gateway import ProviderGateway


@pytest_asyncio.fixture
async def app():
    return create_app()

@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

@pytest.fixture
def use_gateway(app):
    # swap the app's gateway for one backed by fake clients
    def _install(*, default_provider="deepseek", clients=None, values=None) -> ProviderGateway:
        gateway = ProviderGateway(
            default_provider=default_provider,
            config_source=MappingConfigSource(values or {}),
            clients=clients,
        )
        app.state.gateway = gateway
        return gateway
    return _install

@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog
