# codestream/main.py
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codestream.core import config
from codestream.core.config import EnvConfigSource
from codestream.api.routers.meta import router as meta_router
from codestream.api.routers.generate import router as generate_router
from codestream.providers.gateway import ProviderGateway


def create_app() -> FastAPI:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="codestream", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # one gateway per app; base URLs and keys are still read from the
    # environment on every resolve(), only the default provider is fixed here
    app.state.gateway = ProviderGateway(
        default_provider=config.DEFAULT_PROVIDER,
        config_source=EnvConfigSource(),
    )

    # Routers
    app.include_router(meta_router)
    app.include_router(generate_router)

    return app


app = create_app()
