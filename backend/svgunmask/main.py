"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from svgunmask import __version__
from svgunmask.config import LOG_FORMAT, settings

load_dotenv()

logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


def create_app() -> FastAPI:
    app = FastAPI(
        title="svg-unmask",
        description="Autoregressive layer peeling for SVG documents",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from svgunmask.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()
