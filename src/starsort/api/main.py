from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from ..config import StarSortConfig
from ..errors import StarSortError
from ..github import GitHubClient
from ..logging import StarSortLogger
from ..pipeline import CategorizationPipeline, build_pipeline
from .error_handler import (
    request_validation_handler,
    starsort_exception_handler,
    unhandled_exception_handler,
)
from .middleware import RequestIDMiddleware
from .routes import router


def create_app(pipeline: Optional[CategorizationPipeline] = None) -> FastAPI:
    """Build the app; the pipeline (one cache + coalescer) lives for the process."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if pipeline is None:
            config = StarSortConfig()
            app.state.pipeline = build_pipeline(config, logger=StarSortLogger("starsort"))
        else:
            app.state.pipeline = pipeline
        yield
        source = app.state.pipeline.collector.source
        if isinstance(source, GitHubClient):
            await source.aclose()

    app = FastAPI(title="starsort", version="0.1.0", lifespan=lifespan)
    if pipeline is not None:
        app.state.pipeline = pipeline

    app.add_exception_handler(StarSortError, starsort_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.add_middleware(RequestIDMiddleware)
    app.include_router(router, tags=["Categorize"])
    return app


app = create_app()
