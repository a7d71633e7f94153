from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends, Request

from ..pipeline import CategorizationPipeline
from .schemas import CategorizedResponse, CategorizeRequest, NoItemsResponse, to_response

router = APIRouter()


def get_pipeline(request: Request) -> CategorizationPipeline:
    return request.app.state.pipeline


@router.get("/health")
async def health():
    """Basic liveness check."""
    return {"status": "ok"}


@router.post(
    "/api/v1/categorize",
    response_model=Union[CategorizedResponse, NoItemsResponse],
    response_model_by_alias=True,
)
async def categorize(
    body: CategorizeRequest,
    pipeline: CategorizationPipeline = Depends(get_pipeline),
):
    """
    Categorize a GitHub user's starred repositories.

    Identical concurrent requests share one pipeline run.
    """
    result = await pipeline.run(body.username)
    return to_response(result)
