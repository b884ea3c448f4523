"""
Image URL resolution and inline conversion endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.variant_url import resolve
from ..schemas.images import ConvertRequest, ConvertResponse, ErrorResponse, ResolveResponse
from ..services.image_delivery import PipelineCoordinator, get_coordinator, to_data_uri

router = APIRouter(prefix="/images", tags=["images"])

# Drag-and-drop copies use the largest variant
DEFAULT_CONVERT_SIZE = "grande"


@router.get("/resolve", response_model=ResolveResponse)
def resolve_image(
    url: Optional[str] = Query(None, description="Origin image URL"),
    size: str = Query("medium", description="small | medium | large | grande"),
):
    return ResolveResponse(url=resolve(url, size))


@router.post(
    "/convert",
    response_model=ConvertResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def convert_image(
    payload: ConvertRequest,
    coordinator: PipelineCoordinator = Depends(get_coordinator),
):
    result = await coordinator.deliver_inline(payload.image_url, payload.size or DEFAULT_CONVERT_SIZE)
    return ConvertResponse(
        image=to_data_uri(result),
        size=result.byte_length,
        quality=result.quality,
        original_format=result.original_format,
        converted_to=result.converted_to,
        budget_unmet=True if result.budget_unmet else None,
    )
