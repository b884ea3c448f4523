"""
Request/response schemas for the image endpoints.
"""

from typing import Optional, Union
from pydantic import BaseModel, Field


class ConvertRequest(BaseModel):
    """Schema for an inline conversion request."""
    image_url: Optional[str] = Field(None, alias="imageUrl")
    size: Optional[str] = None

    model_config = {"populate_by_name": True}


class ConvertResponse(BaseModel):
    """Self-contained payload as a data URI."""
    success: bool = True
    image: str
    size: int
    quality: Union[int, str]
    original_format: str = Field(..., alias="originalFormat")
    converted_to: Optional[str] = Field(None, alias="convertedTo")
    budget_unmet: Optional[bool] = Field(None, alias="budgetUnmet")

    model_config = {"populate_by_name": True}


class ResolveResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
