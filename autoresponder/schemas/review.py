"""
Pydantic models for storefront reviews as the pipeline reads them.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class Review(BaseModel):
    """A customer review, read-only to the pipeline."""
    id: int
    product_id: int
    author: str = ""
    body: str = ""
    rating: int = Field(0, ge=0, le=5, description="0 means unrated")
    approved: bool = False
    created_at: Optional[datetime] = None
