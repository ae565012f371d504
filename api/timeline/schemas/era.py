"""
Era schemas.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class EraResponse(BaseModel):
    """Era response schema."""
    id: int
    name: str
    description: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CreateEraRequest(BaseModel):
    """Request schema for creating an era."""
    name: str
    description: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None


class UpdateEraRequest(BaseModel):
    """Request schema for updating an era. Omitted fields are left unchanged."""
    name: Optional[str] = None
    description: Optional[str] = None
    start_year: Optional[int] = None
    end_year: Optional[int] = None


class ErasResponse(BaseModel):
    """Response schema for eras list."""
    eras: List[EraResponse]
