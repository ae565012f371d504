"""
Reconcile operation schema.
"""
from pydantic import BaseModel
from typing import Optional


class ReconcileOperationResponse(BaseModel):
    """One update/create/delete/skip step of a child-list reconcile."""
    index: int
    action: str
    record_id: Optional[int] = None

    class Config:
        from_attributes = True
