"""
Pydantic models for the Gabber REST API read endpoints.

These models mirror the shapes returned by the list endpoints. Unknown fields
are kept so hosts can read attributes this SDK does not model yet.
"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of results from a list endpoint."""
    values: List[T]
    total_count: int
    next_page: Optional[str] = None


class Voice(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    language: Optional[str] = None
    gender: Optional[str] = None


class Persona(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    description: Optional[str] = None
    voice: Optional[str] = None
    image_url: Optional[str] = None


class Scenario(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    prompt: Optional[str] = None


class HistoryMessage(BaseModel):
    """A stored message from a past session."""
    model_config = ConfigDict(extra="allow")

    id: str
    role: str
    content: str
    created_at: Optional[datetime] = None
