"""
Content Models
Pydantic models for content versions and their embeddings.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import PaginationResponse


class ContentDetailResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    content_version_id: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None
    total_length: Optional[int] = None


class ContentEmbeddingResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    text: Optional[str] = None
    vector: Optional[List[float]] = None
    metadata: Optional[Any] = None


class ContentEmbeddingsListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[ContentEmbeddingResponse] = []
    pagination: PaginationResponse = Field(default_factory=PaginationResponse)
