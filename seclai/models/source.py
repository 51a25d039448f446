"""
Source Models
Pydantic models for sources and file uploads.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import PaginationResponse


class SourceResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    source_type: str = ""
    account_id: Optional[str] = None
    content_filter: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SourceListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[SourceResponse] = []
    pagination: PaginationResponse = Field(default_factory=PaginationResponse)


class FileUploadResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    filename: str = ""
    status: str = ""
    content_version_id: Optional[str] = None
