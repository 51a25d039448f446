"""
Common Models
=============
Pydantic models shared across resources: pagination and the 422
validation-error payload.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict


class ValidationError(BaseModel):
    """One entry of a 422 ``detail`` list."""
    model_config = ConfigDict(extra="allow")

    loc: List[Union[str, int]] = []
    msg: str
    type: str = ""


class HTTPValidationError(BaseModel):
    model_config = ConfigDict(extra="allow")

    detail: Optional[List[ValidationError]] = None


class PaginationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    has_next: bool = False
    has_prev: bool = False
    limit: int = 0
    page: int = 0
    pages: int = 0
    total: int = 0
