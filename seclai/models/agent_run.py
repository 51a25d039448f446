"""
Agent Run Models
================
Pydantic models for agent runs.

AgentRunResponse is the run state delivered by the run endpoints and by
every ``init`` / ``done`` event of the streaming endpoint.

Fields:
    run_id       — run identifier, empty when the server omits it
    status       — server-defined status (pending, processing, completed, failed, ...),
                   empty when the server omits it
    attempts     — attempt history, oldest first
    error_count  — number of failed attempts so far
    priority     — True when the run was started in priority (streaming) mode
    output       — final output, present once available
    metadata     — arbitrary JSON metadata supplied when the run was created

A decoded run state is frozen: later events replace it, they never mutate it.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import PaginationResponse


class AgentRunRequest(BaseModel):
    input: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AgentRunStreamRequest(BaseModel):
    input: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AgentRunAttemptResponse(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    attempt_id: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None


class AgentRunResponse(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    run_id: str = ""
    status: str = ""
    attempts: List[AgentRunAttemptResponse] = []
    error_count: int = Field(default=0, ge=0)
    priority: bool = False
    output: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AgentRunListResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    data: List[AgentRunResponse] = []
    pagination: PaginationResponse = Field(default_factory=PaginationResponse)
