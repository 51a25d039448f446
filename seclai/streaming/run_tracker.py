"""
Run Tracker
===========
Turns SSE records from the run streaming endpoint into a final run state.

Rules:
    - Only "init" and "done" records are interpreted; others are ignored
    - The payload is decoded as AgentRunResponse; a payload that fails to
      decode (bad JSON or wrong shape) is skipped, it never aborts the wait
    - "init" replaces the last known state
    - "done" replaces the last known state and completes the wait

Best-Effort Result:
    When the stream ends before "done", the last known state is returned.
    Only a stream that never produced a decodable state is an error
    (StreamEndedError).
"""
import logging
from contextlib import aclosing
from typing import AsyncIterable, Optional

from pydantic import ValidationError as PydanticValidationError

from seclai.core.constants import EVENT_DONE, RUN_STATE_EVENTS
from seclai.core.errors import StreamEndedError
from seclai.models.agent_run import AgentRunResponse
from seclai.streaming.sse_parser import StreamRecord, aiter_records

logger = logging.getLogger(__name__)


class RunCompletionTracker:
    """
    Tracks the latest run state seen on one stream.

    Usage:
        tracker = RunCompletionTracker()
        for record in records:
            if tracker.observe(record):
                break
        state = tracker.result()
    """

    def __init__(self) -> None:
        self.last_state: Optional[AgentRunResponse] = None
        self.completed = False

    def observe(self, record: StreamRecord) -> bool:
        """
        Apply one record.

        Returns
        -------
        bool
            True once a decodable "done" record has been observed.
        """
        if record.event not in RUN_STATE_EVENTS:
            logger.debug("Ignoring SSE event %r", record.event)
            return self.completed

        try:
            state = AgentRunResponse.model_validate_json(record.data)
        except PydanticValidationError as exc:
            logger.debug(
                "Skipping undecodable %r payload (%d error(s))",
                record.event, exc.error_count(),
            )
            return self.completed

        self.last_state = state
        if record.event == EVENT_DONE:
            self.completed = True
        logger.debug("Run %s is %s (event=%s)", state.run_id, state.status, record.event)
        return self.completed

    def result(self) -> AgentRunResponse:
        """Return the final (or best-effort) state, or raise StreamEndedError."""
        if self.last_state is None:
            raise StreamEndedError()
        return self.last_state


async def consume_run_stream(chunks: AsyncIterable[bytes]) -> AgentRunResponse:
    """
    Read an SSE byte stream until the run completes or the stream ends.

    Parameters
    ----------
    chunks : AsyncIterable[bytes]
        Raw response body, e.g. ``response.aiter_bytes()``.

    Returns
    -------
    AgentRunResponse
        The "done" state, or the last known state if the stream closed first.

    Raises
    ------
    StreamEndedError
        If the stream closed without any decodable "init" or "done" record.
    """
    tracker = RunCompletionTracker()
    async with aclosing(aiter_records(chunks)) as records:
        async for record in records:
            if tracker.observe(record):
                break
    return tracker.result()
