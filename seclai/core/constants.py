"""
Constants
Centralised storage for API defaults, header names and stream event names.
"""
DEFAULT_BASE_URL = "https://seclai.com"
DEFAULT_API_KEY_HEADER = "x-api-key"

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_STREAM_TIMEOUT_SECONDS = 60.0

JSON_CONTENT_TYPE = "application/json"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

# SSE event names emitted by POST /api/agents/{agent_id}/runs/stream
EVENT_INIT = "init"
EVENT_DONE = "done"
RUN_STATE_EVENTS = frozenset({EVENT_INIT, EVENT_DONE})
