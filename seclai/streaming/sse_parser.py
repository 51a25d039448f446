"""
SSE Parser
==========
Incremental Server-Sent Events parser for the run streaming endpoint.

Wire format (subset of the SSE standard):
    - Lines are separated by "\\n"; one trailing "\\r" is stripped
    - Lines starting with ":" are comments / keep-alives and are skipped
    - "field: value" lines; one leading space after the colon is dropped
    - A line without a colon is a field name with an empty value
    - "event" sets the record's event type, "data" appends a payload line,
      any other field is ignored
    - A blank line dispatches the accumulated record

Chunk Handling:
    Bytes may arrive split anywhere, including inside a line or inside a
    multi-byte UTF-8 sequence. The parser keeps the partial line (and the
    decoder keeps the partial character) until the rest arrives.

End of Stream:
    Servers are not required to finish with a blank line, so close()
    processes any partial line and dispatches the pending record once more.

Dispatch:
    Data lines are joined with "\\n" and a single trailing "\\n" is trimmed.
    Records whose joined data is empty are dropped silently.
"""
import codecs
import logging
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamRecord:
    """One dispatched SSE record."""
    event: str
    data: str


class SSEParser:
    """
    Line accumulator for a single stream.

    One parser belongs to one stream; it holds the current event type, the
    pending data lines and the undelimited tail of the byte stream.

    Usage:
        parser = SSEParser()
        for chunk in chunks:
            for record in parser.feed(chunk):
                ...
        for record in parser.close():
            ...
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial = ""
        self._event = ""
        self._data_lines: List[str] = []

    def feed(self, chunk: bytes) -> List[StreamRecord]:
        """Consume a chunk of raw bytes and return the records it completed."""
        text = self._partial + self._decoder.decode(chunk)
        *lines, self._partial = text.split("\n")

        records: List[StreamRecord] = []
        for line in lines:
            record = self.feed_line(line)
            if record is not None:
                records.append(record)
        return records

    def feed_line(self, line: str) -> Optional[StreamRecord]:
        """
        Consume one line (without its "\\n") and return a record when the
        line was a dispatching blank line.
        """
        line = line.rstrip("\r")
        if not line:
            return self._dispatch()
        if line.startswith(":"):
            return None

        field, colon, value = line.partition(":")
        if colon and value.startswith(" "):
            value = value[1:]

        if field == "event":
            self._event = value
        elif field == "data":
            self._data_lines.append(value)
        return None

    def close(self) -> List[StreamRecord]:
        """Flush the stream tail and dispatch whatever is still pending."""
        records: List[StreamRecord] = []
        tail = self._partial + self._decoder.decode(b"", final=True)
        self._partial = ""
        if tail:
            record = self.feed_line(tail)
            if record is not None:
                records.append(record)

        record = self._dispatch()
        if record is not None:
            records.append(record)
        return records

    def _dispatch(self) -> Optional[StreamRecord]:
        if not self._event and not self._data_lines:
            return None

        event = self._event
        data = "\n".join(self._data_lines)
        if data.endswith("\n"):
            data = data[:-1]
        self._event = ""
        self._data_lines = []

        if not data:
            logger.debug("Dropping SSE record with empty data (event=%r)", event)
            return None
        return StreamRecord(event=event, data=data)


async def aiter_records(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamRecord]:
    """
    Yield SSE records from an async byte stream, in arrival order.

    Read errors raised by ``chunks`` propagate unchanged; a clean end of
    the byte stream triggers the final dispatch.
    """
    parser = SSEParser()
    async for chunk in chunks:
        for record in parser.feed(chunk):
            yield record
    for record in parser.close():
        yield record
