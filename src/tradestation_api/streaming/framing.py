"""
Newline-delimited JSON framing.

Reassembles records split across arbitrarily sized network chunks:
```
{"Symbol": "MSFT", "Ask": "410.1"}
{"Heartbeat": 1, "Timestamp": "2024-01-01T00:00:00Z"}
```
"""

from __future__ import annotations

import codecs
import json
from typing import TYPE_CHECKING, Any

from tradestation_api.errors import FrameParseError
from tradestation_api.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

logger = get_logger("tradestation_api.streaming")


class NdjsonFramer:
    """Incremental NDJSON decoder with a per-stream frame buffer.

    Chunk boundaries never change the output: feeding the same bytes in any
    split yields the same records in the same order. A line that is not
    valid JSON is dropped and reported, never fatal.

    Example:
        >>> framer = NdjsonFramer()
        >>> framer.feed(b'{"a":1}\\n{"b"')
        [{'a': 1}]
        >>> framer.feed(b':2}\\n')
        [{'b': 2}]
    """

    def __init__(
        self,
        delimiter: str = "\n",
        on_error: Callable[[FrameParseError], None] | None = None,
    ) -> None:
        """Initialize the framer.

        Args:
            delimiter: Record delimiter (default: newline)
            on_error: Called with each dropped line's FrameParseError
        """
        self._delimiter = delimiter
        self._on_error = on_error
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.dropped = 0

    @property
    def pending(self) -> str:
        """The buffered, not yet terminated tail."""
        return self._buffer

    def _parse(self, line: str) -> list[Any]:
        line = line.strip()
        if not line:
            return []
        try:
            return [json.loads(line)]
        except json.JSONDecodeError as e:
            error = FrameParseError(line, cause=e)
            self.dropped += 1
            logger.debug("Dropping malformed stream line", line=error.line[:200])
            if self._on_error is not None:
                self._on_error(error)
            return []

    def feed(self, chunk: bytes | str) -> list[Any]:
        """Add a chunk and return every record it completes.

        Args:
            chunk: Raw bytes (or already decoded text)

        Returns:
            Parsed records, in arrival order
        """
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        if self._delimiter not in self._buffer:
            return []

        *lines, self._buffer = self._buffer.split(self._delimiter)
        records: list[Any] = []
        for line in lines:
            records.extend(self._parse(line))
        return records

    def flush(self) -> list[Any]:
        """Parse whatever remains at end of stream and clear the buffer."""
        remainder = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        return self._parse(remainder)

    async def decode(self, byte_stream: AsyncIterator[bytes]) -> AsyncIterator[Any]:
        """Decode an async byte stream into records.

        Args:
            byte_stream: Async iterator of raw bytes

        Yields:
            Parsed records, with a final flush when the stream ends
        """
        async for chunk in byte_stream:
            for record in self.feed(chunk):
                yield record

        for record in self.flush():
            yield record
