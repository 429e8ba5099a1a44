"""Tests for NDJSON framing."""

import pytest

from tradestation_api.errors import FrameParseError
from tradestation_api.streaming import NdjsonFramer

PAYLOAD = (
    b'{"Symbol":"MSFT","Ask":"410.10"}\n'
    b'{"Heartbeat":1,"Timestamp":"2024-01-02T15:00:00Z"}\n'
    + '{"Symbol":"CAFÉ","Note":"€é"}\n'.encode()
    + b'{"Error":"DualLogon","Message":"Session replaced"}\n'
)


def feed_all(chunks: list[bytes]) -> list:
    framer = NdjsonFramer()
    records = []
    for chunk in chunks:
        records.extend(framer.feed(chunk))
    records.extend(framer.flush())
    return records


class TestNdjsonFramer:
    """Tests for NdjsonFramer."""

    def test_split_record(self) -> None:
        """Test a record split across two chunks is emitted once complete."""
        framer = NdjsonFramer()
        assert framer.feed(b'{"a":1}\n{"b"') == [{"a": 1}]
        assert framer.pending == '{"b"'
        assert framer.feed(b":2}\n") == [{"b": 2}]
        assert framer.pending == ""

    def test_chunking_does_not_change_output(self) -> None:
        """Test every split of the payload yields the same records."""
        expected = feed_all([PAYLOAD])
        assert len(expected) == 4

        for size in (1, 2, 3, 7, 16, 64):
            chunks = [PAYLOAD[i : i + size] for i in range(0, len(PAYLOAD), size)]
            assert feed_all(chunks) == expected

    def test_multibyte_split(self) -> None:
        """Test a UTF-8 character split between chunks survives."""
        data = '{"n":"€"}\n'.encode()
        split = data.index(b"\xe2") + 1
        framer = NdjsonFramer()
        assert framer.feed(data[:split]) == []
        assert framer.feed(data[split:]) == [{"n": "€"}]

    def test_blank_lines_and_crlf(self) -> None:
        """Test blank lines are skipped and CRLF endings tolerated."""
        framer = NdjsonFramer()
        assert framer.feed(b'\n\r\n{"a":1}\r\n  \n') == [{"a": 1}]

    def test_malformed_line_dropped(self) -> None:
        """Test a malformed line is dropped and reported, others kept."""
        errors: list[FrameParseError] = []
        framer = NdjsonFramer(on_error=errors.append)
        records = framer.feed(b'{"a":1}\nnot json\n{"b":2}\n')
        assert records == [{"a": 1}, {"b": 2}]
        assert framer.dropped == 1
        assert errors[0].line == "not json"

    def test_flush_parses_unterminated_tail(self) -> None:
        """Test a final record without newline is parsed on flush."""
        framer = NdjsonFramer()
        assert framer.feed(b'{"a":1}') == []
        assert framer.flush() == [{"a": 1}]
        assert framer.flush() == []

    def test_text_chunks(self) -> None:
        """Test already-decoded text is accepted."""
        framer = NdjsonFramer()
        assert framer.feed('{"a":1}\n') == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_decode_async(self) -> None:
        """Test decoding an async byte stream."""

        async def chunks():
            yield b'{"a":1}\n{"b"'
            yield b':2}\n{"c":3}'

        records = [r async for r in NdjsonFramer().decode(chunks())]
        assert records == [{"a": 1}, {"b": 2}, {"c": 3}]
