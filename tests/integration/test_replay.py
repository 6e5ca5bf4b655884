"""
Integration tests for signal log replay.
"""

import json

import pytest

from aiobserver.capture.replay import replay_signals


def _line(**record):
    return json.dumps(record)


class TestReplay:
    """Test replay_signals."""

    @pytest.mark.asyncio
    async def test_replay_reproduces_latency(self, event_bus, captured):
        uri = "file:///work/src/app.py"
        lines = [
            _line(signal="selection", uri=uri, language="python", text="foo\n", line=1, character=0, time=10_000),
            _line(signal="text", uri=uri, language="python", time=12_000,
                  changes=[{"line": 1, "character": 0, "text": "x" * 25 + "\n" + "y" * 10}]),
            "",
            "not json",
            _line(signal="teleport"),
            _line(signal="editor", uri="file:///work/other.py"),
        ]

        delivered = await replay_signals(lines, event_bus, workspace_root="/work")

        assert delivered == 3
        assert len(captured) == 1
        assert captured[0].prompt == "foo\n"
        assert captured[0].latency_ms == 2_000
        assert captured[0].timestamp == 12_000
        assert captured[0].source_locator == "src/app.py"
