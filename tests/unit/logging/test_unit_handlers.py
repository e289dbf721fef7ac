# tests/unit/logging/test_unit_handlers.py — v2
"""Tests for logging/handlers.py."""

from __future__ import annotations

import pytest

from signalcx.logging.handlers import create_rotating_handler, parse_size


class TestParseSize:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("10MB", 10 * 1024**2), ("512kb", 512 * 1024), ("1GB", 1024**3), (" 7 B ", 7)],
    )
    def test_valid(self, text, expected):
        assert parse_size(text) == expected

    @pytest.mark.parametrize("text", ["", "10", "ten MB", "5TB"])
    def test_invalid(self, text):
        with pytest.raises(ValueError, match="Invalid size"):
            parse_size(text)


class TestCreateRotatingHandler:
    def test_creates_parent_lazily_opens(self, tmp_path):
        path = tmp_path / "nested" / "app.log"
        handler = create_rotating_handler(path, rotation="1KB", retention=3)
        assert path.parent.is_dir()
        assert not path.exists()
        assert handler.maxBytes == 1024
        assert handler.backupCount == 3
        handler.close()

    def test_negative_retention_clamped(self, tmp_path):
        handler = create_rotating_handler(tmp_path / "a.log", retention=-1)
        assert handler.backupCount == 0
        handler.close()
