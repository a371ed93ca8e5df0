"""Tests for formatting helpers and file I/O."""

from __future__ import annotations

from pathlib import Path

import pytest

from whisper_transcribe.io import write_text
from whisper_transcribe.utils import format_bytes, format_duration


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "0:00"), (59.9, "0:59"), (125, "2:05"), (3600, "1:00:00"), (3725, "1:02:05")],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_duration(seconds) == expected


class TestFormatBytes:
    @pytest.mark.parametrize(
        "size, expected",
        [
            (512, "512 B"),
            (2048, "2.0 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
            (3 * 1024**3, "3.0 GB"),
        ],
    )
    def test_format(self, size: int, expected: str) -> None:
        assert format_bytes(size) == expected


class TestTextIO:
    def test_write_creates_parents(self, tmp_path: Path) -> None:
        path = tmp_path / "a" / "b" / "out.md"
        write_text(path, "héllo\n")
        assert path.read_text(encoding="utf-8") == "héllo\n"

    def test_overwrite_leaves_no_temp_files(self, tmp_path: Path) -> None:
        path = tmp_path / "out.md"
        write_text(path, "first\n")
        write_text(path, "second\n")
        assert path.read_text(encoding="utf-8") == "second\n"
        assert [p.name for p in tmp_path.iterdir()] == ["out.md"]

    def test_newlines_written_verbatim(self, tmp_path: Path) -> None:
        path = tmp_path / "out.md"
        write_text(path, "a\nb\n")
        assert path.read_bytes() == b"a\nb\n"
