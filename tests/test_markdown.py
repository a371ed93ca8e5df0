"""Tests for transcript Markdown assembly."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from whisper_transcribe.config import TranscriptionJob
from whisper_transcribe.exceptions import OutputError
from whisper_transcribe.extract.metadata import VideoMetadata
from whisper_transcribe.formatter.markdown import (
    build_attribution,
    build_content,
    fix_common_issues,
    normalize_upload_date,
    render_markdown,
    sanitize_title,
    slugify,
    write_markdown,
)

TODAY = date(2024, 2, 1)


class TestBuildContent:
    def test_sentences_become_separate_paragraphs(self, make_segments) -> None:
        segments = make_segments(["One.", "Two.", "Three.", "Four."])
        content = build_content(segments, include_timestamps=False)
        assert content == "One.\n\nTwo.\n\nThree.\n\nFour."
        assert all(len(line) <= 80 for line in content.split("\n"))

    def test_flush_after_five_segments(self, make_segments) -> None:
        segments = make_segments(["a", "b", "c", "d", "e", "f"])
        assert build_content(segments, include_timestamps=False) == "a b c d e\n\nf"

    def test_five_segment_count_restarts_after_punctuation(self, make_segments) -> None:
        segments = make_segments(["a", "b.", "c", "d", "e", "f", "g", "h"])
        content = build_content(segments, include_timestamps=False)
        assert content == "a b.\n\nc d e f g\n\nh"

    def test_question_and_exclamation_flush(self, make_segments) -> None:
        segments = make_segments(["Really?", "Yes!", "ok"])
        assert build_content(segments, include_timestamps=False) == "Really?\n\nYes!\n\nok"

    def test_timestamped_lines(self, make_segments) -> None:
        segments = make_segments(["Hello there.", "General remarks"])
        content = build_content(segments, include_timestamps=True)
        assert content == "**[00:00]** Hello there.\n\n**[00:05]** General remarks"

    def test_giant_word_wrapped(self, make_segments) -> None:
        segments = make_segments(["q" * 200])
        content = build_content(segments, include_timestamps=False)
        assert content.split("\n") == ["q" * 80, "q" * 80, "q" * 40]

    def test_empty_segments(self) -> None:
        assert build_content([], include_timestamps=False) == ""


class TestFixCommonIssues:
    def test_trailing_whitespace_removed(self) -> None:
        assert fix_common_issues("line one  \nline two\t\n") == "line one\nline two\n"

    def test_three_blank_lines_collapse_to_one(self) -> None:
        assert fix_common_issues("a\n\n\n\nb\n") == "a\n\nb\n"

    def test_shorter_blank_runs_kept(self) -> None:
        assert fix_common_issues("a\n\nb\n") == "a\n\nb\n"
        assert fix_common_issues("a\n\n\nb\n") == "a\n\n\nb\n"

    def test_single_trailing_newline(self) -> None:
        assert fix_common_issues("text") == "text\n"
        assert fix_common_issues("text\n\n\n") == "text\n"

    def test_idempotent(self) -> None:
        samples = [
            "a  \n\n\n\n\nb \n\n",
            "# Title\n\n\n\n> quote   \n\n\ntext",
            "",
            "\n\n\n\n",
        ]
        for sample in samples:
            once = fix_common_issues(sample)
            assert fix_common_issues(once) == once


class TestHelpers:
    def test_upload_date_normalized(self) -> None:
        assert normalize_upload_date("20240115") == "2024-01-15"

    def test_unexpected_upload_date_passed_through(self) -> None:
        assert normalize_upload_date("2024011") == "2024011"
        assert normalize_upload_date("") == ""

    def test_sanitize_title(self) -> None:
        assert sanitize_title(' Part "One": a/b\\c ') == "Part 'One'- a-b-c"

    def test_slugify(self) -> None:
        assert slugify("Test Video: Part 1") == "test-video-part-1"

    def test_slugify_fallback(self) -> None:
        assert slugify("!!!") == "transcript"
        assert slugify("") == "transcript"

    def test_slugify_truncates_at_dash(self) -> None:
        slug = slugify(" ".join(["word"] * 20))
        assert len(slug) <= 60
        assert slug == "-".join(["word"] * 12)[:59]
        assert not slug.endswith("-")

    def test_attribution_with_link(self) -> None:
        text = build_attribution("Chan", "https://example.com/c", "2024-02-01")
        assert text == "> Transcribed from [Chan](https://example.com/c) on 2024-02-01"

    def test_attribution_without_link(self) -> None:
        text = build_attribution("Chan", "", "2024-02-01")
        assert text == "> Transcribed from Chan on 2024-02-01"

    def test_attribution_unknown_channel(self) -> None:
        text = build_attribution("", "", "2024-02-01")
        assert text == "> Transcribed from an unknown source on 2024-02-01"


class TestRenderMarkdown:
    def test_frontmatter(
        self, sample_metadata: VideoMetadata, sample_segments, job: TranscriptionJob
    ) -> None:
        doc = render_markdown(sample_metadata, sample_segments, job, today=TODAY)
        lines = doc.split("\n")
        assert lines[0] == "---"
        assert 'title: "Test Video- Part 1"' in lines
        assert 'source: "https://example.com/watch?v=abc123"' in lines
        assert 'channel: "Test Channel"' in lines
        assert 'uploaded: "2024-01-15"' in lines
        assert 'transcribed: "2024-02-01"' in lines
        assert 'duration: "2:05"' in lines
        assert 'model: "whisper-base"' in lines

    def test_body(self, sample_metadata, sample_segments, job) -> None:
        doc = render_markdown(sample_metadata, sample_segments, job, today=TODAY)
        assert "\n# Test Video- Part 1\n" in doc
        assert (
            "> Transcribed from [Test Channel](https://example.com/channel/test) on\n"
            "> 2024-02-01\n" in doc
        )
        assert "\n## Transcription\n\nWelcome to the show.\n\n" in doc
        assert doc.endswith("Today we talk about rivers and the towns built on them.\n")

    def test_lines_within_width(self, sample_metadata, make_segments, job) -> None:
        segments = make_segments(["word " * 40, "x" * 300 + "."])
        doc = render_markdown(sample_metadata, segments, job, today=TODAY)
        body = doc.split("## Transcription", 1)[1]
        assert all(len(line) <= 80 for line in body.split("\n"))

    def test_untitled(self, make_segments, job) -> None:
        doc = render_markdown(VideoMetadata(), make_segments(["Hi."]), job, today=TODAY)
        assert 'title: "Untitled"' in doc
        assert "\n# Untitled\n" in doc

    def test_channel_quotes_escaped(self, make_segments, job) -> None:
        metadata = VideoMetadata(title="T", channel='The "Best" Channel')
        doc = render_markdown(metadata, make_segments(["Hi."]), job, today=TODAY)
        assert "channel: \"The 'Best' Channel\"" in doc

    def test_timestamps(self, sample_metadata, sample_segments, job) -> None:
        stamped = job.model_copy(update={"include_timestamps": True})
        doc = render_markdown(sample_metadata, sample_segments, stamped, today=TODAY)
        assert "**[00:00]** Welcome to the show." in doc
        assert "**[00:05]** Today we talk about rivers" in doc

    def test_output_is_fixed_point(self, sample_metadata, sample_segments, job) -> None:
        doc = render_markdown(sample_metadata, sample_segments, job, today=TODAY)
        assert fix_common_issues(doc) == doc


class TestWriteMarkdown:
    def test_writes_slugged_file(self, sample_metadata, sample_segments, job) -> None:
        path = write_markdown(sample_metadata, sample_segments, job, today=TODAY)
        assert path == job.output_dir / "test-video-part-1.md"
        assert path.read_text(encoding="utf-8") == render_markdown(
            sample_metadata, sample_segments, job, today=TODAY
        )

    def test_fallback_filename(self, sample_segments, job) -> None:
        path = write_markdown(VideoMetadata(title="???"), sample_segments, job, today=TODAY)
        assert path.name == "transcript.md"

    def test_unwritable_output_dir(
        self, sample_metadata, sample_segments, job, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        blocked_job = job.model_copy(update={"output_dir": blocker})
        with pytest.raises(OutputError):
            write_markdown(sample_metadata, sample_segments, blocked_job, today=TODAY)
