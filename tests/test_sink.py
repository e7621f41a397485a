"""Tests for the pointer file sink.

Run with: pytest tests/test_sink.py -v
"""

from __future__ import annotations

from pathlib import Path

import pytest

from release_selector.errors import OutputUnavailable
from release_selector.schemas import SelectionResult
from release_selector.sink import MemorySink, PointerFileSink


def make_result() -> SelectionResult:
    return SelectionResult(unstable_tag="v22.5.0", stable_tag="v22.4.1")


class TestPointerFileSink:
    def test_writes_raw_tags(self, tmp_path: Path) -> None:
        sink = PointerFileSink(tmp_path / "bin")
        paths = sink.write(make_result())

        assert paths == [tmp_path / "bin" / "latest.txt", tmp_path / "bin" / "stable.txt"]
        assert (tmp_path / "bin" / "latest.txt").read_text() == "v22.5.0"
        assert (tmp_path / "bin" / "stable.txt").read_text() == "v22.4.1"

    def test_creates_nested_directory(self, tmp_path: Path) -> None:
        sink = PointerFileSink(tmp_path / "out" / "pointers")
        sink.write(make_result())
        assert sink.stable_path.exists()

    def test_overwrites_previous_run(self, tmp_path: Path) -> None:
        sink = PointerFileSink(tmp_path)
        sink.write(make_result())
        sink.write(SelectionResult(unstable_tag="v23.0.0", stable_tag="v22.5.0"))

        assert sink.latest_path.read_text() == "v23.0.0"
        assert sink.stable_path.read_text() == "v22.5.0"

    def test_custom_filenames(self, tmp_path: Path) -> None:
        sink = PointerFileSink(tmp_path, latest_filename="unstable", stable_filename="stable")
        sink.write(make_result())
        assert (tmp_path / "unstable").read_text() == "v22.5.0"

    def test_directory_blocked_by_file_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "bin"
        blocker.write_text("not a directory")
        sink = PointerFileSink(blocker)

        with pytest.raises(OutputUnavailable, match="write pointers"):
            sink.write(make_result())

    def test_failed_write_keeps_previous_pointers(self, tmp_path: Path) -> None:
        """If the stable file can't be staged, latest.txt is left untouched."""
        sink = PointerFileSink(tmp_path)
        sink.write(make_result())
        (tmp_path / "stable.txt.tmp").mkdir()

        with pytest.raises(OutputUnavailable):
            sink.write(SelectionResult(unstable_tag="v23.0.0", stable_tag="v22.5.0"))

        assert sink.latest_path.read_text() == "v22.5.0"
        assert sink.stable_path.read_text() == "v22.4.1"
        assert not (tmp_path / "latest.txt.tmp").exists()


class TestMemorySink:
    def test_keeps_results(self) -> None:
        sink = MemorySink()
        sink.write(make_result())
        assert sink.results == [make_result()]
