"""Output sinks for the selected release tags.

The promotion pipeline reads two pointer files: one naming the latest
(unstable) release and one naming the stable release. Each holds the raw
tag and nothing else, with no trailing newline.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from release_selector.errors import OutputUnavailable
from release_selector.logging_config import get_logger
from release_selector.schemas import SelectionResult

logger = get_logger(__name__)


class OutputSinkProtocol(Protocol):
    """Protocol for persisting a selection result."""

    def write(self, result: SelectionResult) -> None:
        ...


class PointerFileSink:
    """Writes the two tags as pointer files in a directory.

    Usage:
        sink = PointerFileSink("bin")
        sink.write(result)   # bin/latest.txt, bin/stable.txt
    """

    def __init__(
        self,
        output_dir: str | Path = "bin",
        latest_filename: str = "latest.txt",
        stable_filename: str = "stable.txt",
    ) -> None:
        """Initialize with output location.

        Args:
            output_dir: Directory to write the pointer files into
            latest_filename: File receiving the unstable tag
            stable_filename: File receiving the stable tag
        """
        self._output_dir = Path(output_dir)
        self.latest_path = self._output_dir / latest_filename
        self.stable_path = self._output_dir / stable_filename

    def write(self, result: SelectionResult) -> list[Path]:
        """Write both pointer files, creating the directory if needed.

        Both tags are staged in temporary files first, so a failed write
        leaves the previous pointers in place.

        Returns:
            The paths written, latest first

        Raises:
            OutputUnavailable: If the directory or either file can't be written
        """
        pointers = [
            (self.latest_path, result.unstable_tag),
            (self.stable_path, result.stable_tag),
        ]
        staged: list[tuple[Path, Path]] = []
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            for path, tag in pointers:
                tmp = path.with_name(path.name + ".tmp")
                tmp.write_text(tag)
                staged.append((tmp, path))
            for tmp, path in staged:
                tmp.replace(path)
        except OSError as exc:
            for tmp, _ in staged:
                tmp.unlink(missing_ok=True)
            raise OutputUnavailable(f"write pointers to {self._output_dir}: {exc}") from exc

        logger.info(
            "pointers_written",
            latest=str(self.latest_path),
            stable=str(self.stable_path),
        )
        return [self.latest_path, self.stable_path]


class MemorySink:
    """Keeps results in memory. Used for dry runs and tests."""

    def __init__(self) -> None:
        self.results: list[SelectionResult] = []

    def write(self, result: SelectionResult) -> None:
        self.results.append(result)
