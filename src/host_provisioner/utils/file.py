"""File management utilities."""

from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


class FileManager:
    """Create, read and append to configuration files."""

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize file manager.

        Args:
            dry_run: If True, log writes without touching the filesystem
        """
        self.dry_run = dry_run

    def touch(self, filepath: Path) -> None:
        """Create an empty file if it does not exist.

        Raises:
            OSError: If the file cannot be created
        """
        if self.dry_run:
            logger.info("dry_run_touch", file=str(filepath))
            return
        filepath.touch(exist_ok=True)

    def read_file(self, filepath: Path) -> str:
        """Read file content, empty string if the file is missing.

        Bytes that are not UTF-8 are kept as surrogate escapes.
        """
        try:
            with open(filepath, encoding="utf-8", errors="surrogateescape") as f:
                return f.read()
        except FileNotFoundError:
            return ""

    def has_line(self, filepath: Path, line: str) -> bool:
        """Check whether a file contains a line, ignoring surrounding whitespace."""
        wanted = line.strip()
        return any(
            existing.strip() == wanted
            for existing in self.read_file(filepath).splitlines()
        )

    def append_line(self, filepath: Path, line: str) -> None:
        """Append a single line, starting a new line if the file lacks one.

        Args:
            filepath: Path to file
            line: Line to append, without trailing newline

        Raises:
            OSError: If the file cannot be written
        """
        if self.dry_run:
            logger.info("dry_run_append", file=str(filepath), line=line)
            return

        prefix = ""
        if not self._ends_with_newline(filepath):
            prefix = "\n"

        with open(filepath, "a", encoding="utf-8") as f:
            f.write(f"{prefix}{line}\n")

    @staticmethod
    def _ends_with_newline(filepath: Path) -> bool:
        """True for a missing or empty file, or one whose last byte is a newline."""
        try:
            with open(filepath, "rb") as f:
                f.seek(0, 2)
                if f.tell() == 0:
                    return True
                f.seek(-1, 2)
                return f.read(1) == b"\n"
        except FileNotFoundError:
            return True
