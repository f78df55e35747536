"""
Output writer: group directories, index files, and streamed artifacts
"""

from __future__ import annotations

import errno
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from dlmomentos.exceptions import FileWriteError
from dlmomentos.models import EventSummary

INDEX_FILENAME = "index.csv"
INDEX_HEADER = "ID,Title,Published\n"


def _check_component(value: str, what: str) -> str:
    """Reject anything that is not a single, plain path component."""
    if (
        not value
        or value in (".", "..")
        or "/" in value
        or "\\" in value
        or "\x00" in value
    ):
        raise FileWriteError(f"Refusing to use {what} {value!r} as a path component")
    return value


class OutputWriter:
    """Write per-group output under a root directory.

    Every file is written to a temporary sibling first, flushed and fsynced,
    then atomically renamed over the target. A failed or interrupted write
    leaves the previous file (if any) untouched and removes the temporary.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        # mkstemp creates 0600 files; finished files get the usual umask-derived mode
        umask = os.umask(0)
        os.umask(umask)
        self.file_mode = 0o666 & ~umask
        self.logger = logging.getLogger(__name__)

    def group_dir(self, group_id: str) -> Path:
        return self.output_dir / _check_component(group_id, "group ID")

    def ensure_group_directory(self, group_id: str) -> Path:
        path = self.group_dir(group_id)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileWriteError(
                f"Cannot create directory {path}", details=f"{e.strerror or e}"
            ) from e
        return path

    def write_index(self, group_id: str, events: Iterable[EventSummary]) -> Path:
        """
        Write index.csv mapping event IDs to titles.

        Rows are written as-is without CSV quoting, so a title containing a
        comma spills into extra columns. Such titles are logged.
        """

        def _rows() -> Iterable[bytes]:
            yield INDEX_HEADER.encode("utf-8")
            for event in events:
                if "," in event.title or "\n" in event.title:
                    self.logger.warning(
                        f"Title of event {event.id} contains a separator; "
                        "index.csv columns will not line up for this row"
                    )
                published = "true" if event.published else "false"
                yield f"{event.id},{event.title},{published}\n".encode()

        return self._write_atomic(self.group_dir(group_id) / INDEX_FILENAME, _rows())

    def write_named_file(
        self,
        group_id: str,
        name: str,
        extension: str,
        content: Iterable[bytes],
    ) -> Path:
        """
        Write <group_id>/<name>.<extension> from a stream of byte chunks

        Args:
            group_id: Group directory (must already exist)
            name: File stem, typically the event ID
            extension: File extension without the dot
            content: Byte chunks, consumed incrementally

        Returns:
            Path to the written file

        Raises:
            FileWriteError: If the file cannot be written
            NetworkError: Propagated unchanged from a streaming content source
        """
        _check_component(name, "file name")
        _check_component(extension, "file extension")
        target = self.group_dir(group_id) / f"{name}.{extension}"
        return self._write_atomic(target, content)

    def _write_atomic(self, target: Path, chunks: Iterable[bytes]) -> Path:
        try:
            tmp_fd, tmp_name = tempfile.mkstemp(
                dir=str(target.parent), prefix=f".{target.name}.", suffix=".part"
            )
        except OSError as e:
            raise FileWriteError(
                f"Cannot create file in {target.parent}", details=f"{e.strerror or e}"
            ) from e

        written = 0
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                for chunk in chunks:
                    f.write(chunk)
                    written += len(chunk)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, self.file_mode)
            os.replace(tmp_name, target)
        except OSError as e:
            self._discard(tmp_name)
            if e.errno == errno.ENOSPC:
                raise FileWriteError(
                    f"Disk full while writing {target.name}", details=f"Failed to write: {e}"
                ) from e
            raise FileWriteError(
                f"Failed to write {target}", details=f"{e.strerror or e}"
            ) from e
        except BaseException:
            self._discard(tmp_name)
            raise

        self.logger.info(f"Wrote {target} ({written} bytes)")
        return target

    def _discard(self, tmp_name: str) -> None:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not remove partial file {tmp_name}: {e}")
