"""
Group download orchestration.

Groups are processed one after another. Within a group, every event is
fetched and materialized on a bounded thread pool; the group finishes only
when all of its event tasks have finished, successfully or not.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from dlmomentos.config import DEFAULT_MAX_WORKERS
from dlmomentos.exceptions import AuthenticationError, DlmomentosError, DownloadFailedError
from dlmomentos.momentos_client import MomentosClient
from dlmomentos.models import EventSummary
from dlmomentos.vtt import iter_vtt
from dlmomentos.writer import OutputWriter

logger = logging.getLogger(__name__)

GroupStatus = Literal["success", "partial", "failed"]

TRANSCRIPT_EXTENSION = "vtt"
RECORDING_EXTENSION = "mp4"


@dataclass(frozen=True)
class EventResult:
    event_id: str
    files: tuple[Path, ...] = ()
    error: DlmomentosError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "status": "success" if self.ok else "error",
            "files": [str(p) for p in self.files],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class GroupResult:
    group_id: str
    events: list[EventResult] = field(default_factory=list)
    index_path: Path | None = None
    error: DlmomentosError | None = None

    @property
    def failed_events(self) -> list[EventResult]:
        return [e for e in self.events if not e.ok]

    @property
    def status(self) -> GroupStatus:
        if self.error is not None:
            return "failed"
        failures = len(self.failed_events)
        if failures == 0:
            return "success"
        if failures == len(self.events):
            return "failed"
        return "partial"

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_id": self.group_id,
            "status": self.status,
            "index": str(self.index_path) if self.index_path else None,
            "total_events": len(self.events),
            "failed_events": len(self.failed_events),
            "events": [e.to_dict() for e in self.events],
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class DownloadReport:
    groups: list[GroupResult] = field(default_factory=list)

    @property
    def failed_events(self) -> int:
        return sum(len(g.failed_events) for g in self.groups)

    @property
    def failed_groups(self) -> list[GroupResult]:
        return [g for g in self.groups if g.status == "failed"]

    @property
    def ok(self) -> bool:
        return not self.failed_groups

    def to_dict(self) -> dict[str, Any]:
        if not self.failed_groups and self.failed_events == 0:
            status = "success"
        elif self.ok:
            status = "partial_success"
        else:
            status = "error"
        return {
            "status": status,
            "total_groups": len(self.groups),
            "failed_groups": len(self.failed_groups),
            "failed_events": self.failed_events,
            "groups": [g.to_dict() for g in self.groups],
        }


class GroupDownloader:
    """Download the index, transcripts, and recordings of Momentos groups"""

    def __init__(
        self,
        client: MomentosClient,
        writer: OutputWriter,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        show_progress: bool = False,
        console: Console | None = None,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.client = client
        self.writer = writer
        self.max_workers = max_workers
        self.show_progress = show_progress
        self.console = console

    def download_groups(self, group_ids: Iterable[str]) -> DownloadReport:
        """
        Download every group in order.

        A group whose listing fails is recorded as failed and the next group
        is still attempted. A rejected credential aborts the whole run.

        Raises:
            AuthenticationError: If the service rejects the credential while listing
        """
        report = DownloadReport()
        for group_id in group_ids:
            report.groups.append(self.download_group(group_id))
        return report

    def download_group(self, group_id: str) -> GroupResult:
        result = GroupResult(group_id=group_id)
        logger.info(f"Processing group {group_id}")

        try:
            events = self.client.get_grouped_events(group_id)
            self.writer.ensure_group_directory(group_id)
            result.index_path = self.writer.write_index(group_id, events)
        except AuthenticationError:
            raise
        except DlmomentosError as e:
            logger.error(f"Group {group_id} failed: {e.message}")
            result.error = e
            return result

        logger.info(f"Group {group_id}: {len(events)} events")
        if events:
            result.events = self._download_events(group_id, events)
        return result

    def _download_events(self, group_id: str, events: list[EventSummary]) -> list[EventResult]:
        progress = self._make_progress()
        task_id = None
        if progress is not None:
            progress.start()
            task_id = progress.add_task(f"Group {group_id}", total=len(events))

        results: dict[str, EventResult] = {}
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix=f"dlmomentos-{group_id}"
        )
        try:
            futures: dict[Future[EventResult], str] = {
                executor.submit(self._download_event, group_id, event.id): event.id
                for event in events
            }
            for future in as_completed(futures):
                event_id = futures[future]
                try:
                    results[event_id] = future.result()
                except Exception as e:
                    logger.debug(f"Unexpected error for event {event_id}", exc_info=True)
                    error = DownloadFailedError(
                        f"Event {event_id} failed unexpectedly", details=f"{type(e).__name__}: {e}"
                    )
                    results[event_id] = EventResult(event_id=event_id, error=error)
                if progress is not None and task_id is not None:
                    progress.advance(task_id)
        except BaseException:
            # Interrupted: drop queued events, let running writes finish or fail
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        else:
            executor.shutdown(wait=True)
        finally:
            if progress is not None:
                progress.stop()

        # Report in listing order rather than completion order
        return [results[event.id] for event in events if event.id in results]

    def _download_event(self, group_id: str, event_id: str) -> EventResult:
        logger.info(f"Downloading event {event_id}")
        try:
            event = self.client.get_event(group_id, event_id)
        except DlmomentosError as e:
            logger.error(f"Event {event_id} failed: {e.code}: {e.message}")
            return EventResult(event_id=event_id, error=e)

        # Transcript and recording are written independently of each other
        outcomes: list[Path | DlmomentosError] = []
        if event.transcript is not None:
            outcomes.append(
                self._write_artifact(
                    group_id, event_id, TRANSCRIPT_EXTENSION, iter_vtt(event.transcript)
                )
            )
        else:
            logger.info(f"Event {event_id} has no transcript, skipping")

        if event.recording.presigned_url is not None:
            outcomes.append(
                self._write_artifact(
                    group_id,
                    event_id,
                    RECORDING_EXTENSION,
                    self.client.iter_recording(event.recording.presigned_url),
                )
            )
        else:
            logger.info(f"Event {event_id} recording is not available yet, skipping")

        files = tuple(o for o in outcomes if isinstance(o, Path))
        errors = [o for o in outcomes if isinstance(o, DlmomentosError)]
        if errors:
            return EventResult(event_id=event_id, files=files, error=errors[0])

        logger.info(f"Done with event {event_id}")
        return EventResult(event_id=event_id, files=files)

    def _write_artifact(
        self, group_id: str, event_id: str, extension: str, content: Iterable[bytes]
    ) -> Path | DlmomentosError:
        try:
            return self.writer.write_named_file(group_id, event_id, extension, content)
        except DlmomentosError as e:
            logger.error(f"Event {event_id} {extension} failed: {e.code}: {e.message}")
            return e

    def _make_progress(self) -> Progress | None:
        if not self.show_progress:
            return None
        return Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=False,
        )
