"""Per-slide task status tracking for concurrent generation work."""

import asyncio
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

import structlog

from carouselai.core.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class TaskKind(str, Enum):
    """Kinds of per-slide generation work."""
    IMAGE = "image"
    BACKGROUND = "background"
    STYLIZE = "stylize"
    EDIT = "edit"
    REFINE = "refine"


class TaskStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)


TaskKey = Tuple[str, TaskKind]


@dataclass
class TaskRecord:
    """One tracked unit of work against a slide."""
    token: str
    slide_id: str
    kind: TaskKind
    status: TaskStatus = TaskStatus.RUNNING
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    @property
    def key(self) -> TaskKey:
        return (self.slide_id, self.kind)

    @property
    def duration_ms(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() * 1000


@dataclass
class BatchRun:
    """A batch of same-kind tasks joined with all-settled semantics."""
    batch_id: str
    kind: TaskKind
    slide_ids: List[str]
    statuses: Dict[str, TaskStatus] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    running: bool = True
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    completed: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def succeeded(self) -> int:
        return sum(1 for s in self.statuses.values() if s == TaskStatus.SUCCEEDED)

    @property
    def failed(self) -> int:
        return sum(1 for s in self.statuses.values() if s == TaskStatus.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "batch_id": self.batch_id,
            "kind": self.kind.value,
            "slide_ids": list(self.slide_ids),
            "statuses": {k: v.value for k, v in self.statuses.items()},
            "errors": dict(self.errors),
            "running": self.running,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }


TaskListener = Callable[[TaskRecord], None]


class TaskTracker:
    """Tracks running and recently finished tasks per (slide id, kind).

    Starting a task never blocks or queues, so several tasks for the same key
    may overlap. A completion is dropped as superseded while a newer task for
    the same key is still running; otherwise the completing task records its
    outcome. Finished statuses are pruned after a delay.
    """

    def __init__(
        self,
        clear_delay: Optional[float] = None,
        batch_settle_delay: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.clear_delay = settings.STATUS_CLEAR_DELAY_SECONDS if clear_delay is None else clear_delay
        self.batch_settle_delay = (
            settings.BATCH_SETTLE_DELAY_SECONDS if batch_settle_delay is None else batch_settle_delay
        )
        self._active: Dict[str, TaskRecord] = {}
        self._running_by_key: Dict[TaskKey, Set[str]] = defaultdict(set)
        self._latest: Dict[TaskKey, str] = {}
        self._finished: Dict[TaskKey, TaskRecord] = {}
        self._batches: Dict[str, BatchRun] = {}
        self.listeners: List[TaskListener] = []

    def add_listener(self, listener: TaskListener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: TaskListener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def start(self, slide_id: str, kind: TaskKind) -> str:
        """Mark a task running and return its token."""
        record = TaskRecord(token=uuid.uuid4().hex, slide_id=slide_id, kind=TaskKind(kind))
        self._active[record.token] = record
        self._running_by_key[record.key].add(record.token)
        self._latest[record.key] = record.token

        logger.debug("task_started", slide_id=slide_id, kind=record.kind.value, token=record.token)
        self._notify(record)
        return record.token

    def complete(self, token: str, error: Optional[BaseException] = None) -> Optional[TaskRecord]:
        """Finish the task behind ``token``.

        Returns the recorded outcome, or ``None`` when a newer task for the
        same key is still running.
        """
        record = self._active.pop(token, None)
        if record is None:
            logger.warning("unknown_task_completed", token=token)
            return None

        key = record.key
        self._running_by_key[key].discard(token)
        if not self._running_by_key[key]:
            del self._running_by_key[key]

        record.completed_at = datetime.now(timezone.utc)
        record.status = TaskStatus.FAILED if error is not None else TaskStatus.SUCCEEDED
        record.error = (str(error) or type(error).__name__) if error is not None else None

        latest = self._latest.get(key)
        if latest != token and latest in self._active:
            logger.info(
                "task_completion_superseded",
                slide_id=record.slide_id,
                kind=record.kind.value,
                status=record.status.value,
            )
            return None

        self._finished[key] = record
        logger.info(
            "task_completed",
            slide_id=record.slide_id,
            kind=record.kind.value,
            status=record.status.value,
            duration_ms=record.duration_ms,
            error=record.error,
        )
        self._notify(record)
        self._schedule(self.clear_delay, self._prune, key, token)
        return record

    async def run(self, slide_id: str, kind: TaskKind, operation: Callable[[], Awaitable[T]]) -> T:
        """Track ``operation`` from start to completion; errors re-raise.

        Cancellation also completes the task, recorded as failed.
        """
        token = self.start(slide_id, kind)
        try:
            result = await operation()
        except BaseException as e:
            self.complete(token, error=e)
            raise
        self.complete(token)
        return result

    def status(self, slide_id: str, kind: TaskKind) -> TaskStatus:
        key = (slide_id, TaskKind(kind))
        if self._running_by_key.get(key):
            return TaskStatus.RUNNING
        record = self._finished.get(key)
        return record.status if record else TaskStatus.IDLE

    def is_running(self, slide_id: str, kind: TaskKind) -> bool:
        return self.status(slide_id, kind) == TaskStatus.RUNNING

    def statuses(self) -> Dict[str, Dict[str, str]]:
        """Visible statuses keyed by slide id, then task kind."""
        result: Dict[str, Dict[str, str]] = defaultdict(dict)
        for (slide_id, kind), record in self._finished.items():
            result[slide_id][kind.value] = record.status.value
        for slide_id, kind in self._running_by_key:
            result[slide_id][kind.value] = TaskStatus.RUNNING.value
        return dict(result)

    def batches(self) -> List[BatchRun]:
        return list(self._batches.values())

    def get_batch(self, batch_id: str) -> Optional[BatchRun]:
        return self._batches.get(batch_id)

    async def run_batch(
        self,
        slide_ids: Sequence[str],
        kind: TaskKind,
        operation: Callable[[str], Awaitable[Any]],
    ) -> BatchRun:
        """Run ``operation`` for every id concurrently and wait for all to settle.

        A failing member only marks itself failed. Once every member is
        terminal the batch stops running and one clear is scheduled after
        ``batch_settle_delay``.
        """
        ordered = list(dict.fromkeys(slide_ids))
        batch = BatchRun(
            batch_id=uuid.uuid4().hex,
            kind=TaskKind(kind),
            slide_ids=ordered,
            statuses={slide_id: TaskStatus.RUNNING for slide_id in ordered},
        )
        self._batches[batch.batch_id] = batch
        logger.info("batch_started", batch_id=batch.batch_id, kind=batch.kind.value, size=len(ordered))

        async def member(slide_id: str) -> None:
            try:
                await self.run(slide_id, batch.kind, lambda: operation(slide_id))
            except Exception as e:
                batch.statuses[slide_id] = TaskStatus.FAILED
                batch.errors[slide_id] = str(e)
                logger.warning("batch_member_failed", batch_id=batch.batch_id, slide_id=slide_id, error=str(e))
            else:
                batch.statuses[slide_id] = TaskStatus.SUCCEEDED

        await asyncio.gather(*(member(slide_id) for slide_id in ordered), return_exceptions=True)

        batch.running = False
        batch.completed_at = datetime.now(timezone.utc)
        batch.completed.set()
        logger.info(
            "batch_settled",
            batch_id=batch.batch_id,
            succeeded=batch.succeeded,
            failed=batch.failed,
        )
        self._schedule(self.batch_settle_delay, self._clear_batch, batch.batch_id)
        return batch

    def _prune(self, key: TaskKey, token: str) -> None:
        record = self._finished.get(key)
        if record is None or record.token != token:
            return
        del self._finished[key]
        if self._latest.get(key) == token:
            del self._latest[key]
        self._notify(TaskRecord(token=token, slide_id=key[0], kind=key[1], status=TaskStatus.IDLE))

    def _clear_batch(self, batch_id: str) -> None:
        batch = self._batches.pop(batch_id, None)
        if batch is not None:
            logger.debug("batch_cleared", batch_id=batch_id)

    def _schedule(self, delay: float, callback: Callable[..., None], *args: Any) -> None:
        asyncio.get_running_loop().call_later(delay, callback, *args)

    def _notify(self, record: TaskRecord) -> None:
        for listener in list(self.listeners):
            listener(record)
