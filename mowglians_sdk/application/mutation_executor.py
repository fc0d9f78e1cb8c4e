"""Mutation executor - write lifecycle, cache invalidation and notifications."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from contextlib import AbstractContextManager, nullcontext
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..domain.enums import MutationStatus, Severity
from ..domain.exceptions import (
    ConflictError,
    MowgliansError,
    PartialFailureError,
    ValidationError,
)
from ..domain.models import MutationResult
from ..domain.value_objects import QueryKey
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from ..ports.notification import NotificationPort
from .query_cache import QueryCache, error_message

Operation = Callable[[], Awaitable[Any]]

PARTIAL_FAILURE_TITLE = "Partially applied"


class MutationOptions(BaseModel):
    """What to invalidate and what to tell the user once a write settles."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = Field(default="mutation", min_length=1, description="Name used in logs")
    invalidates: tuple[QueryKey, ...] = Field(
        default=(), description="Keys (or key prefixes) invalidated on success"
    )
    exact: bool = Field(default=False, description="Invalidate exact keys instead of prefixes")
    success_title: str | None = None
    success_description: str | None = None
    error_title: str = Field(default="Error", min_length=1)
    error_description: str | None = Field(
        default=None, description="Fallback text when the error carries no message"
    )

    @field_validator("invalidates", mode="before")
    @classmethod
    def coerce_keys(cls, v: Sequence[Any]) -> tuple[QueryKey, ...]:
        """Accept QueryKeys, part tuples or plain names."""
        return tuple(QueryKey.coerce(key) for key in v)


class MutationStep(BaseModel):
    """One named write of a multi-step mutation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    operation: Callable[[], Awaitable[Any]]


class MutationTask:
    """A single write and its observable lifecycle.

    Transitions ``idle -> pending -> success | error``. A task runs at most
    once.
    """

    def __init__(self, executor: MutationExecutor, operation: Operation, options: MutationOptions):
        self._executor = executor
        self._operation = operation
        self.options = options
        self.status = MutationStatus.IDLE
        self.error: str | None = None
        self.result: MutationResult | None = None

    @property
    def invalidates(self) -> tuple[QueryKey, ...]:
        """Keys invalidated when the task succeeds."""
        return self.options.invalidates

    @property
    def is_pending(self) -> bool:
        """Whether the write is in flight."""
        return self.status == MutationStatus.PENDING

    async def run(self) -> MutationResult:
        """Execute the write.

        Raises:
            RuntimeError: If the task was already started
        """
        if self.status != MutationStatus.IDLE:
            raise RuntimeError(f"Mutation '{self.options.name}' already started")
        return await self._executor._execute(self, self._operation)


class MutationExecutor:
    """Runs writes, invalidates dependent cache keys and notifies the user.

    Operation failures never propagate: they are logged, surfaced as error
    notifications and returned as an error :class:`MutationResult`.
    """

    def __init__(
        self,
        cache: QueryCache,
        notifier: NotificationPort | None = None,
        metrics: MetricsPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the executor.

        Args:
            cache: Query cache to invalidate after successful writes
            notifier: Sink for success and failure notifications
            metrics: Optional metrics port
            logger: Optional logger for debugging
        """
        self._cache = cache
        self._notifier = notifier
        self._metrics = metrics
        self._logger = logger

    def create_task(
        self, operation: Operation, options: MutationOptions | None = None
    ) -> MutationTask:
        """Create a task without starting it."""
        return MutationTask(self, operation, options or MutationOptions())

    async def run(
        self, operation: Operation, options: MutationOptions | None = None
    ) -> MutationResult:
        """Run a single write.

        Args:
            operation: Coroutine function performing the write
            options: Invalidation and notification settings

        Returns:
            The mutation result
        """
        return await self.create_task(operation, options).run()

    async def run_steps(
        self, steps: Sequence[MutationStep], options: MutationOptions | None = None
    ) -> MutationResult:
        """Run several writes in order as one logical mutation.

        Earlier steps are not rolled back when a later one fails; the failure
        is reported as a :class:`PartialFailureError` naming what was applied.

        Returns:
            Success result carrying each step's return value, keyed by step name
        """
        if not steps:
            raise ValueError("At least one step is required")

        async def operation() -> dict[str, Any]:
            results: dict[str, Any] = {}
            for step in steps:
                try:
                    results[step.name] = await step.operation()
                except Exception as e:
                    if not results:
                        raise
                    raise PartialFailureError(step.name, list(results), cause=e) from e
            return results

        return await self.run(operation, options)

    async def _execute(self, task: MutationTask, operation: Operation) -> MutationResult:
        options = task.options
        task.status = MutationStatus.PENDING
        self._increment("mutations.started")

        try:
            with self._timer("mutations.duration_ms"):
                data = await operation()
        except Exception as e:
            error = e if isinstance(e, MowgliansError) else MowgliansError(
                error_message(e), details={"error_type": type(e).__name__}
            )
            return self._fail(task, error)

        self._invalidate(options)
        task.status = MutationStatus.SUCCESS
        task.result = MutationResult(status=MutationStatus.SUCCESS, data=data)

        self._increment("mutations.succeeded")
        if self._logger:
            self._logger.info(
                "Mutation succeeded",
                mutation=options.name,
                invalidated=[str(k) for k in options.invalidates],
            )
        if options.success_title and self._notifier:
            self._notifier.notify(Severity.INFO, options.success_title, options.success_description)
        return task.result

    def _fail(self, task: MutationTask, error: MowgliansError) -> MutationResult:
        options = task.options
        task.status = MutationStatus.ERROR
        task.error = error.message or options.error_description
        task.result = MutationResult(status=MutationStatus.ERROR, error=error)

        if isinstance(error, PartialFailureError):
            # Earlier steps changed backend data, so cached reads are out of date.
            self._invalidate(options)
            title = PARTIAL_FAILURE_TITLE
            self._increment("mutations.partial_failures")
        elif isinstance(error, (ValidationError, ConflictError)) and error.title:
            title = error.title
        else:
            title = options.error_title

        self._increment("mutations.failed")
        if self._logger:
            self._logger.error(
                "Mutation failed",
                mutation=options.name,
                error=error.message,
                error_type=type(error).__name__,
            )
        if self._notifier:
            self._notifier.notify(Severity.ERROR, title, task.error)
        return task.result

    def _invalidate(self, options: MutationOptions) -> None:
        for key in options.invalidates:
            self._cache.invalidate(key, exact=options.exact)

    def _increment(self, name: str) -> None:
        if self._metrics:
            self._metrics.increment(name)

    def _timer(self, name: str) -> AbstractContextManager[Any]:
        return self._metrics.timer(name) if self._metrics else nullcontext()
