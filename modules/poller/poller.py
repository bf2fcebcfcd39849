"""
Generic job poller.

Watches one remote job: fetches its status on a fixed cadence, reports every
successful fetch as progress and ends with exactly one terminal result
(completed, failed or timed out) unless cancelled first.
"""

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from modules.poller.scheduler import CancellationToken, Scheduler
from shared.errors import ValidationError
from shared.logging import get_logger, set_job_id
from shared.models.job import JobStatus, JobStatusResponse

logger = get_logger("poller")

FetchStatus = Callable[[str], Awaitable[JobStatusResponse]]
ProgressCallback = Callable[[JobStatusResponse], Any]
TerminalCallback = Callable[["TerminalResult"], Any]


@dataclass(frozen=True)
class PollPolicy:
    """Poll cadence and attempt budget for one watch."""

    interval: float
    error_interval: float
    max_attempts: int

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValidationError(f"max_attempts must be at least 1 (got {self.max_attempts})")
        if self.interval < 0 or self.error_interval < 0:
            raise ValidationError("Poll intervals cannot be negative")


class TerminalOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class TerminalResult:
    """How a watch ended."""

    ok: bool
    outcome: TerminalOutcome
    status: Optional[JobStatusResponse] = None
    reason: Optional[str] = None
    attempts: int = 0
    # Message of the most recent failed fetch, if any
    last_error: Optional[str] = None


async def _call(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class Watch:
    """Handle for one in-flight watch."""

    def __init__(self, job_id: str, token: Optional[CancellationToken] = None):
        self.job_id = job_id
        self.token = token or CancellationToken()
        self.result: Optional[TerminalResult] = None
        self._task: Optional["asyncio.Task[Any]"] = None
        self._finished = False

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def done(self) -> bool:
        return self._finished or self.token.cancelled

    def cancel(self) -> None:
        """Stop the watch; no callback fires afterwards. No-op once terminal."""
        if self._finished or self.token.cancelled:
            return
        self.token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info(f"Watch cancelled for job {self.job_id}", extra={"remote_job_id": self.job_id})

    async def wait(self) -> Optional[TerminalResult]:
        """
        Wait for the watch to end.

        Returns:
            The terminal result, or None if the watch was cancelled
        """
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        if self.token.cancelled:
            return None
        return self.result


class Poller:
    """Drives status fetches for watches through a scheduler."""

    def __init__(self, scheduler: Optional[Scheduler] = None):
        self.scheduler = scheduler or Scheduler()

    def watch(
        self,
        job_id: str,
        fetch_status: FetchStatus,
        policy: PollPolicy,
        on_progress: Optional[ProgressCallback] = None,
        on_terminal: Optional[TerminalCallback] = None,
    ) -> Watch:
        """
        Start watching a remote job.

        Must be called from a running event loop. The first fetch happens
        immediately; later fetches wait `policy.interval`, or
        `policy.error_interval` after a failed fetch.

        Args:
            job_id: Remote job ID
            fetch_status: Coroutine function returning the job's current status
            policy: Cadence and attempt budget
            on_progress: Called with every successfully fetched status
            on_terminal: Called once with the TerminalResult

        Returns:
            Watch handle
        """
        handle = Watch(job_id)
        handle._task = self.scheduler.spawn(
            self._run(handle, fetch_status, policy, on_progress, on_terminal)
        )
        return handle

    async def _finish(
        self,
        handle: Watch,
        result: TerminalResult,
        on_terminal: Optional[TerminalCallback],
    ) -> None:
        if handle.token.cancelled:
            return
        handle.result = result
        handle._finished = True
        logger.info(
            f"Watch ended for job {handle.job_id}: {result.outcome.value}",
            extra={
                "remote_job_id": handle.job_id,
                "outcome": result.outcome.value,
                "attempts": result.attempts,
                "reason": result.reason,
            },
        )
        try:
            await _call(on_terminal, result)
        except Exception as e:
            logger.error(
                f"Terminal handler failed for job {handle.job_id}: {str(e)}",
                extra={"remote_job_id": handle.job_id},
                exc_info=True,
            )

    async def _run(
        self,
        handle: Watch,
        fetch_status: FetchStatus,
        policy: PollPolicy,
        on_progress: Optional[ProgressCallback],
        on_terminal: Optional[TerminalCallback],
    ) -> None:
        set_job_id(handle.job_id)
        token = handle.token
        attempts = 0
        last_error: Optional[str] = None

        while not token.cancelled:
            attempts += 1
            delay = policy.interval
            status: Optional[JobStatusResponse] = None

            try:
                status = await fetch_status(handle.job_id)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                last_error = str(e)
                delay = policy.error_interval
                logger.warning(
                    f"Status fetch failed for job {handle.job_id} "
                    f"(attempt {attempts}/{policy.max_attempts}): {last_error}",
                    extra={"remote_job_id": handle.job_id, "attempt": attempts},
                )

            if token.cancelled:
                return

            if status is not None:
                try:
                    await _call(on_progress, status)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(
                        f"Progress handler failed for job {handle.job_id}: {str(e)}",
                        extra={"remote_job_id": handle.job_id},
                        exc_info=True,
                    )
                    await self._finish(
                        handle,
                        TerminalResult(
                            ok=False,
                            outcome=TerminalOutcome.FAILED,
                            status=status,
                            reason=f"Progress handler failed: {str(e)}",
                            attempts=attempts,
                            last_error=last_error,
                        ),
                        on_terminal,
                    )
                    return

                if token.cancelled:
                    return

                if status.status == JobStatus.COMPLETED:
                    await self._finish(
                        handle,
                        TerminalResult(
                            ok=True,
                            outcome=TerminalOutcome.COMPLETED,
                            status=status,
                            attempts=attempts,
                            last_error=last_error,
                        ),
                        on_terminal,
                    )
                    return

                if status.status == JobStatus.FAILED:
                    await self._finish(
                        handle,
                        TerminalResult(
                            ok=False,
                            outcome=TerminalOutcome.FAILED,
                            status=status,
                            reason=status.error or "Job failed",
                            attempts=attempts,
                            last_error=last_error,
                        ),
                        on_terminal,
                    )
                    return

            if attempts >= policy.max_attempts:
                await self._finish(
                    handle,
                    TerminalResult(
                        ok=False,
                        outcome=TerminalOutcome.TIMED_OUT,
                        status=status,
                        reason="timeout",
                        attempts=attempts,
                        last_error=last_error,
                    ),
                    on_terminal,
                )
                return

            await self.scheduler.sleep(delay)
