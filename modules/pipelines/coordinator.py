"""
Pipeline coordinator base.

Submit a remote job, hand its ID to the poller and fold status updates into
the scene store. Subclasses decide what a status means for the store.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from modules.poller import Poller, PollPolicy, TerminalOutcome, TerminalResult, Watch
from modules.scene_store import ProjectPersistence, SceneStore
from shared.errors import GenerationError, PipelineError
from shared.logging import get_logger
from shared.models.job import (
    Job,
    JobKind,
    JobStatusResponse,
    JobSubmissionRequest,
    JobSubmissionResponse,
    PipelineState,
    StatusItem,
)

logger = get_logger("pipelines")

EventSink = Callable[[str, str, Dict[str, Any]], Awaitable[Any]]

TIMEOUT_MESSAGE = (
    "{kind} generation is taking longer than expected. "
    "The job may still finish; check back later."
)


@dataclass(eq=False)
class PipelineRun:
    """One submission and its watch."""

    job: Job
    # Store indices of the submitted scenes, in request order
    scene_indices: List[int]
    # Full runs replace the whole result set; scoped runs merge their indices
    full: bool = True
    state: PipelineState = PipelineState.SUBMITTING
    watch: Optional[Watch] = None
    holds_flag: bool = False
    context: Dict[str, Any] = field(default_factory=dict)

    def store_index(self, item: StatusItem) -> Optional[int]:
        """Map a result item's 1-based index onto a store index."""
        position = (item.index - 1) if item.index else 0
        if 0 <= position < len(self.scene_indices):
            return self.scene_indices[position]
        return None


class PipelineCoordinator:
    """Base state machine: idle -> submitting -> polling -> terminal."""

    kind: JobKind = JobKind.IMAGE

    def __init__(
        self,
        store: SceneStore,
        client: Any,
        persistence: Optional[ProjectPersistence] = None,
        poller: Optional[Poller] = None,
        events: Optional[EventSink] = None,
    ):
        """
        Initialize coordinator.

        Args:
            store: Project store this coordinator mutates
            client: Generation service client
            persistence: Optional snapshot persistence
            poller: Poller (default uses the asyncio scheduler)
            events: Optional async sink called as events(project_id, event_type, data)
        """
        self.store = store
        self.client = client
        self.persistence = persistence
        self.poller = poller or Poller()
        self.events = events
        self._runs: List[PipelineRun] = []
        self._latest: Optional[PipelineRun] = None

    # State

    @property
    def state(self) -> PipelineState:
        return self._latest.state if self._latest else PipelineState.IDLE

    @property
    def job(self) -> Optional[Job]:
        return self._latest.job if self._latest else None

    @property
    def is_generating(self) -> bool:
        return self.store.is_generating(self.kind)

    @property
    def error(self):
        return self.store.last_error(self.kind)

    # Hooks

    def policy(self) -> PollPolicy:
        raise NotImplementedError

    async def on_progress(self, run: PipelineRun, status: JobStatusResponse) -> None:
        """Apply a non-terminal (or final) status to the store."""

    async def on_success(self, run: PipelineRun, status: JobStatusResponse) -> None:
        """Authoritative merge after the job completed."""

    # Lifecycle

    async def _launch(
        self,
        run: PipelineRun,
        submit: Callable[[JobSubmissionRequest], Awaitable[JobSubmissionResponse]],
        request: JobSubmissionRequest,
        fetch_status: Callable[[str], Awaitable[JobStatusResponse]],
    ) -> Job:
        """
        Submit a job and start watching it.

        Raises:
            GenerationError: If the submission fails (no polling starts)
        """
        self._latest = run
        if run not in self._runs:
            self._runs.append(run)
        self.store.clear_error(self.kind)

        try:
            response = await submit(request)
        except PipelineError as e:
            self._submission_failed(run, e.message)
            raise GenerationError(e.message, code="SUBMISSION_FAILED") from e
        except Exception as e:
            self._submission_failed(run, str(e))
            raise GenerationError(
                f"Failed to start {self.kind.value} generation: {str(e)}",
                code="SUBMISSION_FAILED",
            ) from e

        if not response.success or not response.job_id:
            message = response.error or f"Failed to start {self.kind.value} generation"
            self._submission_failed(run, message)
            raise GenerationError(message, code="SUBMISSION_FAILED")

        run.job.id = response.job_id
        run.state = PipelineState.POLLING
        logger.info(
            f"Started {self.kind.value} job {response.job_id}",
            extra={
                "project_id": self.store.project_id,
                "remote_job_id": response.job_id,
                "scenes": len(run.scene_indices),
                "full": run.full,
            },
        )

        async def handle_progress(status: JobStatusResponse) -> None:
            await self._handle_progress(run, status)

        async def handle_terminal(result: TerminalResult) -> None:
            await self._handle_terminal(run, result)

        run.watch = self.poller.watch(
            response.job_id,
            fetch_status,
            self.policy(),
            on_progress=handle_progress,
            on_terminal=handle_terminal,
        )
        return run.job

    def _new_run(self, scene_indices: List[int], full: bool, holds_flag: bool) -> PipelineRun:
        job = Job(
            id="",
            kind=self.kind,
            total_count=len(scene_indices),
            scene_indices=list(scene_indices),
        )
        return PipelineRun(job=job, scene_indices=list(scene_indices), full=full, holds_flag=holds_flag)

    def _submission_failed(self, run: PipelineRun, message: str) -> None:
        run.state = PipelineState.FAILED
        self._release(run)
        self.store.set_error(self.kind, message, "SUBMISSION_FAILED")
        logger.error(
            f"{self.kind.value.capitalize()} submission failed: {message}",
            extra={"project_id": self.store.project_id},
        )

    def _release(self, run: PipelineRun) -> None:
        if run.holds_flag:
            self.store.end_generation(self.kind)
            run.holds_flag = False
        if run in self._runs:
            self._runs.remove(run)

    async def _handle_progress(self, run: PipelineRun, status: JobStatusResponse) -> None:
        run.job.apply_status(status)
        await self.on_progress(run, status)
        await self._emit("progress", {
            "kind": self.kind.value,
            "job_id": run.job.id,
            "completed": status.completed,
            "total": status.total,
            "current_title": status.current_title,
        })

    async def _handle_terminal(self, run: PipelineRun, result: TerminalResult) -> None:
        try:
            if result.ok:
                await self.on_success(run, result.status)
                run.state = PipelineState.COMPLETED
                await self._emit("completed", {
                    "kind": self.kind.value,
                    "job_id": run.job.id,
                })
                return

            if result.outcome == TerminalOutcome.TIMED_OUT:
                run.state = PipelineState.TIMED_OUT
                message = TIMEOUT_MESSAGE.format(kind=self.kind.value.capitalize())
                if result.last_error:
                    message = f"{message} Last error: {result.last_error}"
                self.store.set_error(self.kind, message, "TIMEOUT")
            else:
                run.state = PipelineState.FAILED
                self.store.set_error(self.kind, result.reason or "Job failed", "JOB_FAILED")

            logger.warning(
                f"{self.kind.value.capitalize()} job {run.job.id} ended: {result.outcome.value}",
                extra={
                    "project_id": self.store.project_id,
                    "remote_job_id": run.job.id,
                    "reason": result.reason,
                },
            )
            await self._emit("error", {
                "kind": self.kind.value,
                "job_id": run.job.id,
                "outcome": result.outcome.value,
                "message": self.store.last_error(self.kind).message,
            })
        except Exception as e:
            run.state = PipelineState.FAILED
            self.store.set_error(self.kind, f"Failed to apply results: {str(e)}", "JOB_FAILED")
            logger.error(
                f"Failed to apply {self.kind.value} results for job {run.job.id}: {str(e)}",
                extra={"project_id": self.store.project_id, "remote_job_id": run.job.id},
                exc_info=True,
            )
        finally:
            self._release(run)

    async def _emit(self, event_type: str, data: Dict[str, Any]) -> None:
        if self.events is None:
            return
        try:
            await self.events(self.store.project_id, event_type, data)
        except Exception as e:
            logger.warning(
                f"Failed to publish {event_type} event: {str(e)}",
                extra={"project_id": self.store.project_id, "event_type": event_type},
            )

    def persist(self) -> None:
        """Schedule a best-effort snapshot save."""
        if self.persistence is not None:
            self.persistence.schedule_save(self.store)

    async def wait(self):
        """Wait for the latest run's watch. Returns its TerminalResult or None."""
        run = self._latest
        if run is None or run.watch is None:
            return None
        return await run.watch.wait()

    def cancel(self) -> None:
        """Stop local watches and return to idle. Remote jobs are not cancelled."""
        for run in list(self._runs):
            if run.watch is not None:
                run.watch.cancel()
            self._release(run)
        self._latest = None
        self.store.end_generation(self.kind)
        logger.info(
            f"{self.kind.value.capitalize()} pipeline cancelled",
            extra={"project_id": self.store.project_id},
        )
