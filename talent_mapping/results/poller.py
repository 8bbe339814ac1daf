# talent_mapping/results/poller.py
# Polls the eventually-consistent result store until the analysis materializes.
#
# States: Idle -> Fetching -> {Succeeded, Backoff -> Fetching, Failed, Cancelled}

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from talent_mapping.errors import ExhaustedRetriesError, NotFoundError
from talent_mapping.results.client import ResultTransport

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 6
DEFAULT_BASE_DELAY = 1.0
DEFAULT_CAP_DELAY = 10.0


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Fetching:
    attempt: int


@dataclass(frozen=True)
class Backoff:
    attempt: int
    delay: float


@dataclass(frozen=True)
class Succeeded:
    attempt: int
    result: Any


@dataclass(frozen=True)
class Failed:
    attempt: int
    error: Exception


@dataclass(frozen=True)
class Cancelled:
    attempt: int


PollPhase = Union[Idle, Fetching, Backoff, Succeeded, Failed, Cancelled]
TERMINAL_PHASES = (Succeeded, Failed, Cancelled)


@dataclass
class PollState:
    """Bookkeeping for one outstanding result id."""
    result_id: str
    max_attempts: int
    attempt: int = 0
    last_error: Optional[Exception] = None
    cancelled: bool = False
    phase: PollPhase = field(default_factory=Idle)
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def is_terminal(self) -> bool:
        return isinstance(self.phase, TERMINAL_PHASES)


class ResultPoller:
    """
    Fetches a result by id, retrying "not found yet" with capped exponential
    backoff (``min(base_delay * 2**attempt, cap_delay)``).

    One poll at a time: starting another one cancels the previous. Once
    cancelled, a poll makes no further fetches, transitions or callbacks. A
    poll cancelled from outside (a timeout or a parent task) ends in
    ``Cancelled`` as well and releases its task.
    ``sleep`` is injectable so tests can assert delays without waiting.
    """

    def __init__(
        self,
        transport: ResultTransport,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        cap_delay: float = DEFAULT_CAP_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_transition: Optional[Callable[[PollPhase], None]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._transport = transport
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.cap_delay = cap_delay
        self._sleep = sleep
        self._on_transition = on_transition
        self._state: Optional[PollState] = None

    @property
    def state(self) -> Optional[PollState]:
        return self._state

    @property
    def phase(self) -> PollPhase:
        return self._state.phase if self._state else Idle()

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * 2 ** attempt, self.cap_delay)

    # --- Public API ---

    async def poll(self, result_id: str) -> Any:
        """
        Polls until the result exists and returns it.

        Raises:
            ExhaustedRetriesError: Still not found after ``max_attempts`` fetches.
            TransportError: Any other backend failure, without retry.
            asyncio.CancelledError: The poll was cancelled.
        """
        state = self._begin(result_id)
        state.task = asyncio.current_task()
        return await self._run_machine(state)

    def start(
        self,
        result_id: str,
        on_success: Callable[[Any], None],
        on_failure: Callable[[Exception], None],
    ) -> asyncio.Task:
        """Runs the poll in a background task and reports through the callbacks."""
        state = self._begin(result_id)
        task = asyncio.create_task(self._run_with_callbacks(state, on_success, on_failure))
        state.task = task
        return task

    def cancel(self) -> bool:
        """Cancels the active poll. Returns False when nothing was in flight."""
        state = self._state
        if state is None or state.cancelled or state.is_terminal:
            return False

        self._transition(state, Cancelled(state.attempt))
        state.cancelled = True
        logger.info(
            f"Polling for result {state.result_id} cancelled at attempt {state.attempt}",
            extra={"result_id": state.result_id, "attempt": state.attempt},
        )

        task = state.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        return True

    # --- Machine ---

    def _begin(self, result_id: str) -> PollState:
        self.cancel()
        self._state = PollState(result_id=result_id, max_attempts=self.max_attempts)
        return self._state

    def _transition(self, state: PollState, phase: PollPhase) -> None:
        if state.cancelled:
            return
        state.phase = phase
        if self._on_transition is not None:
            self._on_transition(phase)

    @staticmethod
    def _ensure_active(state: PollState) -> None:
        if state.cancelled:
            raise asyncio.CancelledError()

    async def _run_machine(self, state: PollState) -> Any:
        try:
            return await self._drive(state)
        except asyncio.CancelledError:
            # Cancelled from outside, e.g. a timeout around poll() or a parent task cancel
            if not state.cancelled:
                self._transition(state, Cancelled(state.attempt))
                state.cancelled = True
                logger.info(
                    f"Polling for result {state.result_id} interrupted at attempt {state.attempt}",
                    extra={"result_id": state.result_id, "attempt": state.attempt},
                )
            raise
        finally:
            state.task = None

    async def _drive(self, state: PollState) -> Any:
        while True:
            self._ensure_active(state)
            self._transition(state, Fetching(state.attempt))
            try:
                result = await self._transport.get_result_by_id(state.result_id)
            except NotFoundError as e:
                self._ensure_active(state)
                state.last_error = e
                if state.attempt + 1 >= state.max_attempts:
                    error = ExhaustedRetriesError(state.result_id, state.attempt + 1, last_error=e)
                    logger.error(str(error), extra={"result_id": state.result_id, "attempt": state.attempt})
                    self._transition(state, Failed(state.attempt, error))
                    raise error from e

                delay = self.delay_for(state.attempt)
                logger.debug(
                    f"Result {state.result_id} not found on attempt {state.attempt + 1}/"
                    f"{state.max_attempts}, retrying in {delay}s",
                    extra={"result_id": state.result_id, "attempt": state.attempt},
                )
                self._transition(state, Backoff(state.attempt, delay))
                await self._sleep(delay)
                state.attempt += 1
                continue
            except Exception as e:
                self._ensure_active(state)
                state.last_error = e
                logger.error(
                    f"Fetching result {state.result_id} failed: {e}",
                    extra={"result_id": state.result_id, "attempt": state.attempt},
                )
                self._transition(state, Failed(state.attempt, e))
                raise

            self._ensure_active(state)
            logger.info(
                f"Result {state.result_id} retrieved on attempt {state.attempt + 1}",
                extra={"result_id": state.result_id, "attempt": state.attempt},
            )
            self._transition(state, Succeeded(state.attempt, result))
            return result

    async def _run_with_callbacks(
        self,
        state: PollState,
        on_success: Callable[[Any], None],
        on_failure: Callable[[Exception], None],
    ) -> None:
        try:
            result = await self._run_machine(state)
        except Exception as e:
            if not state.cancelled:
                self._notify(on_failure, e, state)
            return
        if not state.cancelled:
            self._notify(on_success, result, state)

    @staticmethod
    def _notify(callback: Callable[[Any], None], value: Any, state: PollState) -> None:
        try:
            callback(value)
        except Exception as e:
            logger.exception(
                f"Result callback for {state.result_id} raised: {e}",
                extra={"result_id": state.result_id, "attempt": state.attempt},
            )
