import logging
import threading
from collections import deque
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict

from errors import ErrorKind, user_message
from schemas import AnalysisOutcome, AnalysisRequest, AnalysisResult, SubmissionDraft
from matching.prompts import build_request

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    INPUT = "input"
    TARGET = "target"
    RESULT = "result"


class WorkflowSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: WorkflowState
    draft: SubmissionDraft
    result: Optional[AnalysisResult] = None
    error_kind: Optional[ErrorKind] = None
    error_message: str = ""
    is_analyzing: bool = False


Listener = Callable[[WorkflowSnapshot], None]

BOTH_FIELDS_MESSAGE = "Please make sure both fields are filled in."


class WorkflowController:
    """
    Input -> Target -> Result sequencer for one user session.

    `client` is anything with `submit(AnalysisRequest) -> AnalysisOutcome`.
    Analysis runs on `executor`; everything else is synchronous. Each
    go_back()/reset() starts a new generation so a late completion from an
    abandoned attempt is dropped instead of applied.
    """

    def __init__(
        self,
        client,
        min_resume_length: int = 50,
        executor: Optional[Executor] = None,
        request_builder: Callable[[SubmissionDraft], AnalysisRequest] = build_request,
    ):
        self.client = client
        self.min_resume_length = min_resume_length
        self.request_builder = request_builder
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="analysis")
        self._lock = threading.Lock()
        self._listeners: List[Listener] = []
        self._pending: deque = deque()
        self._draining = False

        self._state = WorkflowState.INPUT
        self._draft = SubmissionDraft()
        self._result: Optional[AnalysisResult] = None
        self._error_kind: Optional[ErrorKind] = None
        self._error_message = ""
        self._is_analyzing = False
        self._generation = 0

    # -------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------
    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def draft(self) -> SubmissionDraft:
        return self._draft

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._result

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self._error_kind

    @property
    def error_message(self) -> str:
        return self._error_message

    @property
    def is_analyzing(self) -> bool:
        return self._is_analyzing

    def snapshot(self) -> WorkflowSnapshot:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> WorkflowSnapshot:
        return WorkflowSnapshot(
            state=self._state,
            draft=self._draft,
            result=self._result,
            error_kind=self._error_kind,
            error_message=self._error_message,
            is_analyzing=self._is_analyzing,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish_locked(self):
        self._pending.append(self._snapshot_locked())

    def _drain(self):
        """
        Deliver queued snapshots in the order they were taken.

        Only one thread delivers at a time; a thread that finds delivery in
        progress leaves its snapshot queued for the delivering thread, so
        listeners always end on the newest state.
        """
        with self._lock:
            if self._draining:
                return
            self._draining = True
        while True:
            with self._lock:
                if not self._pending:
                    self._draining = False
                    return
                snap = self._pending.popleft()
            self._notify(snap)

    def _notify(self, snap: WorkflowSnapshot):
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("Workflow listener failed")

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def _set_error(self, kind: ErrorKind, detail: str = "", message: Optional[str] = None):
        self._error_kind = kind
        self._error_message = message or user_message(kind, detail)

    def _clear_error(self):
        self._error_kind = None
        self._error_message = ""

    def submit_resume(self, text: str) -> bool:
        """Store the resume and move to Target if it is long enough."""
        with self._lock:
            if self._state is not WorkflowState.INPUT:
                logger.debug("submit_resume ignored in state %s", self._state.value)
                return False
            self._draft = self._draft.model_copy(update={"resume_text": text or ""})
            if len(self._draft.resume_text.strip()) < self.min_resume_length:
                self._set_error(ErrorKind.VALIDATION_INPUT_TOO_SHORT)
                moved = False
            else:
                self._clear_error()
                self._state = WorkflowState.TARGET
                moved = True
            self._publish_locked()
        if moved:
            logger.info("Workflow moved to %s", WorkflowState.TARGET.value)
        self._drain()
        return moved

    def submit_job_description(self, text: str) -> bool:
        with self._lock:
            if self._state is not WorkflowState.TARGET or self._is_analyzing:
                logger.debug("submit_job_description ignored in state %s", self._state.value)
                return False
            self._draft = self._draft.model_copy(update={"job_description_text": text or ""})
            self._publish_locked()
        self._drain()
        return True

    def run_analysis(self) -> Optional[Future]:
        """
        Start the analysis in the background.

        Returns the Future of the attempt, or None when nothing was started
        (wrong state, already analyzing, or a blank field). Completion is
        applied to the controller before the Future resolves.
        """
        with self._lock:
            if self._state is not WorkflowState.TARGET or self._is_analyzing:
                return None
            draft = self._draft
            if not draft.resume_text.strip() or not draft.job_description_text.strip():
                self._set_error(ErrorKind.VALIDATION_INPUT_TOO_SHORT, message=BOTH_FIELDS_MESSAGE)
                self._publish_locked()
                started = False
            else:
                self._clear_error()
                self._is_analyzing = True
                generation = self._generation
                self._publish_locked()
                started = True
        self._drain()
        if not started:
            return None
        logger.info("Starting analysis (generation %d)", generation)
        return self._executor.submit(self._analyze, draft, generation)

    def _analyze(self, draft: SubmissionDraft, generation: int) -> AnalysisOutcome:
        try:
            outcome = self.client.submit(self.request_builder(draft))
        except Exception as e:
            # a raising client must not leave is_analyzing stuck
            logger.exception("Analysis client raised")
            outcome = AnalysisOutcome.failure(ErrorKind.SERVICE_UNAVAILABLE, str(e))
        self._complete(outcome, generation)
        return outcome

    def _complete(self, outcome: AnalysisOutcome, generation: int):
        with self._lock:
            if generation != self._generation or self._state is not WorkflowState.TARGET:
                logger.info("Discarding stale analysis result (generation %d)", generation)
                return
            self._is_analyzing = False
            if outcome.ok:
                self._result = outcome.result
                self._clear_error()
                self._state = WorkflowState.RESULT
            else:
                self._set_error(outcome.error_kind, outcome.message)
            self._publish_locked()
        if outcome.ok:
            logger.info("Workflow moved to %s (score %d)", WorkflowState.RESULT.value, outcome.result.match_score)
        else:
            logger.warning("Analysis failed: %s", outcome.error_kind.value)
        self._drain()

    def go_back(self) -> bool:
        """Target -> Input, keeping the draft. Abandons any pending attempt."""
        with self._lock:
            if self._state is not WorkflowState.TARGET:
                return False
            self._generation += 1
            self._state = WorkflowState.INPUT
            self._is_analyzing = False
            self._clear_error()
            self._publish_locked()
        self._drain()
        return True

    def reset(self):
        with self._lock:
            self._generation += 1
            self._state = WorkflowState.INPUT
            self._draft = SubmissionDraft()
            self._result = None
            self._is_analyzing = False
            self._clear_error()
            self._publish_locked()
        logger.info("Workflow reset")
        self._drain()

    def close(self):
        if self._owns_executor:
            self._executor.shutdown(wait=False)
