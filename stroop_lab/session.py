import json
import random
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from stroop_lab.catalog import Catalog
from stroop_lab.results import TrialResult
from stroop_lab.storage import PersistenceWorker
from stroop_lab.trials import Trial, generate_trials, is_correct_response
from stroop_lab.utils.clock import elapsed, onset
from stroop_lab.utils.logging import logger


class SessionState(Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


@dataclass
class Session:
    """
    A single run of the paradigm. The session is owned by the front end and
    advanced by one response at a time:

        NOT_STARTED -> IN_PROGRESS -> ... -> COMPLETED

    `restart()` goes back to NOT_STARTED from any state, discarding trials,
    results and the local snapshot.
    """

    catalog: Catalog
    n_trials: int = 20
    rng: random.Random | None = None
    worker: PersistenceWorker | None = None  # receives every result
    snapshot_file: Path | None = None  # written once the session completes

    session_id: str | None = None
    trials: list[Trial] = field(default_factory=list)
    current_index: int = 0
    results: list[TrialResult] = field(default_factory=list)
    state: SessionState = SessionState.NOT_STARTED

    # onset [ns] of the currently shown stimulus, None until painted
    stimulus_onset_ns: int | None = None

    def __post_init__(self):
        self._lock = threading.Lock()

    def start(self) -> "Session":
        if self.state == SessionState.IN_PROGRESS:
            logger.debug(f"Session {self.session_id} is already running")
            return self

        self.session_id = str(uuid.uuid4())
        self.trials = generate_trials(self.catalog, self.n_trials, rng=self.rng)
        self.current_index = 0
        self.results = []
        self.stimulus_onset_ns = None
        self.state = SessionState.IN_PROGRESS

        logger.info(f"Started session {self.session_id} with {len(self.trials)} trials")
        return self

    def restart(self):
        logger.info(f"Restarting, discarding session {self.session_id}")
        with self._lock:
            self.session_id = None
            self.trials = []
            self.current_index = 0
            self.results = []
            self.stimulus_onset_ns = None
            self.state = SessionState.NOT_STARTED

        # the discarded session is not kept locally
        if self.snapshot_file is not None:
            clear_snapshot(self.snapshot_file)

    @property
    def current_trial(self) -> Trial | None:
        if self.state != SessionState.IN_PROGRESS:
            return None
        return self.trials[self.current_index]

    @property
    def progress(self) -> tuple[int, int]:
        """(number of the current trial, total) - 1-based for displaying"""
        total = len(self.trials)
        return min(self.current_index + 1, total), total

    @property
    def is_finished(self) -> bool:
        return self.state == SessionState.COMPLETED

    def mark_stimulus_onset(self, now_ns: int | None = None):
        """To be called once the stimulus of the current trial is painted"""
        if self.state != SessionState.IN_PROGRESS:
            return
        self.stimulus_onset_ns = onset() if now_ns is None else now_ns

    def record_response(
        self, response: str, now_ns: int | None = None
    ) -> TrialResult | None:
        """Record the response to the current trial

        Responses are ignored (None is returned) if the session is not in
        progress, the stimulus was not shown yet, the response is not a known
        category or another response is being processed.

        Parameters
        ----------
        response : str
            name of the category selected by the subject

        now_ns : int | None
            timestamp of the response, read from the clock if None

        Returns
        -------
        TrialResult | None
            the recorded result
        """
        now_ns = onset() if now_ns is None else now_ns

        if not self._lock.acquire(blocking=False):
            logger.debug(f"Ignoring {response=}, another response is processed")
            return None

        try:
            if self.state != SessionState.IN_PROGRESS:
                logger.debug(f"Ignoring {response=} in {self.state=}")
                return None
            if self.stimulus_onset_ns is None:
                logger.debug(f"Ignoring {response=} before stimulus onset")
                return None
            if response not in self.catalog:
                logger.debug(f"Ignoring unknown {response=}")
                return None

            trial = self.trials[self.current_index]
            result = TrialResult(
                session_id=self.session_id,
                word_text=trial.word_text,
                font_color=trial.font_color,
                is_congruent=trial.is_congruent,
                reaction_time_ms=elapsed(self.stimulus_onset_ns, now_ns),
                user_response=response,
                is_correct=is_correct_response(trial, response, self.catalog),
            )

            self.results.append(result)
            self.current_index += 1
            self.stimulus_onset_ns = None
            logger.info(f"Trial {self.current_index}/{len(self.trials)}: {result}")

            if self.worker is not None:
                self.worker.submit(result)

            if self.current_index == len(self.trials):
                self.complete()

            return result
        finally:
            self._lock.release()

    def complete(self):
        self.state = SessionState.COMPLETED
        logger.info(f"Session {self.session_id} completed")
        if self.snapshot_file is not None:
            try:
                save_snapshot(self.snapshot_file, self.session_id, self.results)
            except OSError as err:
                logger.error(
                    f"Could not save snapshot of session {self.session_id}"
                    f" to {self.snapshot_file}: {err}"
                )


# ----------------------------------------------------------------------------
#                      Snapshot
# ----------------------------------------------------------------------------
@dataclass(frozen=True)
class Snapshot:
    session_id: str
    results: list[TrialResult]


def save_snapshot(path: Path, session_id: str, results: list[TrialResult]):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"session_id": session_id, "results": [r.to_dict() for r in results]}

    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    tmp.replace(path)
    logger.debug(f"Saved snapshot of {session_id=} to {path}")


def load_snapshot(path: Path) -> Snapshot | None:
    """Load a snapshot, None if there is no valid snapshot at `path`"""
    path = Path(path)
    if not path.exists():
        logger.debug(f"No snapshot at {path}")
        return None

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        session_id = payload["session_id"]
        if not isinstance(session_id, str) or not session_id:
            raise ValueError(f"Invalid {session_id=}")
        results = [TrialResult.from_dict(r) for r in payload["results"]]
    except (OSError, ValueError, KeyError, TypeError) as err:
        logger.warning(f"Ignoring malformed snapshot at {path}: {err}")
        return None

    return Snapshot(session_id=session_id, results=results)


def clear_snapshot(path: Path):
    Path(path).unlink(missing_ok=True)
