import json
import queue
import sqlite3
import threading
import uuid
from contextlib import closing
from pathlib import Path
from typing import Callable
from urllib import error, parse, request

import yaml

from stroop_lab.results import TrialResult
from stroop_lab.utils.logging import logger

RESULT_COLUMNS = [
    "session_id",
    "word_text",
    "font_color",
    "is_congruent",
    "reaction_time_ms",
    "user_response",
    "is_correct",
]


class SinkError(RuntimeError):
    """Raised if a result sink could not perform an operation"""


class ResultSink:
    """Interface of a sink storing each TrialResult as a single row"""

    def insert(self, result: TrialResult):
        raise NotImplementedError

    def fetch_session(self, session_id: str) -> list[TrialResult]:
        raise NotImplementedError

    def delete_session(self, session_id: str) -> int:
        raise NotImplementedError

    def delete_all(self) -> int:
        raise NotImplementedError

    def close(self):
        pass


class NullResultSink(ResultSink):
    """Used if storage is disabled"""

    def insert(self, result: TrialResult):
        logger.debug(f"NullResultSink drops {result=}")

    def fetch_session(self, session_id: str) -> list[TrialResult]:
        return []

    def delete_session(self, session_id: str) -> int:
        return 0

    def delete_all(self) -> int:
        return 0


class SqliteResultSink(ResultSink):
    """Local sqlite table `stroop_results`

    A connection is opened per operation, as inserts are performed from the
    PersistenceWorker thread while deletes come from the main thread.
    """

    def __init__(self, db_path: Path | str = Path("./data/stroop_results.db")):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.ensure_table()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=5.0)

    def ensure_table(self):
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS stroop_results (
                        id TEXT PRIMARY KEY,
                        session_id TEXT NOT NULL,
                        word_text TEXT NOT NULL,
                        font_color TEXT NOT NULL,
                        is_congruent INTEGER NOT NULL,
                        reaction_time_ms REAL NOT NULL,
                        user_response TEXT NOT NULL,
                        is_correct INTEGER NOT NULL,
                        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                    );
                    """
                )
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_stroop_results_session_id"
                    " ON stroop_results(session_id);"
                )
        except sqlite3.Error as err:
            raise SinkError(f"Could not create table in {self.db_path}: {err}") from err

    def _execute(self, sql: str, params: tuple = ()) -> tuple[list | None, int]:
        try:
            with closing(self._connect()) as conn, conn:
                cur = conn.execute(sql, params)
                rows = cur.fetchall() if cur.description else None
                rowcount = cur.rowcount
        except sqlite3.Error as err:
            raise SinkError(f"sqlite operation failed: {err}") from err

        return rows, rowcount

    def insert(self, result: TrialResult):
        row = result.to_dict()
        self._execute(
            f"INSERT INTO stroop_results (id, {', '.join(RESULT_COLUMNS)})"
            f" VALUES ({', '.join(['?'] * (len(RESULT_COLUMNS) + 1))})",
            (uuid.uuid4().hex, *[row[c] for c in RESULT_COLUMNS]),
        )

    def fetch_session(self, session_id: str) -> list[TrialResult]:
        rows, _ = self._execute(
            f"SELECT {', '.join(RESULT_COLUMNS)} FROM stroop_results"
            " WHERE session_id = ? ORDER BY created_at, rowid",
            (session_id,),
        )
        return [TrialResult.from_dict(dict(zip(RESULT_COLUMNS, row))) for row in rows]

    def delete_session(self, session_id: str) -> int:
        _, n = self._execute(
            "DELETE FROM stroop_results WHERE session_id = ?", (session_id,)
        )
        return n

    def delete_all(self) -> int:
        _, n = self._execute("DELETE FROM stroop_results WHERE id IS NOT NULL")
        return n


class RestResultSink(ResultSink):
    """A PostgREST compatible table endpoint, as provided by hosted postgres
    services. Rows are posted to `<base_url>/rest/v1/<table>`."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        table: str = "stroop_results",
        timeout_s: float = 5.0,
    ):
        if parse.urlparse(base_url).scheme not in ("http", "https"):
            raise ValueError(f"Invalid {base_url=}, expected an http(s) url")

        self.url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.api_key = api_key
        self.timeout_s = timeout_s

    def _request(self, method: str, query: dict | None = None, body=None):
        url = self.url
        if query:
            url += "?" + parse.urlencode(query)

        headers = {"Content-Type": "application/json", "Prefer": "return=minimal"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"

        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = request.Request(url, data=data, headers=headers, method=method)
        try:
            with request.urlopen(req, timeout=self.timeout_s) as resp:
                raw = resp.read().decode("utf-8")
            return json.loads(raw) if raw else None
        except (error.URLError, TimeoutError, OSError, json.JSONDecodeError) as err:
            raise SinkError(f"{method} {url} failed: {err}") from err

    def insert(self, result: TrialResult):
        self._request("POST", body=result.to_dict())

    def fetch_session(self, session_id: str) -> list[TrialResult]:
        rows = self._request(
            "GET",
            query={
                "select": ",".join(RESULT_COLUMNS),
                "session_id": f"eq.{session_id}",
                "order": "created_at",
            },
        )
        return [TrialResult.from_dict(row) for row in rows or []]

    def delete_session(self, session_id: str) -> int:
        self._request("DELETE", query={"session_id": f"eq.{session_id}"})
        return -1  # count is not reported with return=minimal

    def delete_all(self) -> int:
        # PostgREST refuses unfiltered deletes, this filter matches every row
        self._request("DELETE", query={"id": "not.is.null"})
        return -1


def get_result_sink(config_dir: Path = Path("./configs"), **kwargs) -> ResultSink:
    """
    Create the result sink configured in `configs/storage.yaml`. Keyword
    arguments overwrite the values of the selected backend, `backend` selects
    the backend itself.
    """
    cfg = yaml.safe_load(open(Path(config_dir) / "storage.yaml"))
    backend = kwargs.pop("backend", cfg["backend"])

    if backend in (None, "none"):
        return NullResultSink()

    backend_cfg = cfg.get(backend, {}) or {}
    backend_cfg.update(**kwargs)
    logger.debug(f"Creating {backend} result sink with {backend_cfg=}")

    match backend:
        case "sqlite":
            return SqliteResultSink(**backend_cfg)
        case "rest":
            return RestResultSink(**backend_cfg)
        case _:
            raise ValueError(f"Unknown storage {backend=}")


# ----------------------------------------------------------------------------
#                      Fire and forget persistence
# ----------------------------------------------------------------------------
class PersistenceWorker:
    """Inserts results into a sink from a background thread

    `submit` only enqueues, so the session never waits for the sink. Failing
    inserts are logged and dropped.
    """

    _STOP = object()

    def __init__(self, sink: ResultSink):
        self.sink = sink
        self.queue: queue.Queue = queue.Queue()
        self.n_failed = 0
        self._thread = threading.Thread(
            target=self._run, name="PersistenceWorker", daemon=True
        )
        self._thread.start()

    def submit(self, result: TrialResult):
        self.queue.put_nowait(result)

    def _run(self):
        while True:
            item = self.queue.get()
            try:
                if item is self._STOP:
                    return
                self.sink.insert(item)
                logger.debug(f"Stored {item=}")
            except SinkError as err:
                self.n_failed += 1
                logger.error(f"Failed to save result: {err}")
            finally:
                self.queue.task_done()

    def flush(self):
        """Block until all submitted results are processed"""
        self.queue.join()

    def stop(self, timeout_s: float = 5.0):
        if self._thread.is_alive():
            self.queue.put(self._STOP)
            self._thread.join(timeout=timeout_s)
        self.sink.close()


# ----------------------------------------------------------------------------
#                      Destructive operations
# ----------------------------------------------------------------------------
def clear_session_results(
    sink: ResultSink, session_id: str, confirm: Callable[[str], bool]
) -> bool:
    """Delete all rows of a session from the sink, if `confirm` agrees.
    SinkErrors are passed on to the caller."""
    msg = (
        f"Are you sure you want to delete the results of session {session_id}"
        " from the database? This cannot be undone."
    )
    if not confirm(msg):
        logger.info(f"Clearing results of {session_id=} cancelled")
        return False

    n = sink.delete_session(session_id)
    logger.info(f"Cleared results of {session_id=} ({n=} rows)")
    return True


def clear_all_results(sink: ResultSink, confirm: Callable[[str], bool]) -> bool:
    msg = (
        "Are you sure you want to delete ALL results of ALL sessions from the"
        " database? This cannot be undone."
    )
    if not confirm(msg):
        logger.info("Clearing all results cancelled")
        return False

    n = sink.delete_all()
    logger.info(f"Cleared all results ({n=} rows)")
    return True
