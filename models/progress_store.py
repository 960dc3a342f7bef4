"""SQLite-backed progress store: one durable record per run."""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from config.exceptions import (
    ProgressAlreadyInitializedError,
    ProgressNotFoundError,
    ProgressStorageError,
)
from models.enums import RunOutcome, RunStatus, Stage, StepStatus
from models.progress import (
    ChapterCompletion,
    ProgressRecord,
    StageRecord,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS progress (
    workflow_id TEXT PRIMARY KEY,
    topic TEXT NOT NULL,
    target_audience TEXT DEFAULT '',
    start_time TEXT NOT NULL,
    current_step TEXT NOT NULL DEFAULT 'Initializing',
    completed_chapters INTEGER DEFAULT 0,
    total_chapters INTEGER DEFAULT 0,
    completed_sections INTEGER DEFAULT 0,
    total_sections INTEGER DEFAULT 0,
    total_words_generated INTEGER DEFAULT 0,
    target_word_count INTEGER DEFAULT 0,
    last_update TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'in_progress',
    errors TEXT NOT NULL DEFAULT '[]',
    completed_chapter_details TEXT NOT NULL DEFAULT '[]',
    stages TEXT NOT NULL DEFAULT '{}',
    outcome TEXT,
    end_time TEXT,
    result TEXT
);

CREATE INDEX IF NOT EXISTS idx_progress_status ON progress(status);
CREATE INDEX IF NOT EXISTS idx_progress_start_time ON progress(start_time);
"""

_UPSERT_SQL = (
    "INSERT OR REPLACE INTO progress (workflow_id, topic, target_audience, start_time, "
    "current_step, completed_chapters, total_chapters, completed_sections, total_sections, "
    "total_words_generated, target_word_count, last_update, status, errors, "
    "completed_chapter_details, stages, outcome, end_time, result) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)


class ProgressStore:
    """Durable keyed record of run state.

    Every mutation is a read-modify-write inside one ``BEGIN IMMEDIATE``
    transaction, so a concurrent reader only ever sees a whole record.
    The pipeline is the single writer for a given run id.
    """

    def __init__(self, db_path: str | Path, overwrite_existing: bool = False):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.overwrite_existing = overwrite_existing
        self._write_lock = threading.Lock()
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), isolation_level=None, timeout=30)
        except sqlite3.Error as e:
            raise ProgressStorageError(f"Cannot open progress store: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            yield conn
        except sqlite3.Error as e:
            raise ProgressStorageError(f"Progress store I/O failed: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._write_lock, self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def _init_db(self):
        with self._connect() as conn:
            conn.executescript(_CREATE_TABLES_SQL)

    # ---- Operations ----

    def initialize(
        self,
        run_id: str,
        topic: str,
        total_chapters: int,
        total_sections: int,
        target_word_count: int,
        target_audience: str = "",
    ) -> ProgressRecord:
        """Create the record for a new run with zeroed counters."""
        with self._transaction() as conn:
            existing = self._load(conn, run_id)
            if existing is not None:
                if not self.overwrite_existing:
                    raise ProgressAlreadyInitializedError(run_id)
                logger.warning(
                    "Resetting existing progress for %s (status=%s, %d errors discarded)",
                    run_id, existing.status.value, len(existing.errors),
                )

            now = utc_now().isoformat()
            record = ProgressRecord(
                workflow_id=run_id,
                topic=topic,
                target_audience=target_audience,
                start_time=now,
                total_chapters=total_chapters,
                total_sections=total_sections,
                target_word_count=target_word_count,
                last_update=now,
            )
            self._save(conn, record)

        logger.info(
            "Progress initialized: run=%s, topic=%s, chapters=%d, sections=%d",
            run_id, topic, total_chapters, total_sections,
        )
        return record

    def update(
        self,
        run_id: str,
        *,
        current_step: Optional[str] = None,
        completed_chapters: Optional[int] = None,
        completed_sections: Optional[int] = None,
        total_words_generated: Optional[int] = None,
        chapter_completed: Optional[ChapterCompletion] = None,
        error: Optional[str] = None,
        stage: Optional[Stage] = None,
    ) -> ProgressRecord:
        """Merge a partial update into the run's record.

        Errors and chapter details are appended. Counters never move
        backwards. A terminal record is left untouched.
        """

        def apply(record: ProgressRecord, ts: str) -> bool:
            if record.is_terminal:
                logger.warning(
                    "Ignoring update for %s: run already %s", run_id, record.status.value,
                )
                return False
            if stage is not None:
                _enter_stage(record, stage, ts)
            if current_step:
                record.current_step = current_step
            if completed_chapters is not None:
                record.completed_chapters = _advance(
                    run_id, "completed_chapters", record.completed_chapters, completed_chapters,
                )
            if completed_sections is not None:
                record.completed_sections = _advance(
                    run_id, "completed_sections", record.completed_sections, completed_sections,
                )
            if total_words_generated is not None:
                record.total_words_generated = total_words_generated
            if error:
                record.errors.append(f"{ts}: {error}")
            if chapter_completed is not None:
                record.completed_chapter_details.append(ChapterCompletion(
                    chapter_number=chapter_completed.chapter_number,
                    title=chapter_completed.title,
                    word_count=chapter_completed.word_count,
                    completed_at=chapter_completed.completed_at or ts,
                ))
            return True

        record = self._mutate(run_id, apply)
        logger.debug(
            "Progress updated: run=%s, chapters=%d/%d, sections=%d/%d, words=%d",
            run_id, record.completed_chapters, record.total_chapters,
            record.completed_sections, record.total_sections, record.total_words_generated,
        )
        return record

    def complete(self, run_id: str, result: Optional[dict] = None) -> ProgressRecord:
        """Mark the run completed. A second call is a no-op."""

        def apply(record: ProgressRecord, ts: str) -> bool:
            if record.is_terminal:
                logger.warning("complete() ignored for %s: already %s", run_id, record.status.value)
                return False
            active = record.active_stage
            if active is not None:
                record.stages[active].status = StepStatus.COMPLETED
                record.stages[active].end_time = ts
            record.status = RunStatus.COMPLETED
            record.current_step = "Completed"
            record.outcome = RunOutcome.COMPLETED
            record.end_time = ts
            if result is not None:
                record.result = result
            return True

        record = self._mutate(run_id, apply)
        logger.info("Workflow completed: run=%s", run_id)
        return record

    def fail(
        self,
        run_id: str,
        error_message: Optional[str] = None,
        outcome: RunOutcome = RunOutcome.ERROR,
    ) -> ProgressRecord:
        """Mark the run failed, appending ``error_message`` when given."""

        def apply(record: ProgressRecord, ts: str) -> bool:
            if record.is_terminal:
                logger.warning("fail() ignored for %s: already %s", run_id, record.status.value)
                return False
            active = record.active_stage
            if active is not None:
                record.stages[active].status = StepStatus.FAILED
                record.stages[active].end_time = ts
                record.stages[active].error = error_message or outcome.value
            record.status = RunStatus.FAILED
            record.current_step = "Failed"
            record.outcome = outcome
            record.end_time = ts
            if error_message:
                record.errors.append(f"{ts}: {error_message}")
            return True

        record = self._mutate(run_id, apply)
        logger.error("Workflow failed: run=%s, outcome=%s, error=%s", run_id, outcome.value, error_message)
        return record

    def get(self, run_id: str) -> ProgressRecord:
        record = self.find(run_id)
        if record is None:
            raise ProgressNotFoundError(run_id)
        return record

    def find(self, run_id: str) -> Optional[ProgressRecord]:
        with self._connect() as conn:
            return self._load(conn, run_id)

    def list_runs(self, status: Optional[RunStatus] = None, limit: int = 50) -> list[ProgressRecord]:
        with self._connect() as conn:
            if status:
                rows = conn.execute(
                    "SELECT * FROM progress WHERE status = ? ORDER BY start_time DESC LIMIT ?",
                    (status.value, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM progress ORDER BY start_time DESC LIMIT ?", (limit,),
                ).fetchall()
            return [self._row_to_record(r) for r in rows]

    # ---- Internals ----

    def _mutate(self, run_id: str, apply: Callable[[ProgressRecord, str], bool]) -> ProgressRecord:
        with self._transaction() as conn:
            record = self._load(conn, run_id)
            if record is None:
                raise ProgressNotFoundError(run_id)
            ts = _next_timestamp(record.last_update)
            if apply(record, ts):
                record.last_update = ts
                self._save(conn, record)
            return record

    def _load(self, conn: sqlite3.Connection, run_id: str) -> Optional[ProgressRecord]:
        row = conn.execute("SELECT * FROM progress WHERE workflow_id = ?", (run_id,)).fetchone()
        if not row:
            return None
        return self._row_to_record(row)

    def _save(self, conn: sqlite3.Connection, record: ProgressRecord):
        conn.execute(
            _UPSERT_SQL,
            (record.workflow_id, record.topic, record.target_audience, record.start_time,
             record.current_step, record.completed_chapters, record.total_chapters,
             record.completed_sections, record.total_sections, record.total_words_generated,
             record.target_word_count, record.last_update, record.status.value,
             json.dumps(record.errors, ensure_ascii=False),
             json.dumps([c.to_dict() for c in record.completed_chapter_details], ensure_ascii=False),
             json.dumps({s.value: r.to_dict() for s, r in record.stages.items()}),
             record.outcome.value if record.outcome else None,
             record.end_time,
             json.dumps(record.result, ensure_ascii=False) if record.result is not None else None),
        )

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> ProgressRecord:
        stages = {
            Stage(name): StageRecord.from_dict(data)
            for name, data in json.loads(row["stages"] or "{}").items()
        }
        return ProgressRecord(
            workflow_id=row["workflow_id"],
            topic=row["topic"],
            target_audience=row["target_audience"] or "",
            start_time=row["start_time"],
            current_step=row["current_step"],
            completed_chapters=row["completed_chapters"],
            total_chapters=row["total_chapters"],
            completed_sections=row["completed_sections"],
            total_sections=row["total_sections"],
            total_words_generated=row["total_words_generated"],
            target_word_count=row["target_word_count"],
            last_update=row["last_update"],
            status=RunStatus(row["status"]),
            errors=json.loads(row["errors"] or "[]"),
            completed_chapter_details=[
                ChapterCompletion.from_dict(d)
                for d in json.loads(row["completed_chapter_details"] or "[]")
            ],
            stages=stages,
            outcome=RunOutcome(row["outcome"]) if row["outcome"] else None,
            end_time=row["end_time"],
            result=json.loads(row["result"]) if row["result"] else None,
        )


def _next_timestamp(previous: str) -> str:
    """Current UTC time, never earlier than ``previous``."""
    now = utc_now()
    if previous:
        try:
            prev = parse_timestamp(previous)
        except ValueError:
            return now.isoformat()
        if prev > now:
            return previous
    return now.isoformat()


def _advance(run_id: str, field_name: str, current: int, new: int) -> int:
    if new < current:
        logger.warning(
            "Ignoring %s regression for %s: %d -> %d", field_name, run_id, current, new,
        )
        return current
    return new


def _enter_stage(record: ProgressRecord, stage: Stage, ts: str):
    active = record.active_stage
    if active == stage:
        return
    if active is not None:
        record.stages[active].status = StepStatus.COMPLETED
        record.stages[active].end_time = ts
    record.stages[stage] = StageRecord(status=StepStatus.IN_PROGRESS, start_time=ts)
