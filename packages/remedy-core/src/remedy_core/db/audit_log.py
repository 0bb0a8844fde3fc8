"""
SQLite-based audit log for remediation sessions.

This module provides synchronous database operations for the driver loop:
- Create session records
- Record each agentic turn (reasoning, action, params, observation)
- Complete sessions with status and summary
- Query session history for review/replay
"""

import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any

from remedy_core.db.schema import REMEDIATION_SCHEMA_SQL
from remedy_core.types import RemediationStep, StepHistory


class StepAuditLog:
    """
    Synchronous context manager for remediation audit logging.

    Example:
        with StepAuditLog(Path("remedy.db")) as audit:
            session_id = audit.create_session("oom-api", "prod")
            audit.log_step(session_id, step)
            audit.complete_session(session_id, "resolved", "Raised memory limit")
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the database connection manager.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def __enter__(self) -> "StepAuditLog":
        """Open database connection and ensure schema exists."""
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(REMEDIATION_SCHEMA_SQL)
        self._conn.commit()
        return self

    def __exit__(self, *args: Any) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("StepAuditLog used outside its context manager")
        return self._conn

    def create_session(self, issue_name: str, namespace: str | None = None) -> str:
        """
        Create a new remediation session record.

        Returns:
            session_id in format {timestamp}-{uuid[:8]}
        """
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
        session_id = f"{timestamp}-{str(uuid.uuid4())[:8]}"

        self.conn.execute(
            """
            INSERT INTO remediation_sessions (session_id, issue_name, namespace, status, started_at)
            VALUES (?, ?, ?, 'running', ?)
            """,
            (session_id, issue_name, namespace, datetime.now().isoformat()),
        )
        self.conn.commit()
        return session_id

    def log_step(self, session_id: str, step: RemediationStep) -> int:
        """
        Record one agentic turn.

        Returns:
            The created row ID
        """
        cursor = self.conn.execute(
            """
            INSERT INTO remediation_steps (
                session_id, step_number, reasoning, action, params, observation, timestamp
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                step.step_number,
                step.reasoning,
                step.action.value if step.action else None,
                json.dumps(step.params) if step.params else None,
                step.observation,
                datetime.now().isoformat(),
            ),
        )
        self.conn.commit()
        return cursor.lastrowid

    def complete_session(self, session_id: str, status: str, outcome_summary: str) -> None:
        """
        Mark session as complete with final status and summary.

        Args:
            session_id: Session identifier
            status: Final status (resolved, escalated, failed)
            outcome_summary: Summary of the session outcome
        """
        self.conn.execute(
            """
            UPDATE remediation_sessions
            SET status = ?, ended_at = ?, outcome_summary = ?
            WHERE session_id = ?
            """,
            (status, datetime.now().isoformat(), outcome_summary, session_id),
        )
        self.conn.commit()

    def get_session(self, session_id: str) -> dict | None:
        """Session row as a dict, or None if unknown."""
        row = self.conn.execute(
            "SELECT * FROM remediation_sessions WHERE session_id = ?", (session_id,)
        ).fetchone()
        return dict(row) if row else None

    def list_sessions(self, limit: int = 20) -> list[dict]:
        """Most recent sessions first."""
        cursor = self.conn.execute(
            "SELECT * FROM remediation_sessions ORDER BY started_at DESC LIMIT ?",
            (limit,),
        )
        return [dict(row) for row in cursor.fetchall()]

    def get_session_history(self, session_id: str) -> StepHistory:
        """
        Rebuild the StepHistory of a session for replay or resumption.

        Args:
            session_id: Session identifier

        Returns:
            The recorded turns in step order
        """
        cursor = self.conn.execute(
            """
            SELECT * FROM remediation_steps
            WHERE session_id = ?
            ORDER BY step_number ASC
            """,
            (session_id,),
        )
        steps = [
            RemediationStep(
                step_number=row["step_number"],
                reasoning=row["reasoning"],
                action=row["action"],
                params=json.loads(row["params"]) if row["params"] else {},
                observation=row["observation"],
            )
            for row in cursor.fetchall()
        ]
        return StepHistory.of(steps)
