"""
SQLite schema for remediation audit logging.

This module defines the database schema for:
- Remediation sessions (one driver run against one issue)
- Remediation steps (one row per agentic turn, in order)

The schema supports:
- Full replay of a session's turn history for escalation review
- Session outcome tracking (running -> resolved/escalated/failed)
"""

REMEDIATION_SCHEMA_SQL = """
-- One row per driver run against an issue
CREATE TABLE IF NOT EXISTS remediation_sessions (
    session_id TEXT PRIMARY KEY,           -- {timestamp}-{uuid[:8]}
    issue_name TEXT NOT NULL,
    namespace TEXT,
    status TEXT NOT NULL DEFAULT 'running', -- running, resolved, escalated, failed
    started_at TEXT NOT NULL,              -- ISO8601 timestamp
    ended_at TEXT,
    outcome_summary TEXT
);

-- One row per agentic turn
CREATE TABLE IF NOT EXISTS remediation_steps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL REFERENCES remediation_sessions(session_id),
    step_number INTEGER NOT NULL,
    reasoning TEXT NOT NULL,
    action TEXT,                           -- NULL for observe/final turns
    params TEXT,                           -- JSON object of string params
    observation TEXT,
    timestamp TEXT NOT NULL
);

-- Index for replaying a session in order
CREATE INDEX IF NOT EXISTS idx_remediation_steps_session
ON remediation_steps(session_id, step_number);

-- Index for listing recent sessions
CREATE INDEX IF NOT EXISTS idx_remediation_sessions_started
ON remediation_sessions(started_at);
"""
