from dataclasses import dataclass


@dataclass(frozen=True)
class WebhookLogEntry:
    logged_at: str
    status: str
    action: str = ""
    team: str = ""
    pdga: str = ""
    name: str = ""
    from_team: str = ""
    to_team: str = ""
    detail: str = ""
    id: int | None = None


@dataclass(frozen=True)
class LineupReminderLog:
    cycle_id: str
    event_name: str
    run_at: str
    created_at: str
    status: str
    meta_json: str = "{}"
    id: int | None = None


@dataclass(frozen=True)
class LoadLog:
    source_type: str
    source_detail: str
    target_table: str
    rows_loaded: int
    started_at: str
    finished_at: str
    status: str
    rows_skipped: int = 0
    id: int | None = None
    error_message: str | None = None
