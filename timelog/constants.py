"""
Shared constants for timelog.

Centralises store keys and the status messages shown to the user so the
engine, the CLI and the tests agree on wording.
"""

# ── Key-value store keys ────────────────────────────────────────────────────────
SETTINGS_KEY = "redmine_settings"
QUEUE_KEY = "redmine_request_queue"

# ── Status messages ─────────────────────────────────────────────────────────────
STATUS_MESSAGES = {
    "sending": "Sending entry...",
    "delivered": "Success: hours for Issue #{issue_id} recorded.",
    "rejected": (
        "Error: Redmine rejected the entry for Issue #{issue_id} "
        "(HTTP {status_code}). Removed from the queue."
    ),
    "unreachable": "Offline: Redmine unreachable (Issue #{issue_id}).",
    "queued": "Offline: entry for Issue #{issue_id} queued.",
    "retrying": "Retrying {count} queued entries...",
    "retrying_item": "Retrying Issue #{issue_id}...",
    "retry_delivered": "Success: queued entry for Issue #{issue_id} sent.",
    "drain_stopped": "Offline: unable to flush the queue. Will retry later.",
    "queue_cleared": "Offline queue cleared.",
    "internal_error": "Error: could not process the entry for Issue #{issue_id}. It was kept for retry.",
    "storage_error": "Error: could not save the entry for Issue #{issue_id}.",
}
