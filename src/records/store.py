"""
Flat-file JSON store for users, activity and support queries.

File layout::

    {"users": [...], "activities": [...], "queries": [...]}

Design notes:
- Every operation is load → modify → save of the whole file; the last
  writer wins.  A process-wide lock serializes read-modify-write cycles
  within one server process; nothing coordinates across processes.
- A missing file is created with the empty layout; an unreadable file is
  logged and treated as empty so the dashboard keeps working.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

_LOCK = threading.RLock()

COLLECTIONS: tuple[str, ...] = ("users", "activities", "queries")

# Dashboard storage estimate per logged analysis (GB)
STORAGE_PER_ANALYSIS_GB: float = 0.05
STORAGE_LIMIT_GB: int = 10
DEFAULT_PICTURE: str = "https://via.placeholder.com/40"


class RecordValidationError(ValueError):
    """A submitted record is missing required fields."""


def _empty() -> dict:
    return {name: [] for name in COLLECTIONS}


def _now() -> str:
    return datetime.now().isoformat()


def generate_record_id() -> str:
    """Unique record identifier (UUID4 string)."""
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def load_data(db_path: Path) -> dict:
    """
    Load the store, creating it on first use.

    Args:
        db_path: Path of the JSON file.

    Returns:
        Dict with all three collections present.
    """
    with _LOCK:
        if not db_path.exists():
            data = _empty()
            save_data(data, db_path)
            return data
        try:
            data = json.loads(db_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error loading data from %s: %s", db_path, exc)
            return _empty()

    if not isinstance(data, dict):
        logger.error("Unexpected store layout in %s; starting empty.", db_path)
        return _empty()
    for name in COLLECTIONS:
        if not isinstance(data.get(name), list):
            data[name] = []
    return data


def save_data(data: dict, db_path: Path) -> None:
    """Write the whole store (pretty-printed)."""
    with _LOCK:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        db_path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Users and activity
# ---------------------------------------------------------------------------

def record_login(
    db_path: Path,
    email: str,
    name: str | None = None,
    picture: str | None = None,
) -> dict:
    """
    Create or refresh a user on login.

    Existing users keep their id and analysis count; profile fields and
    ``lastLogin`` are overwritten.

    Raises:
        RecordValidationError: ``email`` is empty.
    """
    if not email:
        raise RecordValidationError("Email is required")

    with _LOCK:
        data = load_data(db_path)
        info = {
            "email": email,
            "name": name or email.split("@")[0],
            "picture": picture or DEFAULT_PICTURE,
            "lastLogin": _now(),
            "role": "User",
            "status": "Active",
        }
        for user in data["users"]:
            if user.get("email") == email:
                user.update(info)
                saved = user
                break
        else:
            saved = {**info, "id": generate_record_id(), "analyses": 0}
            data["users"].append(saved)
        save_data(data, db_path)
    return saved


def log_activity(
    db_path: Path,
    user_email: str | None,
    activity_type: str | None,
    details: dict | None = None,
    grains: int | None = None,
) -> str:
    """
    Append an activity entry and bump the user's analysis count.

    Returns:
        The new activity id.
    """
    with _LOCK:
        data = load_data(db_path)
        for user in data["users"]:
            if user.get("email") == user_email:
                user["analyses"] = (user.get("analyses") or 0) + 1
                break
        activity = {
            "id": generate_record_id(),
            "user": user_email,
            "type": activity_type,
            "timestamp": _now(),
            "status": "Success",
            "grains": grains or 0,
            "details": details or {},
        }
        data["activities"].append(activity)
        save_data(data, db_path)
    return activity["id"]


def admin_data(db_path: Path) -> dict:
    """Users, analysis history and system stats for the admin dashboard."""
    data = load_data(db_path)
    n_activities = len(data["activities"])
    return {
        "users": data["users"],
        "analysisHistory": data["activities"],
        "systemStats": {
            "totalUsers": len(data["users"]),
            "totalAnalyses": n_activities,
            "successRate": _success_rate(data["activities"]),
            "storageUsed": round(n_activities * STORAGE_PER_ANALYSIS_GB, 2),
            "storageLimit": STORAGE_LIMIT_GB,
        },
    }


def _success_rate(activities: list[dict]) -> float:
    if not activities:
        return 100.0
    ok = sum(1 for a in activities if a.get("status") == "Success")
    return round(ok / len(activities) * 100, 1)


# ---------------------------------------------------------------------------
# Support queries
# ---------------------------------------------------------------------------

def submit_query(
    db_path: Path,
    subject: str | None,
    query: str | None,
    user_id: str | None = None,
    user_name: str | None = None,
    user_email: str | None = None,
    timestamp: str | None = None,
) -> str:
    """
    Store a support query.

    Returns:
        The new query id.

    Raises:
        RecordValidationError: Subject or query text is missing.
    """
    if not (subject and subject.strip()) or not (query and query.strip()):
        raise RecordValidationError("Subject and query are required")

    with _LOCK:
        data = load_data(db_path)
        record = {
            "id": generate_record_id(),
            "userId": user_id or "guest",
            "userName": user_name or "Guest User",
            "userEmail": user_email or "N/A",
            "subject": subject.strip(),
            "query": query.strip(),
            "timestamp": timestamp or _now(),
            "status": "Pending",
        }
        data["queries"].append(record)
        save_data(data, db_path)
    return record["id"]


def list_queries(db_path: Path) -> list[dict]:
    """All stored queries, oldest first."""
    return load_data(db_path)["queries"]
