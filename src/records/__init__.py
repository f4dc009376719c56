"""
src/records - flat-file user, activity and query records.

Public interface
----------------
    record_login(db_path, email, ...)
    log_activity(db_path, user_email, activity_type, ...)
    admin_data(db_path)
    submit_query(db_path, subject, query, ...)
    list_queries(db_path)
"""

from .store import (
    RecordValidationError,
    admin_data,
    list_queries,
    load_data,
    log_activity,
    record_login,
    save_data,
    submit_query,
)

__all__ = [
    "RecordValidationError",
    "load_data",
    "save_data",
    "record_login",
    "log_activity",
    "admin_data",
    "submit_query",
    "list_queries",
]
