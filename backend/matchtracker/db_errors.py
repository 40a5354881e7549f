"""Helpers for working with database/SQLAlchemy errors."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

_UNIQUE_VIOLATION_SQLSTATES = {"23505"}


def is_unique_violation(
    exc: SQLAlchemyError, constraint_hint: str | None = None
) -> bool:
    """Return ``True`` if ``exc`` was raised by a unique constraint.

    Parameters
    ----------
    exc:
        The SQLAlchemy exception to inspect.
    constraint_hint:
        Optional substring (a constraint name such as
        ``"uq_match_set_match_id_set_number"`` or a column such as
        ``"set_number"``) that must appear in the driver message. SQLite only
        reports the columns involved, so either form is accepted.
    """

    orig = getattr(exc, "orig", None)
    if orig is None:
        return False

    message = str(orig).lower()
    sqlstate = getattr(orig, "sqlstate", None)
    if sqlstate in _UNIQUE_VIOLATION_SQLSTATES:
        return True if constraint_hint is None else constraint_hint.lower() in message

    if "unique" not in message:
        return False
    return constraint_hint is None or constraint_hint.lower() in message
