"""
Classify IntegrityError by the kind of constraint that fired.

SQLite only reports constraint kinds through its message text; PostgreSQL
drivers expose the SQLSTATE as well.
"""

from sqlalchemy.exc import IntegrityError

UNIQUE = "unique"
FOREIGN_KEY = "foreign_key"
CHECK = "check"
OTHER = "other"

_PG_CODES = {
    "23505": UNIQUE,
    "23503": FOREIGN_KEY,
    "23514": CHECK,
}


def constraint_kind(error: IntegrityError) -> str:
    orig = getattr(error, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code in _PG_CODES:
        return _PG_CODES[code]

    message = str(orig or error).lower()
    if "unique" in message or "duplicate key" in message or "primary key" in message:
        return UNIQUE
    if "foreign key" in message:
        return FOREIGN_KEY
    if "check constraint" in message:
        return CHECK
    return OTHER


def constraint_message(error: IntegrityError) -> str:
    return str(getattr(error, "orig", None) or error).lower()
