from sqlalchemy.exc import IntegrityError

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = getattr(exc, "orig", None)
    # psycopg 3 -> sqlstate, psycopg2 -> pgcode
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _message(exc: IntegrityError) -> str:
    return str(getattr(exc, "orig", exc)).lower()


def is_unique_violation(exc: IntegrityError, column: str | None = None) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        matched = code == UNIQUE_VIOLATION
    else:
        matched = "unique constraint" in _message(exc)
    if not matched or column is None:
        return matched
    return column.lower() in _message(exc)


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    code = _sqlstate(exc)
    if code is not None:
        return code == FOREIGN_KEY_VIOLATION
    return "foreign key constraint" in _message(exc)
