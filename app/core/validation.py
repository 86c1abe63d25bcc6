"""Store-backed validation rules.

Field shape rules (types, lengths, email syntax, bounds) live on the pydantic
schemas. The rules here need the database: uniqueness and "exists with a
predicate" checks. A ``RuleSet`` collects every failure of one request and raises a
single ``ValidationFailed`` so nothing is written when any rule fails.
"""
from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import Conflict, ValidationFailed

logger = structlog.get_logger()

FieldErrors = Dict[str, List[str]]

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


def humanize(field: str) -> str:
    return field.replace("_", " ")


def field_errors_from_pydantic(errors: Iterable[dict]) -> FieldErrors:
    """Turn pydantic/FastAPI error dicts into ``{"items.0.quantity": [...]}``."""
    mapped: FieldErrors = defaultdict(list)
    for error in errors:
        loc: Sequence[Any] = error.get("loc", ())
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or "__root__"
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        mapped[field].append(message)
    return dict(mapped)


class RuleSet:
    def __init__(self, db: Session, status_code: Optional[int] = None):
        self.db = db
        self.status_code = status_code
        self.errors: FieldErrors = defaultdict(list)

    def fail(self, field: str, message: str) -> "RuleSet":
        self.errors[field].append(message)
        return self

    def unique(self, field: str, column, value, exclude_id=None) -> "RuleSet":
        """``value`` must not already exist in ``column`` (other than on ``exclude_id``)."""
        if value is None:
            return self
        model = column.class_
        query = self.db.query(model.id).filter(column == value)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first() is not None:
            self.fail(field, f"The {humanize(field)} has already been taken.")
        return self

    def exists(self, field: str, model, value, label: Optional[str] = None, **predicate) -> "RuleSet":
        """``value`` must be the id of a ``model`` row that also matches ``predicate``."""
        if value is None:
            return self
        query = self.db.query(model.id).filter(model.id == value)
        for attr, expected in predicate.items():
            query = query.filter(getattr(model, attr) == expected)
        if query.first() is None:
            self.fail(field, f"The selected {label or humanize(field)} is invalid.")
        return self

    @property
    def passed(self) -> bool:
        return not self.errors

    def validate(self) -> None:
        if self.errors:
            raise ValidationFailed(errors=dict(self.errors), status_code=self.status_code)


def commit_or_conflict(db: Session, recheck: Optional[Callable[[], RuleSet]] = None) -> None:
    """Commit, mapping store integrity errors onto the API error taxonomy.

    Pre-checks are not atomic with the write, so a concurrent insert can still hit
    a unique index at commit. ``recheck`` rebuilds the uniqueness rules after the
    rollback; when they now fail the caller gets the field errors, otherwise a 409.
    """
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("integrity_error_on_commit", detail=str(exc.orig))
        if recheck is not None:
            recheck().validate()
        raise Conflict() from exc
