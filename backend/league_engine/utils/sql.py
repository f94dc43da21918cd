"""
SQL helpers shared by the services.

COUNT queries may come back as int or as a 1-tuple/Row depending on the
SQLModel/SQLAlchemy version; scalar_int() coerces either to int.
"""
from typing import Any

from sqlalchemy import func
from sqlmodel import Session, select


def scalar_int(x: Any) -> int:
    """Convert COUNT/aggregate result to int. Handles int or 1-tuple/Row."""
    if isinstance(x, int):
        return x
    return int(x[0])


def count_rows(session: Session, model, *criteria) -> int:
    """SELECT COUNT(*) FROM model WHERE criteria."""
    return scalar_int(session.exec(select(func.count()).select_from(model).where(*criteria)).one())
