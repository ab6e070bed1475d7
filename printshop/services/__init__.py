# -*- coding: utf-8 -*-
from __future__ import annotations

from calendar import monthrange
from contextlib import contextmanager
from datetime import date, datetime

from ..extensions import db
from ..errors import ValidationError


def now() -> datetime:
    """Local wall-clock time. Ledger dates and "today" both come from here."""
    return datetime.now()


def local_today() -> date:
    return now().date()


@contextmanager
def atomic():
    """One commit for a compound ledger operation, rollback on any failure."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def month_bounds(year: int, month: int) -> tuple[datetime, datetime, int]:
    """[start, end) of a calendar month plus its number of days."""
    days = monthrange(year, month)[1]
    start = datetime(year, month, 1)
    # end: first day of the next month
    end = datetime(year + (1 if month == 12 else 0), 1 if month == 12 else month + 1, 1)
    return start, end, days


def parse_month(qs: str | None, today: date | None = None) -> tuple[int, int]:
    """'YYYY-MM' -> (year, month); falls back to the current month."""
    today = today or local_today()
    if qs:
        try:
            y, m = map(int, qs.split("-")[:2])
            date(y, m, 1)
            return y, m
        except (TypeError, ValueError):
            pass
    return today.year, today.month


def to_int(v, code: str = "bad_id") -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError(code)
