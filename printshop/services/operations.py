# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from datetime import date, datetime

from ..extensions import db
from ..errors import ValidationError
from ..models import OperationalTarget, OperationalLog
from . import atomic, now, local_today, to_int
from .catalog import number
from .payroll import generate_due_slips

logger = logging.getLogger(__name__)


# ------------ targets ---------------------------------------------------------
def _target_fields(data: dict, current: OperationalTarget | None = None) -> dict:
    name = (data.get("metric_name") or (current.metric_name if current else "") or "").strip()
    if not name:
        raise ValidationError("no_name")
    rate = number(data.get("unit_rate", current.unit_rate if current else 0) or 0, "bad_rate")
    if rate < 0:
        raise ValidationError("bad_rate")
    return {
        "metric_name": name,
        "target_daily": number(data.get("target_daily", current.target_daily if current else 0) or 0, "bad_target"),
        "unit_rate": rate,
    }


def add_target(data: dict) -> OperationalTarget:
    fields = _target_fields(data)
    with atomic():
        t = OperationalTarget(**fields)
        db.session.add(t)
    return t


def update_target(target_id, data: dict) -> OperationalTarget:
    t = db.session.get(OperationalTarget, to_int(target_id))
    if not t:
        raise ValidationError("no_target")
    fields = _target_fields(data, t)
    if fields["metric_name"] != t.metric_name:
        # logs reference the old name and stop counting towards this target
        logger.warning("target %s renamed %r -> %r", t.id, t.metric_name, fields["metric_name"])
    with atomic():
        for k, v in fields.items():
            setattr(t, k, v)
    return t


def delete_target(target_id) -> bool:
    t = db.session.get(OperationalTarget, to_int(target_id))
    if not t:
        return False
    with atomic():
        db.session.delete(t)
    return True


# ------------ logs ------------------------------------------------------------
def record_log(target_id, value, when: datetime | None = None, today: date | None = None) -> OperationalLog:
    t = db.session.get(OperationalTarget, to_int(target_id, "no_target"))
    if not t:
        raise ValidationError("no_target")
    v = number(value, "bad_value", positive=True)
    with atomic():
        log = OperationalLog(date=when or now(), metric_name=t.metric_name, value=v)
        db.session.add(log)
    logger.info("operational log %s +%s", t.metric_name, v)
    generate_due_slips(today or local_today())
    return log


def list_logs(limit: int | None = None) -> list[OperationalLog]:
    q = OperationalLog.query.order_by(OperationalLog.date.desc(), OperationalLog.id.desc())
    if limit:
        q = q.limit(limit)
    return q.all()
