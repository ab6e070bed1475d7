# -*- coding: utf-8 -*-
from datetime import datetime, date


def fmt_date(value, fmt="%d/%m/%Y"):
    if value in (None, ""):
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime(fmt)
    s = str(value)
    try:
        return datetime.fromisoformat(s).strftime(fmt)
    except ValueError:
        try:
            return date.fromisoformat(s[:10]).strftime(fmt)
        except ValueError:
            return s


def fmt_money(v):
    """1234.5 -> 'R$ 1.234,50' (pt-BR separators)."""
    try:
        x = float(v)
    except (TypeError, ValueError):
        return str(v)
    sign = "-" if x < 0 else ""
    s = f"{abs(x):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {s}"
