# -*- coding: utf-8 -*-
from __future__ import annotations


class LedgerError(Exception):
    """Base for every error raised by the ledger services."""


class ValidationError(LedgerError):
    """Rejected input. Nothing was written."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


class StockWarning(LedgerError):
    """The sale would leave materials below their minimum stock."""

    def __init__(self, shortfalls: list[dict]):
        super().__init__("stock below minimum")
        self.shortfalls = shortfalls


class NegativePayrollWarning(LedgerError):
    """Deductions exceed earnings for the slip."""

    def __init__(self, breakdown: dict):
        super().__init__("payroll total is negative")
        self.breakdown = breakdown
