# -*- coding: utf-8 -*-
from decimal import Decimal, ROUND_HALF_UP

D = lambda v: Decimal(str(v)) if v is not None else Decimal("0")

CENT = Decimal("0.01")


def cents(v) -> Decimal:
    return D(v).quantize(CENT, rounding=ROUND_HALF_UP)


from .catalog import Material, Product, ProductMaterial, Marketplace  # noqa: E402
from .inventory import InventoryTransaction  # noqa: E402
from .sales import Sale, SaleItem  # noqa: E402
from .operations import OperationalTarget, OperationalLog  # noqa: E402
from .user import User  # noqa: E402
from .payroll import PayrollTransaction  # noqa: E402
from .expense import Expense, SystemConfig  # noqa: E402

__all__ = [
    "D", "cents",
    "Material", "Product", "ProductMaterial", "Marketplace",
    "InventoryTransaction", "Sale", "SaleItem",
    "OperationalTarget", "OperationalLog", "User",
    "PayrollTransaction", "Expense", "SystemConfig",
]
