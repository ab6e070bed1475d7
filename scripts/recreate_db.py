# -*- coding: utf-8 -*-
"""
Full reset of the database plus the default data set, with verbose logs.

Run from the project root:
  python scripts/recreate_db.py
"""

from __future__ import annotations
import sys, traceback
from pathlib import Path
from sqlalchemy import text

# --- project path ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print(f"[recreate] ROOT={ROOT}")
if not (ROOT / "printshop" / "__init__.py").exists():
    raise SystemExit("[recreate] error: printshop/__init__.py not found next to scripts/")

print("[recreate] importing app…")
from printshop import create_app  # type: ignore
from printshop.config import Config  # type: ignore
from printshop.extensions import db  # type: ignore
from printshop.seed import seed_defaults  # type: ignore


class _NoSeed(Config):
    # seeding happens explicitly after the drop below
    SEED_DEFAULTS = False


def _cnt(table: str) -> int:
    try:
        return int(db.session.execute(text(f'SELECT COUNT(*) FROM "{table}"')).scalar() or 0)
    except Exception:
        return -1


def main() -> int:
    print("[recreate] create_app()…")
    app = create_app(_NoSeed)
    with app.app_context():
        uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
        print(f"[recreate] SQLALCHEMY_DATABASE_URI = {uri}")

        print("[recreate] dropping all tables…")
        db.drop_all()

        print("[recreate] creating tables from models…")
        db.create_all()

        print("[recreate] seeding defaults…")
        seed_defaults()
        for table in ("material", "marketplace", "operational_target", "user", "system_config"):
            print(f"[recreate] {table} rows={_cnt(table)}")

        print("\n[recreate] Done.")
        print("PIN logins:")
        print("  Administrador / 1234")
        print("  Funcionário   / 0000")
        return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception:
        print("\n[recreate] ERROR:")
        traceback.print_exc()
        sys.exit(1)
