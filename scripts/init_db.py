"""Create the timecard database and apply database/schema.sql.

The target comes from the settings module selected by APP_ENV. Exits with
status 1 when any timecard table is still missing afterwards.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.timecard.timecard.database.bootstrap import TIMECARD_TABLES, apply_schema, list_tables, missing_tables

SCHEMA_PATH = REPO_ROOT / "database" / "schema.sql"


def main() -> int:
    settings_module = get_settings_module()
    db_config = dict(importlib.import_module(settings_module).DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=SCHEMA_PATH)
    missing = missing_tables(list_tables(db_config))

    print(f"Applied {SCHEMA_PATH.name} to {target} ({settings_module})")
    for name in TIMECARD_TABLES:
        status = "MISSING" if name in missing else "ok"
        print(f"  {status:8} {name}")
    if missing:
        print(f"ERROR: {len(missing)} timecard table(s) missing", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
