"""Create the MySQL documents table used by STORE_BACKEND=mysql."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from tenant_attendance.database.bootstrap import apply_schema, list_tables
from tenant_attendance.database.connection import DBConfig, DatabaseConnection
from tenant_attendance.logging_config import configure_logging
from tenant_attendance.settings import get_settings_module

logger = logging.getLogger("init_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    config = DBConfig.from_dict(dict(settings.DB_CONFIG))
    conn = DatabaseConnection.get_instance(config)
    apply_schema(conn)
    tables = list_tables(conn)
    logger.info(
        "Applied schema -> %s@%s:%s/%s (tables=%d)",
        config.user,
        config.host,
        config.port,
        config.database,
        len(tables),
    )


if __name__ == "__main__":
    main()
