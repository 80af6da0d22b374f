from __future__ import annotations

import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.http import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_TENANT_HEADER
from .database.bootstrap import apply_schema, list_tables
from .attendance.controller import register as register_attendance
from .qr_links.controller import register as register_qr_links
from .reports.controller import register as register_reports
from .staff.controller import register as register_staff
from .users.controller import register as register_users
from .work_settings.controller import register as register_work_settings

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory. Pass `container` to skip MySQL wiring (tests)."""

    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.permanent_session_lifetime = timedelta(days=7)
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["QR_BASE_URL"] = getattr(settings, "QR_BASE_URL", "")
    app.config["TENANT_HEADER"] = getattr(settings, "TENANT_HEADER", DEFAULT_TENANT_HEADER)
    app.config["ALLOW_TENANT_HEADER"] = bool(getattr(settings, "ALLOW_TENANT_HEADER", False))

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        container = build_container(db_config=db_config)

    register_error_handlers(app)
    register_users(app, container)
    register_staff(app, container)
    register_attendance(app, container)
    register_work_settings(app, container)
    register_reports(app, container)
    register_qr_links(app, container)

    return app
