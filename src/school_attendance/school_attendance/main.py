from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, apply_seed_sql, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .configurations.controller import register as register_configurations
from .leave.controller import register as register_leave
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)


def create_app(container: Container | None = None) -> Flask:
    """Build the Flask app; pass `container` to skip the database wiring (tests)."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

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
            apply_schema(db_config)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            status_cycle_wraps_to_unmarked=bool(getattr(settings, "STATUS_CYCLE_WRAPS_TO_UNMARKED", False)),
        )

    register_configurations(app, container)
    register_attendance(app, container)
    register_leave(app, container)
    register_reports(app, container)

    return app
