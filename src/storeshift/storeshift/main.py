from __future__ import annotations

import atexit
import importlib
import logging
from datetime import datetime
from typing import Callable, Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.datetime_utils import get_zone, now_utc
from .common.http import register_error_handlers
from .common.logging_config import configure_logging
from .core.constants import DEFAULT_FANOUT_WORKERS, DEFAULT_STORE_TIMEZONE
from .database.bootstrap import apply_schema, ensure_demo_users, list_tables
from .database.connection import DBConfig, DatabaseConnection
from .database.document_store import DocumentStore

from .container import build_container, build_store
from .attendance.controller import register as register_attendance
from .approvals.controller import register as register_approvals
from .notifications.controller import register as register_notifications
from .notifications.push import PushSender
from .realtime.controller import register as register_realtime

logger = logging.getLogger(__name__)


def create_app(
    *,
    store: Optional[DocumentStore] = None,
    clock: Callable[[], datetime] = now_utc,
    push_sender: Optional[PushSender] = None,
) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")
    backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()

    logger.info(
        f"settings={settings_module} backend={backend} "
        f"db={db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )

    if store is None:
        if backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
            conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
            apply_schema(conn)
            logger.info(f"Schema ready (tables={len(list_tables(conn))})")
        store = build_store(backend, db_config)

    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_demo_users(store)
        logger.info("Demo seed ready")

    container = build_container(
        store=store,
        store_tz=get_zone(getattr(settings, "STORE_TIMEZONE", DEFAULT_STORE_TIMEZONE)),
        fanout_workers=int(getattr(settings, "FANOUT_WORKERS", DEFAULT_FANOUT_WORKERS)),
        push_sender=push_sender,
        clock=clock,
    )
    app.extensions["storeshift"] = container
    if not app.config["TESTING"]:
        atexit.register(container.close)

    register_error_handlers(app)
    register_attendance(app, container)
    register_approvals(app, container)
    register_notifications(app, container)
    register_realtime(app, container)

    return app
