from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .container import build_container
from .identity.provider import IdentityProvider
from .invites.controller import register as register_invites
from .logging_config import configure_logging
from .reporting.controller import register as register_reporting
from .settings import get_settings_module
from .store.base import DocumentStore
from .tenants.controller import register as register_tenants
from .users.controller import register as register_users
from .web import EXTENSION_KEY

logger = logging.getLogger(__name__)


def create_app(
    settings_module: Optional[str] = None,
    *,
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
) -> Flask:
    load_dotenv(override=False)
    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logger.info(
        "Starting with settings=%s store=%s identity=%s",
        settings_module,
        getattr(settings, "STORE_BACKEND", "memory"),
        getattr(settings, "IDENTITY_BACKEND", "memory"),
    )

    container = build_container(settings, store=store, identity=identity)
    app.extensions[EXTENSION_KEY] = container

    register_tenants(app, container)
    register_users(app, container)
    register_invites(app, container)
    register_attendance(app, container)
    register_reporting(app, container)

    return app
