# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import atexit
import os
import threading

from flask import Flask
from flask_cors import CORS

from giftdrop.infrastructure.container import Container, container as default_container
from giftdrop.infrastructure.db import init_db
from giftdrop.infrastructure.observability import configure_request_metrics
from giftdrop.shared.config import load_config
from giftdrop.shared.logging import logger, setup_logging
from giftdrop.shared.middleware.error_handler import configure_error_handling
from giftdrop.shared.middleware.request_logger import configure_request_logging

_config = load_config()
_BOOTSTRAPPED = threading.Event()


def _should_boot() -> bool:
    if os.environ.get("GIFTDROP_BOOT_WORKERS") == "1":
        return True
    return os.environ.get("WERKZEUG_RUN_MAIN") == "true"


def _start_workers(container: Container) -> None:
    for worker in container.workers:
        worker.start()
    logger.info(f"workers.bootstrap: started {len(container.workers)} workers")


def _stop_workers(container: Container) -> None:
    for worker in container.workers:
        worker.shutdown()
    logger.info("workers.bootstrap: stopped all workers")


def create_app(container: Container | None = None, *, init_schema: bool = True) -> Flask:
    container = container or default_container
    setup_logging(debug_mode=_config.debug_logging)
    if init_schema:
        init_db()

    app = Flask(__name__)
    configure_error_handling(app)
    configure_request_logging(app)
    configure_request_metrics(app)

    app.config.update(SECRET_KEY=_config.secret_key)

    CORS(app, resources={r"/api/*": {"origins": _config.security.allowed_origins}})
    app.register_blueprint(container.misc_controller.as_blueprint())
    app.register_blueprint(container.telegram_controller.as_blueprint())
    app.register_blueprint(container.payments_controller.as_blueprint())
    app.register_blueprint(container.api_controller.as_blueprint())

    if _should_boot() and not _BOOTSTRAPPED.is_set():
        _BOOTSTRAPPED.set()
        _start_workers(container)
        atexit.register(_stop_workers, container)

    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("Referrer-Policy", "no-referrer")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
        resp.headers.setdefault(
            "Permissions-Policy",
            "geolocation=(), microphone=(), camera=(), usb=(), magnetometer=(), gyroscope=()",
        )
        resp.headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")

        if _config.security.enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )

        return resp

    logger.info("Flask app initialized")
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=int(os.environ.get("SERVER_PORT", "5000")), debug=True)
