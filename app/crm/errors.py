"""
Application-wide error stage.

Blueprints forward their errors here so logging and rendering happen once.
"""

from __future__ import annotations

from flask import Flask, current_app, g, render_template, request

from app.crm.modules.customers.service import StoreError


def handle_store_error(err: StoreError):
    message = getattr(err, "response", None) or str(err)
    status = getattr(err, "status_code", 500)
    rid = getattr(g, "request_id", None)
    if status >= 500:
        current_app.logger.error(
            "Store error on %s %s (request_id=%s): %s", request.method, request.path, rid, message, exc_info=err
        )
    else:
        current_app.logger.warning(
            "Store error %s on %s %s (request_id=%s): %s", status, request.method, request.path, rid, message
        )
    return render_template("errors/error.html", message=message, status_code=status), status


def register_error_handlers(app: Flask) -> None:
    app.register_error_handler(StoreError, handle_store_error)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500
