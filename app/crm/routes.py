from flask import Blueprint, redirect, url_for

bp = Blueprint("routes", __name__)


@bp.get("/")
def index():
    return redirect(url_for("customers.customers_list"))


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for container probes. No DB access, minimal overhead.
    """
    return "ok", 200
