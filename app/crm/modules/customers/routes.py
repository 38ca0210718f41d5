from __future__ import annotations

from flask import Blueprint, abort, current_app, redirect, render_template, request, url_for
from werkzeug.wrappers import Response

from app.crm.db import db_session
from app.crm.errors import handle_store_error
from app.crm.modules.customers.models import CUSTOMER_FORM_FIELDS
from app.crm.modules.customers.service import CustomerStore, StoreError

bp = Blueprint("customers", __name__)


def _store() -> CustomerStore:
    return CustomerStore(db_session())


def _form_data() -> dict[str, str]:
    # URL-encoded only; flat, so the first value wins for repeated keys.
    if request.mimetype != "application/x-www-form-urlencoded":
        abort(415)
    return request.form.to_dict(flat=True)


def _mount_path() -> str:
    return url_for(".customers_list").rstrip("/") or "/"


def _form_fields(customer: dict[str, str]) -> list[str]:
    extra = sorted(k for k in customer if k != "id" and k not in CUSTOMER_FORM_FIELDS)
    return [*CUSTOMER_FORM_FIELDS, *extra]


@bp.after_request
def _html_content_type(resp: Response) -> Response:
    resp.headers["Content-Type"] = "text/html; charset=utf-8"
    return resp


@bp.errorhandler(StoreError)
def _forward_store_error(err: StoreError):
    err.response = str(err)
    return handle_store_error(err)


@bp.get("/", strict_slashes=False)
def customers_list():
    """Display a page of customers."""
    customers, next_page_token = _store().list(current_app.config["CUSTOMERS_PAGE_SIZE"], request.args.get("pageToken"))
    return render_template("customers/list.html", customers=customers, next_page_token=next_page_token)


@bp.get("/add")
def customers_add_get():
    return render_template("customers/form.html", customer={}, action="Add", fields=_form_fields({}))


@bp.post("/add")
def customers_add_post():
    saved = _store().create(_form_data())
    current_app.logger.info("Customer created (id=%s)", saved["id"])
    return redirect(url_for(".customer_view", customer_id=saved["id"]))


@bp.get("/<customer_id>/edit")
def customer_edit_get(customer_id: str):
    customer = _store().read(customer_id)
    return render_template("customers/form.html", customer=customer, action="Edit", fields=_form_fields(customer))


@bp.post("/<customer_id>/edit")
def customer_edit_post(customer_id: str):
    saved = _store().update(customer_id, _form_data())
    return redirect(url_for(".customer_view", customer_id=saved["id"]))


@bp.get("/<customer_id>")
def customer_view(customer_id: str):
    customer = _store().read(customer_id)
    return render_template("customers/view.html", customer=customer)


@bp.get("/<customer_id>/delete")
def customer_delete(customer_id: str):
    _store().delete(customer_id)
    current_app.logger.info("Customer deleted (id=%s)", customer_id)
    return redirect(_mount_path())
