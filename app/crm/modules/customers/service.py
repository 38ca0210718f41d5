"""
Customer store.

The router talks to customers only through CustomerStore. Every operation either
returns a plain mapping ({"id": "<id>", **fields}) or raises a StoreError subclass;
callers never check for error values.

Page tokens are opaque to callers. Internally a token is the URL-safe base64 of the
last id on the previous page, and listing resumes at the first id after it.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crm.audit import record_event
from app.crm.modules.customers.models import Customer

_ID_RE = re.compile(r"[0-9]+")
# Largest value a signed 64-bit INTEGER column can hold.
_MAX_ID = 2**63 - 1


class StoreError(RuntimeError):
    """Any failure surfaced by the customer store."""

    status_code = 500

    def __init__(self, message: str = "Customer store failure.") -> None:
        super().__init__(message)


class NotFoundError(StoreError):
    status_code = 404

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class InvalidInputError(StoreError):
    """Malformed customer id or page token."""

    status_code = 400


def encode_page_token(last_id: int) -> str:
    return base64.urlsafe_b64encode(str(last_id).encode("ascii")).decode("ascii")


def decode_page_token(token: str) -> int:
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii")).decode("ascii")
    except (binascii.Error, ValueError):
        raise InvalidInputError(f"Invalid page token: {token!r}") from None
    if not _ID_RE.fullmatch(raw) or int(raw) > _MAX_ID:
        raise InvalidInputError(f"Invalid page token: {token!r}")
    return int(raw)


def parse_customer_id(customer_id: str) -> int:
    value = str(customer_id).strip()
    if not _ID_RE.fullmatch(value) or int(value) > _MAX_ID:
        raise InvalidInputError(f"Invalid customer id: {customer_id!r}")
    return int(value)


def _clean_fields(data: dict[str, Any]) -> dict[str, str]:
    """Drop any client-supplied id and coerce values to strings."""
    return {str(k): ("" if v is None else str(v)) for k, v in data.items() if k != "id"}


def customer_to_dict(c: Customer) -> dict[str, str]:
    fields = json.loads(c.data_json or "{}")
    fields.pop("id", None)
    return {"id": str(c.id), **fields}


class CustomerStore:
    def __init__(self, s: Session) -> None:
        self.s = s

    @contextmanager
    def _db_errors(self, op: str) -> Iterator[None]:
        try:
            yield
        except (SQLAlchemyError, OverflowError) as e:
            self.s.rollback()
            raise StoreError(f"Customer {op} failed: {e.__class__.__name__}") from e

    def _get(self, customer_id: str) -> Customer:
        pk = parse_customer_id(customer_id)
        with self._db_errors("read"):
            c = self.s.get(Customer, pk)
        if c is None:
            raise NotFoundError()
        return c

    def list(self, limit: int, cursor: str | None = None) -> tuple[list[dict[str, str]], str | None]:
        after = decode_page_token(cursor) if cursor else 0
        with self._db_errors("list"):
            rows = (
                self.s.query(Customer)
                .filter(Customer.id > after)
                .order_by(Customer.id.asc())
                .limit(limit + 1)
                .all()
            )
        has_more = len(rows) > limit
        rows = rows[:limit]
        next_token = encode_page_token(rows[-1].id) if has_more and rows else None
        return [customer_to_dict(c) for c in rows], next_token

    def create(self, data: dict[str, Any]) -> dict[str, str]:
        fields = _clean_fields(data)
        now = datetime.utcnow()
        with self._db_errors("create"):
            c = Customer(data_json=json.dumps(fields, sort_keys=True), created_at=now, updated_at=now)
            self.s.add(c)
            self.s.flush()
            record_event(
                self.s,
                action="customer.create",
                entity_type="Customer",
                entity_id=str(c.id),
                metadata={"fields": sorted(fields)},
            )
            self.s.commit()
        return customer_to_dict(c)

    def read(self, customer_id: str) -> dict[str, str]:
        return customer_to_dict(self._get(customer_id))

    def update(self, customer_id: str, data: dict[str, Any]) -> dict[str, str]:
        c = self._get(customer_id)
        before = json.loads(c.data_json or "{}")
        after = _clean_fields(data)
        with self._db_errors("update"):
            c.data_json = json.dumps(after, sort_keys=True)
            c.updated_at = datetime.utcnow()
            fields_changed = sorted(k for k in set(before) | set(after) if before.get(k) != after.get(k))
            record_event(
                self.s,
                action="customer.update",
                entity_type="Customer",
                entity_id=str(c.id),
                metadata={"fields_changed": fields_changed},
            )
            self.s.commit()
        return customer_to_dict(c)

    def delete(self, customer_id: str) -> None:
        c = self._get(customer_id)
        with self._db_errors("delete"):
            entity_id = str(c.id)
            self.s.delete(c)
            record_event(self.s, action="customer.delete", entity_type="Customer", entity_id=entity_id)
            self.s.commit()
