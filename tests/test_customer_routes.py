"""Router contract tests: the store is replaced by a recording fake."""
import pytest

from app.crm import create_app
from app.crm.modules.customers import routes as customer_routes
from app.crm.modules.customers.service import NotFoundError, StoreError


class FakeStore:
    def __init__(self, error: StoreError | None = None):
        self.calls: list[tuple] = []
        self.error = error

    def _record(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def list(self, limit, cursor=None):
        self._record("list", limit, cursor)
        return [{"id": "1", "name": "Acme"}], "next-token"

    def create(self, data):
        self._record("create", data)
        return {"id": "42", **data}

    def read(self, customer_id):
        self._record("read", customer_id)
        return {"id": customer_id, "name": "Acme"}

    def update(self, customer_id, data):
        self._record("update", customer_id, data)
        return {"id": customer_id, **data}

    def delete(self, customer_id):
        self._record("delete", customer_id)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    for k in ("CUSTOMERS_PAGE_SIZE", "LOG_LEVEL"):
        monkeypatch.delenv(k, raising=False)
    return create_app()


@pytest.fixture()
def store(monkeypatch):
    fake = FakeStore()
    monkeypatch.setattr(customer_routes, "_store", lambda: fake)
    return fake


@pytest.fixture()
def client(app, store):
    return app.test_client()


def test_create_redirects_to_returned_id(client, store):
    r = client.post("/customers/add", data={"name": "Acme"}, follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["Location"] == "/customers/42"
    assert store.calls == [("create", {"name": "Acme"})]


def test_update_passes_id_and_form_verbatim(client, store):
    form = {"name": "Acme", "email": "ops@acme.test", "notes": ""}
    r = client.post("/customers/7/edit", data=form, follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["Location"] == "/customers/7"
    assert store.calls == [("update", "7", form)]


def test_delete_calls_store_once_and_redirects_to_mount(client, store):
    r = client.get("/customers/7/delete", follow_redirects=False)
    assert r.status_code == 302
    assert r.headers["Location"] == "/customers"
    assert store.calls == [("delete", "7")]


def test_list_without_token_passes_none(client, store):
    r = client.get("/customers/")
    assert r.status_code == 200
    assert store.calls == [("list", 10, None)]
    assert b"Acme" in r.data
    assert b"pageToken=next-token" in r.data


def test_list_passes_token_unchanged(client, store):
    client.get("/customers/", query_string={"pageToken": "opaque:token/1"})
    assert store.calls == [("list", 10, "opaque:token/1")]


def test_list_uses_configured_page_size(app, client, store):
    app.config["CUSTOMERS_PAGE_SIZE"] = 3
    client.get("/customers/")
    assert store.calls == [("list", 3, None)]


def test_add_form_does_not_touch_store(client, store):
    r = client.get("/customers/add")
    assert r.status_code == 200
    assert store.calls == []


def test_view_and_edit_read_by_id(client, store):
    assert client.get("/customers/abc").status_code == 200
    assert client.get("/customers/abc/edit").status_code == 200
    assert store.calls == [("read", "abc"), ("read", "abc")]


def test_all_responses_are_html(client):
    for r in (
        client.get("/customers/"),
        client.get("/customers/add"),
        client.post("/customers/add", data={"name": "Acme"}),
        client.get("/customers/1"),
        client.get("/customers/1/delete"),
    ):
        assert r.headers["Content-Type"] == "text/html; charset=utf-8"


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/customers/"),
        ("post", "/customers/add"),
        ("get", "/customers/9/edit"),
        ("post", "/customers/9/edit"),
        ("get", "/customers/9"),
        ("get", "/customers/9/delete"),
    ],
)
def test_store_errors_are_forwarded_with_response(app, monkeypatch, method, path):
    fake = FakeStore(error=StoreError("datastore unavailable"))
    monkeypatch.setattr(customer_routes, "_store", lambda: fake)
    forwarded = []

    def _outer_stage(err):
        forwarded.append(err)
        return "forwarded", 500

    monkeypatch.setattr(customer_routes, "handle_store_error", _outer_stage)

    r = getattr(app.test_client(), method)(path, data={"name": "Acme"})
    assert r.status_code == 500
    assert r.data == b"forwarded"
    assert len(forwarded) == 1
    assert forwarded[0].response == "datastore unavailable"


def test_not_found_is_rendered_by_outer_stage(app, monkeypatch):
    fake = FakeStore(error=NotFoundError())
    monkeypatch.setattr(customer_routes, "_store", lambda: fake)
    r = app.test_client().get("/customers/9")
    assert r.status_code == 404
    assert b"Not found" in r.data
