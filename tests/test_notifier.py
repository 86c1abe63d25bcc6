from decimal import Decimal
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from app.models.invoice import Invoice
from app.models.product import Product
from app.models.user import User, UserRole
from app.services.notifier import ChangeEvent, ChangeNotifier, describe_change, notifier

SELLER_ID = UUID("11111111-1111-1111-1111-111111111111")
CLIENT_ID = UUID("22222222-2222-2222-2222-222222222222")


class Recorder:
    def __init__(self):
        self.calls = []
        self.summaries = []

    def __call__(self, event, entity, actor=None):
        self.calls.append((event, entity, actor))
        self.summaries.append(describe_change(event, entity))


@pytest.fixture()
def recorder():
    hook = Recorder()
    notifier.register(hook)
    try:
        yield hook
    finally:
        notifier.unregister(hook)


def test_describe_user_changes():
    user = User(email="someone@example.com", role=UserRole.CLIENT)

    assert describe_change(ChangeEvent.CREATED, user) == "User(someone@example.com) has been created"
    assert describe_change(ChangeEvent.DELETED, user) == "User(someone@example.com) has been deleted"
    assert describe_change(ChangeEvent.RESTORED, user) == "User (someone@example.com) has been restored."
    assert (
        describe_change(ChangeEvent.FORCE_DELETED, user)
        == "User (someone@example.com) has been permanently deleted."
    )


def test_describe_product_and_invoice_changes():
    product = Product(name="Widget", unit_price=Decimal("9.99"))
    invoice = Invoice(seller_id=SELLER_ID, client_id=CLIENT_ID)

    assert describe_change(ChangeEvent.UPDATED, product) == "Product(Widget: 9.99 $) has been updated"
    assert describe_change(ChangeEvent.CREATED, invoice) == (
        f"Invoice(seller_id: {SELLER_ID}, client_id: {CLIENT_ID}) has been created"
    )


def test_failing_hook_does_not_stop_others():
    seen = Recorder()

    def broken(event, entity, actor=None):
        raise RuntimeError("sink unavailable")

    local = ChangeNotifier(hooks=[broken, seen])
    product = Product(name="Widget", unit_price=Decimal("1.00"))

    local.notify(ChangeEvent.CREATED, product)

    assert seen.calls == [(ChangeEvent.CREATED, product, None)]


def test_disabled_notifier_calls_nothing():
    seen = Recorder()
    local = ChangeNotifier(hooks=[seen], enabled=False)

    local.notify(ChangeEvent.CREATED, Product(name="Widget", unit_price=Decimal("1.00")))

    assert seen.calls == []


def test_register_is_idempotent():
    seen = Recorder()
    local = ChangeNotifier()

    local.register(seen)
    local.register(seen)
    local.unregister(seen)

    assert local.hooks == []


def test_product_writes_emit_one_event_each(client: TestClient, recorder, seller, seller_headers):
    created = client.post(
        "/api/products",
        json={"name": "Widget", "unit_price": "2.00"},
        headers=seller_headers,
    )
    product_id = created.json()["id"]
    client.put(f"/api/products/{product_id}", json={"unit_price": "3.00"}, headers=seller_headers)
    client.delete(f"/api/products/{product_id}", headers=seller_headers)

    events = [event for event, _, _ in recorder.calls]
    assert events == [ChangeEvent.CREATED, ChangeEvent.UPDATED, ChangeEvent.DELETED]
    assert all(actor.id == seller.id for _, _, actor in recorder.calls)


def test_failed_write_emits_nothing(client: TestClient, recorder, seller_headers, create_product):
    create_product(name="Widget")

    response = client.post(
        "/api/products",
        json={"name": "Widget", "unit_price": "2.00"},
        headers=seller_headers,
    )

    assert response.status_code == 422
    assert recorder.calls == []


def test_registration_uses_new_user_as_actor(client: TestClient, recorder):
    client.post(
        "/api/auth/register",
        json={
            "name": "Self Made",
            "email": "self@example.com",
            "password": "secret123",
            "password_confirmation": "secret123",
        },
    )

    [(event, entity, actor)] = recorder.calls
    assert event == ChangeEvent.CREATED
    assert actor is entity


def test_invoice_writes_emit_one_event_each(
    client: TestClient,
    recorder,
    seller,
    client_user,
    seller_headers,
    create_product,
):
    product = create_product(name="Widget")
    created = client.post(
        "/api/invoices",
        json={
            "seller_id": str(seller.id),
            "client_id": str(client_user.id),
            "items": [{"product_id": str(product.id), "quantity": 1, "total_price": "10.00"}],
        },
        headers=seller_headers,
    )
    invoice_id = created.json()["id"]
    client.put(f"/api/invoices/{invoice_id}", json={"status": "sent"}, headers=seller_headers)
    client.patch(f"/api/invoices/{invoice_id}/status", json={"status": "paid"}, headers=seller_headers)
    deleted = client.delete(f"/api/invoices/{invoice_id}", headers=seller_headers)

    assert deleted.status_code == 200
    events = [event for event, _, _ in recorder.calls]
    assert events == [ChangeEvent.CREATED, ChangeEvent.UPDATED, ChangeEvent.UPDATED, ChangeEvent.DELETED]
    assert all(actor.id == seller.id for _, _, actor in recorder.calls)
    assert recorder.summaries[-1] == (
        f"Invoice(seller_id: {seller.id}, client_id: {client_user.id}) has been deleted"
    )


def test_user_writes_emit_one_event_each(client: TestClient, recorder, admin, admin_headers):
    created = client.post(
        "/api/users",
        json={
            "name": "Audited",
            "email": "audited@example.com",
            "password": "password123",
            "role": "client",
        },
        headers=admin_headers,
    )
    user_id = created.json()["id"]
    client.put(f"/api/users/{user_id}", json={"name": "Audited Again"}, headers=admin_headers)
    deleted = client.delete(f"/api/users/{user_id}", headers=admin_headers)

    assert deleted.status_code == 200
    events = [event for event, _, _ in recorder.calls]
    assert events == [ChangeEvent.CREATED, ChangeEvent.UPDATED, ChangeEvent.DELETED]
    assert all(actor.id == admin.id for _, _, actor in recorder.calls)
    assert recorder.summaries == [
        "User(audited@example.com) has been created",
        "User(audited@example.com) has been updated",
        "User(audited@example.com) has been deleted",
    ]
