"""Integration tests for admin order management."""

from decimal import Decimal

import pytest
from services.store_service.models import OrderStatus
from tests.factories import OrderFactory, ProductFactory, shipping_payload


async def _order(db, price="5", stock=10, quantity=1, **overrides):
    product = ProductFactory.create(price=Decimal(price), stock=stock)
    db.add(product)
    order = OrderFactory.create([(product, quantity)], **overrides)
    db.add(order)
    await db.commit()
    return order, product


async def _act(client, order, **flags):
    return await client.put("/admin/store/orders", json={"orderId": str(order.id), **flags})


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_list_orders_with_status_filter(admin_client, db_session):
    """GET /admin/store/orders — paginated, filterable by status."""
    await _order(db_session)
    await _order(db_session)
    await _order(db_session, status=OrderStatus.PROCESSING, paid=True)

    response = await admin_client.get("/admin/store/orders?limit=2")
    assert response.status_code == 200
    data = response.json()
    assert len(data["orders"]) == 2
    assert data["hasMore"] is True
    assert data["totalOrders"] == 3

    filtered = (await admin_client.get("/admin/store/orders?status=processing")).json()
    assert filtered["totalOrders"] == 1
    assert filtered["orders"][0]["status"] == "processing"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_list_defaults_to_five_per_page(admin_client, db_session):
    for _ in range(6):
        await _order(db_session)

    data = (await admin_client.get("/admin/store/orders")).json()

    assert len(data["orders"]) == 5
    assert data["hasMore"] is True
    assert data["totalOrders"] == 6


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_endpoints_require_admin(customer_client, db_session):
    order, _ = await _order(db_session)

    response = await _act(customer_client, order, confirmPayment=True)

    assert response.status_code == 403
    assert response.json() == {"error": "Admin privileges required"}


# ---------------------------------------------------------------------------
# Confirm / reject
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_confirm_payment(admin_client, db_session, notifier):
    order, product = await _order(db_session, stock=2, quantity=5)

    response = await _act(admin_client, order, confirmPayment=True)

    assert response.status_code == 200, response.text
    data = response.json()
    assert data["message"] == "Payment confirmed"
    assert data["order"]["paid"] is True
    assert data["order"]["status"] == "processing"
    await db_session.refresh(product)
    assert product.stock == 0
    assert notifier.sent == [("payment_confirmed", order.id)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_confirm_still_succeeds_when_email_fails(admin_client, db_session, notifier):
    order, _ = await _order(db_session)
    notifier.fail = True

    response = await _act(admin_client, order, confirmPayment=True)

    assert response.status_code == 200
    assert response.json()["order"]["paid"] is True


@pytest.mark.asyncio
@pytest.mark.integration
async def test_confirm_twice_conflicts(admin_client, db_session):
    order, product = await _order(db_session, stock=10, quantity=3)

    await _act(admin_client, order, confirmPayment=True)
    response = await _act(admin_client, order, confirmPayment=True)

    assert response.status_code == 409
    assert response.json() == {
        "error": "Cannot confirm payment for order in status: processing"
    }
    await db_session.refresh(product)
    assert product.stock == 7


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("extra", [{}, {"rejectionReason": ""}, {"rejectionReason": "  "}])
async def test_reject_without_reason(admin_client, db_session, notifier, extra):
    order, _ = await _order(db_session)
    version = order.version

    response = await _act(admin_client, order, rejectPayment=True, **extra)

    assert response.status_code == 400
    assert response.json() == {"error": "Rejection reason is required"}
    current = (await admin_client.get(f"/admin/store/orders/{order.id}")).json()
    assert current["status"] == "pending"
    assert current["rejectionReason"] is None
    assert current["version"] == version
    assert notifier.sent == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_reject_payment(admin_client, db_session, notifier):
    order, product = await _order(db_session)

    response = await _act(
        admin_client, order, rejectPayment=True, rejectionReason="Transfer not found"
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Payment rejected"
    assert data["order"]["status"] == "cancelled"
    assert data["order"]["rejectionReason"] == "Transfer not found"
    assert data["order"]["paid"] is False
    await db_session.refresh(product)
    assert product.stock == 10
    assert notifier.sent == [("payment_rejected", order.id)]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_both_flags_is_a_bad_request(admin_client, db_session):
    order, _ = await _order(db_session)

    response = await _act(
        admin_client, order, confirmPayment=True, rejectPayment=True, rejectionReason="x"
    )

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_mark_delivered_from_pending_conflicts(admin_client, db_session):
    order, _ = await _order(db_session)

    response = await _act(admin_client, order)

    assert response.status_code == 409
    assert response.json() == {
        "error": "Cannot mark as delivered for order in status: pending"
    }


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_order(admin_client, db_session):
    order, product = await _order(db_session, stock=10, quantity=2)
    await _act(admin_client, order, confirmPayment=True)

    response = await admin_client.delete(f"/admin/store/orders?orderId={order.id}")

    assert response.status_code == 200
    assert response.json() == {"message": "Order deleted", "orderId": str(order.id)}
    missing = await admin_client.get(f"/admin/store/orders/{order.id}")
    assert missing.status_code == 404
    await db_session.refresh(product)
    assert product.stock == 8


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_unknown_order(admin_client):
    response = await admin_client.delete(
        "/admin/store/orders?orderId=00000000-0000-0000-0000-000000000000"
    )
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_order_lifecycle_end_to_end(customer_client, admin_client, db_session):
    """Checkout -> confirm -> deliver -> late reject refused; money and stock intact."""
    product = ProductFactory.create(price=Decimal("50"), stock=10)
    db_session.add(product)
    await db_session.commit()

    created = await customer_client.post(
        "/store/checkout/offline-payment",
        json=shipping_payload(
            cartItems=[{"id": str(product.id), "quantity": 1}],
            paymentProofUrl="https://cdn.test/proof.jpg",
            paymentReference="ORD-20260101-0007",
        ),
    )
    order_id = created.json()["orderId"]

    confirmed = await admin_client.put(
        "/admin/store/orders", json={"orderId": order_id, "confirmPayment": True}
    )
    assert confirmed.json()["order"]["paid"] is True
    assert confirmed.json()["order"]["status"] == "processing"
    await db_session.refresh(product)
    assert product.stock == 9

    delivered = await admin_client.put("/admin/store/orders", json={"orderId": order_id})
    assert delivered.status_code == 200
    assert delivered.json()["message"] == "Order marked as delivered"
    assert delivered.json()["order"]["status"] == "delivered"

    late_reject = await admin_client.put(
        "/admin/store/orders",
        json={"orderId": order_id, "rejectPayment": True, "rejectionReason": "late"},
    )
    assert late_reject.status_code == 409

    final = (await customer_client.get(f"/store/orders/{order_id}")).json()
    assert final["paid"] is True
    assert final["status"] == "delivered"
    assert final["rejectionReason"] is None
    assert Decimal(final["total"]) == Decimal("50")
    await db_session.refresh(product)
    assert product.stock == 9
