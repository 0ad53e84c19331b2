"""
tests/test_invoices.py
Subscriber invoices built from settled subscription payments.
"""

import pytest
from httpx import AsyncClient

from services.invoice.router import payments_to_invoices
from tests.conftest import auth_headers

SUBSCRIPTION = {"id": "sub-1", "plan_name": "Pro", "plan_type": "pro", "status": "active"}

PAYMENTS = [
    {"id": "p3", "amount": "49.99", "currency": "USD", "status": "succeeded",
     "payment_type": "subscription", "created_at": "2025-01-03T09:00:00+00:00"},
    {"id": "p2", "amount": 49.99, "currency": "USD", "status": "failed",
     "payment_type": "subscription", "created_at": "2024-12-03T09:00:00+00:00"},
    {"id": "p1", "amount": 29, "currency": None, "status": "completed", "description": "Starter plan",
     "completed_at": "2024-11-04T10:00:00+00:00", "created_at": "2024-11-03T09:00:00+00:00"},
]


def test_only_settled_payments_become_invoices():
    invoices = payments_to_invoices(PAYMENTS)
    assert [i["id"] for i in invoices] == ["p3", "p1"]


def test_invoice_numbers_restart_each_year():
    invoices = payments_to_invoices([
        {"id": "a", "status": "succeeded", "amount": 10, "created_at": "2024-03-01T00:00:00+00:00"},
        {"id": "b", "status": "succeeded", "amount": 10, "created_at": "2024-06-01T00:00:00+00:00"},
        {"id": "c", "status": "succeeded", "amount": 10, "created_at": "2025-01-01T00:00:00+00:00"},
    ])
    assert {i["id"]: i["invoice_number"] for i in invoices} == {
        "a": "INV-2024-0001",
        "b": "INV-2024-0002",
        "c": "INV-2025-0001",
    }


def test_invoice_field_fallbacks():
    invoice = payments_to_invoices(PAYMENTS)[1]
    assert invoice["amount"] == 29.0
    assert invoice["currency"] == "USD"
    assert invoice["description"] == "Starter plan"
    assert invoice["paid_date"] == "2024-11-04T10:00:00+00:00"
    assert payments_to_invoices(PAYMENTS)[0]["description"] == "subscription payment"


@pytest.mark.asyncio
async def test_list_invoices(client: AsyncClient, sponsor, hasura):
    hasura.on("GetLatestSubscription", {"subscriptions": [SUBSCRIPTION]})
    hasura.on("GetSubscriptionPayments", {"payments": PAYMENTS})

    response = await client.get("/invoices", headers=auth_headers(sponsor))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["items"][0]["invoice_number"] == "INV-2025-0001"
    assert data["items"][0]["amount"] == 49.99
    assert data["subscription"]["plan_name"] == "Pro"

    assert hasura.called("GetLatestSubscription")[0].variables == {"userId": "sponsor-1"}
    assert hasura.called("GetSubscriptionPayments")[0].variables == {"subscriptionId": "sub-1", "limit": 20}


@pytest.mark.asyncio
async def test_no_subscription_means_no_invoices(client: AsyncClient, agency, hasura):
    hasura.on("GetLatestSubscription", {"subscriptions": []})

    response = await client.get("/invoices", headers=auth_headers(agency))
    assert response.status_code == 200
    assert response.json() == {"items": [], "total": 0, "subscription": None}
    assert hasura.called("GetSubscriptionPayments") == []


@pytest.mark.asyncio
async def test_get_invoice(client: AsyncClient, sponsor, hasura):
    hasura.on("GetLatestSubscription", {"subscriptions": [SUBSCRIPTION]})
    hasura.on("GetSubscriptionPayments", {"payments": PAYMENTS})

    response = await client.get("/invoices/p1", headers=auth_headers(sponsor))
    assert response.status_code == 200
    assert response.json()["invoice_number"] == "INV-2024-0001"

    missing = await client.get("/invoices/p2", headers=auth_headers(sponsor))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_maid_has_no_invoices(client: AsyncClient, maid):
    response = await client.get("/invoices", headers=auth_headers(maid))
    assert response.status_code == 403
