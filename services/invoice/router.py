"""
services/invoice/router.py
Read-only invoices for subscribers (sponsors and agencies), built from the
settled payments on their latest subscription.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from config.hasura_client import HasuraClient, get_hasura
from shared.middleware.auth import CurrentUser, RoleRequired
from shared.models.models import UserRole
from shared.schemas.schemas import InvoiceResponse

router = APIRouter(prefix="/invoices", tags=["Invoices"])

require_subscriber = RoleRequired(UserRole.SPONSOR, UserRole.AGENCY, UserRole.ADMIN)

# Payment statuses that count as settled
PAID_STATUSES = {"succeeded", "completed"}

GET_LATEST_SUBSCRIPTION = """
query GetLatestSubscription($userId: String!) {
  subscriptions(where: {user_id: {_eq: $userId}}, order_by: {created_at: desc}, limit: 1) {
    id
    plan_name
    plan_type
    status
  }
}
"""

GET_SUBSCRIPTION_PAYMENTS = """
query GetSubscriptionPayments($subscriptionId: uuid!, $limit: Int!) {
  payments(
    where: {subscription_id: {_eq: $subscriptionId}},
    order_by: {created_at: desc},
    limit: $limit
  ) {
    id
    amount
    currency
    status
    payment_type
    description
    receipt_url
    processed_at
    completed_at
    created_at
  }
}
"""


def payments_to_invoices(payments: list[dict]) -> list[dict]:
    """
    Turn settled payments into invoices, newest first.
    Numbers run per calendar year in payment order: INV-2024-0001, INV-2024-0002, ...
    """
    paid = [p for p in payments if p.get("status") in PAID_STATUSES]
    paid.sort(key=lambda p: p.get("created_at") or "")

    counters: dict[str, int] = {}
    invoices = []
    for payment in paid:
        # ISO timestamps: the year is the first four characters
        year = (payment.get("created_at") or "")[:4] or "0000"
        counters[year] = counters.get(year, 0) + 1
        invoices.append({
            "id": payment["id"],
            "invoice_number": f"INV-{year}-{counters[year]:04d}",
            "amount": float(payment.get("amount") or 0),
            "currency": payment.get("currency") or "USD",
            "status": "paid",
            "description": payment.get("description") or f"{payment.get('payment_type') or 'subscription'} payment",
            "issued_date": payment.get("created_at"),
            "due_date": payment.get("created_at"),
            "paid_date": payment.get("completed_at") or payment.get("processed_at") or payment.get("created_at"),
            "receipt_url": payment.get("receipt_url"),
        })
    invoices.reverse()
    return invoices


async def _load_invoices(gql: HasuraClient, current_user: CurrentUser, limit: int) -> tuple[Optional[dict], list[dict]]:
    data = await gql.execute(GET_LATEST_SUBSCRIPTION, {"userId": current_user.id}, token=current_user.token)
    subscriptions = data.get("subscriptions") or []
    if not subscriptions:
        return None, []

    subscription = subscriptions[0]
    data = await gql.execute(
        GET_SUBSCRIPTION_PAYMENTS,
        {"subscriptionId": subscription["id"], "limit": limit},
        token=current_user.token,
    )
    return subscription, payments_to_invoices(data.get("payments") or [])


@router.get("")
async def list_invoices(
    limit: int = Query(20, ge=1, le=100),
    current_user: CurrentUser = Depends(require_subscriber),
    gql: HasuraClient = Depends(get_hasura),
):
    """Invoices for the caller's latest subscription. No subscription means no invoices."""
    subscription, invoices = await _load_invoices(gql, current_user, limit)
    return {
        "items": [InvoiceResponse(**i) for i in invoices],
        "total": len(invoices),
        "subscription": subscription,
    }


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: str,
    current_user: CurrentUser = Depends(require_subscriber),
    gql: HasuraClient = Depends(get_hasura),
):
    _, invoices = await _load_invoices(gql, current_user, 100)
    for invoice in invoices:
        if invoice["id"] == invoice_id:
            return InvoiceResponse(**invoice)
    raise HTTPException(status_code=404, detail="Invoice not found")
