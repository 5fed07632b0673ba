# learnify/routers/payments.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from learnify.core.database import get_db
from learnify.core.dependencies import get_current_user, get_payment_gateway
from learnify.models.user import User
from learnify.schemas.common import ApiResponse
from learnify.schemas.course import CourseProjection
from learnify.schemas.purchase import (
    CheckoutRequest,
    CheckoutSessionResponse,
    PurchaseStatusData,
    WebhookAck,
)
from learnify.services.purchase import PurchaseService
from learnify.utils.payment import PaymentGateway

router = APIRouter(
    prefix="/payments",
    tags=["Payments"],
)


@router.post(
    "/create-checkout-session",
    response_model=ApiResponse[CheckoutSessionResponse],
)
def create_checkout_session(
    checkout_in: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Start a hosted checkout for a course; records a pending purchase."""
    data = PurchaseService(db).create_checkout_session(
        checkout_in.course_id, current_user, gateway
    )
    return {"success": True, "data": data}


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Signed payment provider events. Unhandled event types are acknowledged."""
    payload = await request.body()
    PurchaseService(db).handle_webhook(payload, stripe_signature, gateway)
    return {"received": True}


@router.get(
    "/courses/{course_id}/purchase-status",
    response_model=ApiResponse[PurchaseStatusData],
)
def get_purchase_status(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = PurchaseService(db).purchase_status(course_id, current_user)
    return {"success": True, "data": data}


@router.get("/purchased-courses", response_model=ApiResponse[List[CourseProjection]])
def get_purchased_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"success": True, "data": PurchaseService(db).purchased_courses(current_user)}
