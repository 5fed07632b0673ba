# learnify/utils/payment.py

import json
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import stripe

from learnify.core.config import Settings
from learnify.core.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    id: str
    url: str


def to_minor_units(amount) -> int:
    """Convert a decimal price to the integer amount Stripe expects (cents)."""
    value = Decimal(str(amount)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway:
    """Stripe Checkout through the official SDK."""

    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        currency: str = "usd",
        success_url: str = "",
        cancel_url: str = "",
        webhook_tolerance: int = 300,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency
        self.success_url = success_url
        self.cancel_url = cancel_url
        self.webhook_tolerance = webhook_tolerance

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentGateway":
        return cls(
            secret_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            currency=settings.payment_currency,
            success_url=settings.payment_success_url,
            cancel_url=settings.payment_cancel_url,
            webhook_tolerance=settings.stripe_webhook_tolerance,
        )

    def create_checkout_session(self, course, user, purchase) -> CheckoutSession:
        """
        Open a hosted checkout page for a single course.

        Raises:
            ExternalServiceError: the provider rejected the request or was unreachable
        """
        product_data = {"name": course.title}
        if course.thumbnail:
            product_data["images"] = [course.thumbnail]

        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "quantity": 1,
                        "price_data": {
                            "currency": purchase.currency or self.currency,
                            "unit_amount": to_minor_units(purchase.amount),
                            "product_data": product_data,
                        },
                    }
                ],
                success_url=self.success_url.format(course_id=course.id),
                cancel_url=self.cancel_url.format(course_id=course.id),
                customer_email=user.email,
                metadata={
                    "course_id": str(course.id),
                    "user_id": str(user.id),
                    "purchase_id": str(purchase.id),
                },
            )
        except stripe.StripeError as e:
            logger.error(f"Checkout session request failed: {e}")
            raise ExternalServiceError("Error while creating checkout session")

        if not session.id or not session.url:
            logger.error(f"Checkout session response missing id/url: {session.id}")
            raise ExternalServiceError("Error while creating checkout session")

        logger.info(f"Checkout session {session.id} created for purchase {purchase.id}")
        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a ``Stripe-Signature`` header and decode the event body."""
        if not signature:
            raise ValidationError("Missing webhook signature")

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self.webhook_secret,
                self.webhook_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature rejected: {e}")
            raise ValidationError("Invalid webhook signature")
        except ValueError:
            raise ValidationError("Malformed webhook signature")

        try:
            return json.loads(payload)
        except ValueError:
            raise ValidationError("Invalid webhook payload")
