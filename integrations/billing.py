import json
import logging
from typing import Any, Dict, Optional

import stripe

from core.exceptions import DependencyUnavailable, IntegrationError, ValidationFailed

logger = logging.getLogger(__name__)


class BillingClient:
    """Thin wrapper over the stripe SDK; every call passes its own api key."""

    def __init__(self, secret_key: Optional[str], webhook_secret: Optional[str],
                 price_cents: int = 1099, trial_days: int = 30, frontend_url: str = "",
                 currency: str = "usd"):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.price_cents = price_cents
        self.trial_days = trial_days
        self.frontend_url = frontend_url.rstrip("/")
        self.currency = currency

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    def require_configured(self):
        if not self.configured:
            raise DependencyUnavailable("Payment system not configured")

    def ensure_customer(self, customer_id: Optional[str], email: str, name: str, user_id: int) -> str:
        self.require_configured()
        if customer_id:
            return customer_id
        try:
            customer = stripe.Customer.create(
                api_key=self.secret_key,
                email=email,
                name=name,
                metadata={"userId": str(user_id)},
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe customer creation failed for user %s: %s", user_id, exc)
            raise IntegrationError("Failed to create billing customer") from exc
        return customer.id

    def create_checkout_session(self, customer_id: str, user_id: int) -> Dict[str, str]:
        self.require_configured()
        try:
            session = stripe.checkout.Session.create(
                api_key=self.secret_key,
                customer=customer_id,
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": "Aurora Tasks Pro"},
                        "unit_amount": self.price_cents,
                        "recurring": {"interval": "month"},
                    },
                    "quantity": 1,
                }],
                subscription_data={"trial_period_days": self.trial_days, "metadata": {"userId": str(user_id)}},
                success_url=f"{self.frontend_url}/subscription/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{self.frontend_url}/subscription/cancel",
                metadata={"userId": str(user_id)},
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe checkout session failed for user %s: %s", user_id, exc)
            raise IntegrationError("Failed to create checkout session") from exc
        return {"session_id": session.id, "url": session.url}

    def create_portal_session(self, customer_id: str) -> str:
        self.require_configured()
        try:
            session = stripe.billing_portal.Session.create(
                api_key=self.secret_key,
                customer=customer_id,
                return_url=f"{self.frontend_url}/settings",
            )
        except stripe.StripeError as exc:
            logger.warning("Stripe portal session failed: %s", exc)
            raise IntegrationError("Failed to create portal session") from exc
        return session.url

    def construct_event(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """Verify a webhook delivery and return the event as a plain dict."""
        if not (self.configured and self.webhook_secret):
            raise DependencyUnavailable("Payment system not configured")
        try:
            text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            stripe.WebhookSignature.verify_header(text, signature or "", self.webhook_secret)
            return json.loads(text)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Rejected stripe webhook: %s", exc)
            raise ValidationFailed("Invalid webhook signature") from exc
