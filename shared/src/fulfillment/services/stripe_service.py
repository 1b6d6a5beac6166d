"""Stripe service for webhook verification and PaymentIntent creation.

Provides integration with Stripe using the v8+ StripeClient pattern.
Credentials come from settings, falling back to SSM Parameter Store.
"""

import json
import logging
from functools import lru_cache
from typing import Any

import stripe
from stripe import StripeClient

from fulfillment.config import Settings, get_settings

from .ssm_service import SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe payment operations.

    Handles:
    - Webhook signature validation and event decoding
    - PaymentIntent creation for checkout

    Usage:
        stripe_svc = get_stripe_service()
        event = stripe_svc.verify_webhook_signature(body, signature)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize Stripe service.

        Args:
            settings: Configuration. Defaults to the process settings.
        """
        self._settings = settings or get_settings()
        self._client: StripeClient | None = None
        self._webhook_secret: str | None = self._settings.stripe_webhook_secret

    @property
    def currency(self) -> str:
        """Currency PaymentIntents are created in."""
        return self._settings.currency

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If credentials cannot be retrieved.
        """
        if self._client is None:
            secret_key = self._settings.stripe_secret_key
            if not secret_key:
                try:
                    secret_key = get_ssm_service().get_parameter(
                        self._settings.ssm_parameter("secret_key")
                    )
                except SSMServiceError as e:
                    raise StripeServiceError(f"Failed to initialize Stripe client: {e}") from e
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized for environment: %s", self._settings.environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        """Get the webhook signing secret.

        Raises:
            StripeServiceError: If secret cannot be retrieved.
        """
        if self._webhook_secret is None:
            try:
                self._webhook_secret = get_ssm_service().get_parameter(
                    self._settings.ssm_parameter("webhook_secret")
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to get webhook secret: {e}") from e
        return self._webhook_secret

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and decode the event.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Decoded event as plain dicts.

        Raises:
            StripeServiceError: If the signature is missing, stale or wrong.
            ValueError: If the signed body is not a JSON object.
        """
        webhook_secret = self._get_webhook_secret()
        body = payload.decode("utf-8")

        try:
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                webhook_secret,
                tolerance=self._settings.stripe_webhook_tolerance,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise StripeServiceError("Invalid webhook signature") from e

        event = json.loads(body)
        if not isinstance(event, dict):
            raise ValueError("Webhook payload is not a JSON object")

        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    def create_payment_intent(
        self,
        *,
        amount_cents: int,
        metadata: dict[str, str],
        payment_method_types: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create a PaymentIntent for a cart.

        Args:
            amount_cents: Amount to charge in minor units.
            metadata: Metadata attached to the intent (values <= 500 chars).
            payment_method_types: Allowed methods. Defaults to card and iDEAL.

        Returns:
            Dict with:
                - payment_intent_id: Stripe PaymentIntent ID
                - client_secret: Secret for client-side confirmation
                - amount: Charged amount in cents

        Raises:
            StripeServiceError: If creation fails.
        """
        client = self._get_client()

        try:
            logger.info("Creating PaymentIntent for %d cents", amount_cents)
            intent = client.payment_intents.create(
                params={
                    "amount": amount_cents,
                    "currency": self._settings.currency,
                    "payment_method_types": payment_method_types or ["card", "ideal"],
                    "metadata": metadata,
                },
            )
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe PaymentIntent creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create payment intent: {e}",
                stripe_error_code=error_code,
            ) from e

        logger.info("PaymentIntent created: %s", intent.id)
        return {
            "payment_intent_id": intent.id,
            "client_secret": intent.client_secret,
            "amount": intent.amount,
        }


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance."""
    return StripeService()
