"""Pytest configuration and fixtures for the storefront fulfillment backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (all storefront tables)
- Store and service instances bound to the mocked tables
- Stripe event builders and signature helpers
"""

import hashlib
import hmac
import json
import os
import time
from decimal import Decimal
from typing import Any, Callable, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ["DYNAMODB_TABLE_PREFIX"] = "test-storefront"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret_for_testing"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

TABLE_PREFIX = "test-storefront"
TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached settings and services before and after each test.

    Tests using mock_aws need fresh boto3 clients created inside the mock
    context rather than ones left over from a previous test.
    """
    from fulfillment.services.ssm_service import get_ssm_service
    from storefront_api.dependencies import reset_services

    reset_services()
    get_ssm_service.cache_clear()
    yield
    reset_services()
    get_ssm_service.cache_clear()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


def _create_storefront_tables(client: Any) -> None:
    tables = [
        {
            "TableName": f"{TABLE_PREFIX}-orders",
            "KeySchema": [{"AttributeName": "order_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "order_id", "AttributeType": "S"},
            ],
        },
        {
            "TableName": f"{TABLE_PREFIX}-order-items",
            "KeySchema": [
                {"AttributeName": "order_id", "KeyType": "HASH"},
                {"AttributeName": "line_number", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "order_id", "AttributeType": "S"},
                {"AttributeName": "line_number", "AttributeType": "N"},
            ],
        },
        {
            "TableName": f"{TABLE_PREFIX}-payment-references",
            "KeySchema": [{"AttributeName": "payment_reference", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "payment_reference", "AttributeType": "S"},
            ],
        },
        {
            "TableName": f"{TABLE_PREFIX}-inventory",
            "KeySchema": [
                {"AttributeName": "cocktail_id", "KeyType": "HASH"},
                {"AttributeName": "size_id", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "cocktail_id", "AttributeType": "S"},
                {"AttributeName": "size_id", "AttributeType": "S"},
            ],
        },
        {
            "TableName": f"{TABLE_PREFIX}-security-events",
            "KeySchema": [{"AttributeName": "event_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "event_id", "AttributeType": "S"},
            ],
        },
    ]
    for table_config in tables:
        client.create_table(BillingMode="PAY_PER_REQUEST", **table_config)


@pytest.fixture
def mock_dynamodb_tables(aws_credentials: None) -> Generator[None, None, None]:
    """Create all storefront tables inside a moto mock."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        _create_storefront_tables(client)
        yield


@pytest.fixture
def dynamodb_resource(mock_dynamodb_tables: None) -> Any:
    """Raw boto3 resource for seeding and inspecting mocked tables."""
    return boto3.resource("dynamodb", region_name="eu-west-1")


@pytest.fixture
def db(mock_dynamodb_tables: None) -> Any:
    """DynamoDBService bound to the mocked tables."""
    from fulfillment.services.dynamodb import DynamoDBService

    return DynamoDBService(table_prefix=TABLE_PREFIX)


@pytest.fixture
def order_store(db: Any) -> Any:
    """OrderStore on the mocked tables."""
    from fulfillment.services.order_store import OrderStore

    return OrderStore(db)


@pytest.fixture
def inventory_store(db: Any) -> Any:
    """InventoryStore on the mocked tables (no cache)."""
    from fulfillment.services.inventory_store import InventoryStore

    return InventoryStore(db)


@pytest.fixture
def recorder(db: Any) -> Any:
    """DiagnosticRecorder on the mocked tables."""
    from fulfillment.services.diagnostics import DiagnosticRecorder

    return DiagnosticRecorder(db)


@pytest.fixture
def put_inventory(dynamodb_resource: Any) -> Callable[..., dict[str, Any]]:
    """Factory that writes an inventory record directly to the table."""
    table = dynamodb_resource.Table(f"{TABLE_PREFIX}-inventory")

    def _put(
        cocktail_id: str = "c1",
        size_id: str = "s1",
        stock_quantity: int = 10,
        available: bool | None = None,
        price: Decimal | None = None,
    ) -> dict[str, Any]:
        item: dict[str, Any] = {
            "cocktail_id": cocktail_id,
            "size_id": size_id,
            "stock_quantity": stock_quantity,
            "available": stock_quantity > 0 if available is None else available,
        }
        if price is not None:
            item["price"] = price
        table.put_item(Item=item)
        return item

    return _put


@pytest.fixture
def read_inventory(dynamodb_resource: Any) -> Callable[[str, str], dict[str, Any] | None]:
    """Read an inventory record straight from the table."""
    table = dynamodb_resource.Table(f"{TABLE_PREFIX}-inventory")

    def _read(cocktail_id: str, size_id: str) -> dict[str, Any] | None:
        return table.get_item(Key={"cocktail_id": cocktail_id, "size_id": size_id}).get("Item")

    return _read


@pytest.fixture
def diagnostics(dynamodb_resource: Any) -> Callable[[], list[dict[str, Any]]]:
    """Return every recorded diagnostic event."""
    table = dynamodb_resource.Table(f"{TABLE_PREFIX}-security-events")

    def _scan() -> list[dict[str, Any]]:
        return table.scan().get("Items", [])

    return _scan


@pytest.fixture
def table_items(dynamodb_resource: Any) -> Callable[[str], list[dict[str, Any]]]:
    """Scan one storefront table by unprefixed name."""

    def _scan(table: str) -> list[dict[str, Any]]:
        return dynamodb_resource.Table(f"{TABLE_PREFIX}-{table}").scan().get("Items", [])

    return _scan


# === Stripe Event Fixtures ===


def items_metadata(*items: dict[str, Any]) -> str:
    """Serialize line items the way checkout stores them in metadata."""
    return json.dumps(list(items))


def make_stripe_event(
    event_type: str = "payment_intent.succeeded",
    payment_intent_id: str = "pi_abc",
    amount: int = 1000,
    metadata: dict[str, str] | None = None,
    event_id: str = "evt_test_001",
    **intent_fields: Any,
) -> dict[str, Any]:
    """Build a Stripe PaymentIntent webhook event dict."""
    intent: dict[str, Any] = {
        "id": payment_intent_id,
        "object": "payment_intent",
        "amount": amount,
        "currency": "eur",
        "metadata": metadata or {},
    }
    if event_type == "payment_intent.succeeded":
        intent["amount_received"] = amount
        intent["status"] = "succeeded"
    intent.update(intent_fields)
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": intent},
    }


def create_stripe_signature(
    payload: bytes,
    secret: str = TEST_WEBHOOK_SECRET,
    timestamp: int | None = None,
) -> str:
    """Create a valid Stripe webhook signature.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    ts = str(timestamp if timestamp is not None else int(time.time()))
    signed_payload = f"{ts}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={signature}"


@pytest.fixture
def stripe_event() -> Callable[..., dict[str, Any]]:
    """Factory for Stripe PaymentIntent webhook events."""
    return make_stripe_event


@pytest.fixture
def sign_payload() -> Callable[..., str]:
    """Signs a raw webhook body with the test webhook secret."""
    return create_stripe_signature


@pytest.fixture
def encode_items() -> Callable[..., str]:
    """Serializes line items into an ``items`` metadata value."""
    return items_metadata
