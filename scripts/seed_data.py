#!/usr/bin/env python3
"""Provision storefront tables and seed initial stock.

Creates the DynamoDB tables the fulfillment backend expects (if missing)
and writes one inventory record per cocktail and size. Initial stock
depends on the size: 50 units for 200ml bottles, 100 for 20ml shots.

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --create-tables
    python scripts/seed_data.py --env dev --clear-first
    python scripts/seed_data.py --endpoint-url http://localhost:8000 --create-tables
"""

import argparse
import os
import sys
from decimal import Decimal

import boto3
from botocore.exceptions import ClientError

# Global connection settings (set by main() from args)
_AWS_REGION: str | None = None
_ENDPOINT_URL: str | None = None

# table -> (key schema, attribute definitions)
TABLE_DEFINITIONS: dict[str, tuple[list[dict], list[dict]]] = {
    "orders": (
        [{"AttributeName": "order_id", "KeyType": "HASH"}],
        [{"AttributeName": "order_id", "AttributeType": "S"}],
    ),
    "order-items": (
        [
            {"AttributeName": "order_id", "KeyType": "HASH"},
            {"AttributeName": "line_number", "KeyType": "RANGE"},
        ],
        [
            {"AttributeName": "order_id", "AttributeType": "S"},
            {"AttributeName": "line_number", "AttributeType": "N"},
        ],
    ),
    "payment-references": (
        [{"AttributeName": "payment_reference", "KeyType": "HASH"}],
        [{"AttributeName": "payment_reference", "AttributeType": "S"}],
    ),
    "inventory": (
        [
            {"AttributeName": "cocktail_id", "KeyType": "HASH"},
            {"AttributeName": "size_id", "KeyType": "RANGE"},
        ],
        [
            {"AttributeName": "cocktail_id", "AttributeType": "S"},
            {"AttributeName": "size_id", "AttributeType": "S"},
        ],
    ),
    "security-events": (
        [{"AttributeName": "event_id", "KeyType": "HASH"}],
        [{"AttributeName": "event_id", "AttributeType": "S"}],
    ),
}

SIZES = [
    {"size_id": "bottle-200ml", "volume_ml": 200, "price": Decimal("24.90")},
    {"size_id": "shot-20ml", "volume_ml": 20, "price": Decimal("4.50")},
]

COCKTAILS = [
    "negroni",
    "old-fashioned",
    "espresso-martini",
    "margarita",
    "manhattan",
    "daiquiri",
]


def get_dynamodb_resource():
    """Get DynamoDB resource with configured region and endpoint."""
    kwargs = {}
    if _AWS_REGION:
        kwargs["region_name"] = _AWS_REGION
    if _ENDPOINT_URL:
        kwargs["endpoint_url"] = _ENDPOINT_URL
    return boto3.resource("dynamodb", **kwargs)


def get_table_name(prefix: str, table: str) -> str:
    """Get full table name with prefix."""
    return f"{prefix}-{table}"


def create_tables(prefix: str) -> list[str]:
    """Create any missing tables.

    Returns:
        Names of the tables that were created
    """
    dynamodb = get_dynamodb_resource()
    created = []

    for table, (key_schema, attributes) in TABLE_DEFINITIONS.items():
        name = get_table_name(prefix, table)
        try:
            dynamodb.create_table(
                TableName=name,
                KeySchema=key_schema,
                AttributeDefinitions=attributes,
                BillingMode="PAY_PER_REQUEST",
            ).wait_until_exists()
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceInUseException":
                raise
            print(f"  ○ {name} already exists")
            continue
        print(f"  ✓ Created {name}")
        created.append(name)

    return created


def seed_inventory(prefix: str) -> int:
    """Write one inventory record per cocktail and size.

    Returns:
        Number of records written
    """
    dynamodb = get_dynamodb_resource()
    table = dynamodb.Table(get_table_name(prefix, "inventory"))

    count = 0
    with table.batch_writer() as batch:
        for cocktail_id in COCKTAILS:
            for size in SIZES:
                stock = 50 if size["volume_ml"] == 200 else 100
                batch.put_item(
                    Item={
                        "cocktail_id": cocktail_id,
                        "size_id": size["size_id"],
                        "stock_quantity": stock,
                        "available": True,
                        "price": size["price"],
                    }
                )
                print(f"  📦 {cocktail_id} / {size['size_id']}: {stock} units")
                count += 1

    return count


def clear_table(prefix: str, table_name: str) -> int:
    """Clear all items from a table.

    Returns:
        Number of items deleted
    """
    dynamodb = get_dynamodb_resource()
    table = dynamodb.Table(get_table_name(prefix, table_name))
    key_attrs = [k["AttributeName"] for k in table.key_schema]

    deleted = 0
    scan_kwargs: dict = {}
    while True:
        response = table.scan(**scan_kwargs)
        with table.batch_writer() as batch:
            for item in response.get("Items", []):
                batch.delete_item(Key={k: item[k] for k in key_attrs})
                deleted += 1
        if not response.get("LastEvaluatedKey"):
            return deleted
        scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]


def main() -> int:
    """Run the seed script."""
    global _AWS_REGION, _ENDPOINT_URL

    parser = argparse.ArgumentParser(description="Provision tables and seed inventory")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--prefix",
        default=os.environ.get("DYNAMODB_TABLE_PREFIX"),
        help="Table prefix (default: DYNAMODB_TABLE_PREFIX or storefront-<env>)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-west-1"),
        help="AWS region (default: eu-west-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--endpoint-url",
        default=os.environ.get("DYNAMODB_ENDPOINT_URL"),
        help="DynamoDB endpoint, e.g. http://localhost:8000 for DynamoDB Local",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding",
    )
    parser.add_argument(
        "--clear-first",
        action="store_true",
        help="Clear existing inventory before seeding",
    )

    args = parser.parse_args()

    _AWS_REGION = args.region
    _ENDPOINT_URL = args.endpoint_url
    prefix = args.prefix or f"storefront-{args.env}"

    # Safety check for production
    if args.env == "prod":
        confirm = input("⚠️  WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    print(f"\n🌱 Seeding {prefix} (region: {args.region})\n")

    if args.create_tables:
        print("Creating tables...")
        create_tables(prefix)
        print()

    if args.clear_first:
        count = clear_table(prefix, "inventory")
        print(f"Cleared {count} inventory records\n")

    try:
        seed_inventory(prefix)
    except ClientError as e:
        print(f"  ❌ Failed to seed inventory: {e}")
        return 1

    print("\n✅ Seed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
