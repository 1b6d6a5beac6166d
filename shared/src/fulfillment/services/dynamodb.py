"""DynamoDB service wrapper for prefixed table operations."""

from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from fulfillment.config import get_settings

# Module-level singleton for connection reuse across requests
_dynamodb_service_instance: "DynamoDBService | None" = None

# Cancellation reasons that mean "a condition did not hold" rather than
# "the store is unhealthy".
_CONDITIONAL_CANCEL_CODES = {"None", "ConditionalCheckFailed"}


def get_dynamodb_service() -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Avoids creating new boto3 clients on every request.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService()
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(self, table_prefix: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            table_prefix: Table name prefix. Defaults to the configured prefix.
        """
        self.name_prefix = table_prefix or get_settings().table_prefix
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")
        self._serializer = TypeSerializer()

    def table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        """Get DynamoDB table resource."""
        return self._dynamodb.Table(self.table_name(table))

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Use a strongly consistent read

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(
            Key=key, ConsistentRead=consistent_read
        )
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Update an item with expressions.

        Args:
            table: Table name without prefix
            key: Primary key dict
            update_expression: DynamoDB update expression
            expression_attribute_values: Values for expression
            expression_attribute_names: Names for expression (for reserved words)
            condition_expression: Optional condition for update

        Returns:
            Updated attributes or None if condition failed
        """
        try:
            kwargs: dict[str, Any] = {
                "Key": key,
                "UpdateExpression": update_expression,
                "ExpressionAttributeValues": expression_attribute_values,
                "ReturnValues": "ALL_NEW",
            }
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            response = self._get_table(table).update_item(**kwargs)
            attrs: dict[str, Any] | None = response.get("Attributes")
            return attrs
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise

    def query_by_partition(
        self,
        table: str,
        partition_key_name: str,
        partition_key_value: str,
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """Query every item sharing a partition key, in sort key order.

        Follows LastEvaluatedKey until the partition is exhausted.
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key(partition_key_name).eq(partition_key_value),
            "ConsistentRead": consistent_read,
        }
        items: list[dict[str, Any]] = []
        table_resource = self._get_table(table)
        while True:
            response = table_resource.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def batch_get(
        self,
        table: str,
        keys: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Batch get items by keys.

        Args:
            table: Table name without prefix
            keys: List of primary key dicts

        Returns:
            List of found items
        """
        if not keys:
            return []

        table_name = self.table_name(table)
        request: dict[str, Any] = {table_name: {"Keys": keys}}
        items: list[dict[str, Any]] = []
        while request:
            response = self._dynamodb.batch_get_item(RequestItems=request)
            items.extend(response.get("Responses", {}).get(table_name, []))
            request = response.get("UnprocessedKeys") or {}
        return items

    def transact_write(
        self,
        items: list[dict[str, Any]],
    ) -> bool:
        """Execute transactional write for multiple items.

        Args:
            items: List of TransactWriteItem dicts (see ``transact_put``)

        Returns:
            True if successful, False if a condition check cancelled it

        Raises:
            ClientError: If the transaction was cancelled for any other
                reason (throttling, validation, conflicts)
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] != "TransactionCanceledException":
                raise
            reasons = e.response.get("CancellationReasons") or []
            if not reasons:
                if "ConditionalCheckFailed" in e.response["Error"].get("Message", ""):
                    return False
                raise
            codes = {reason.get("Code", "None") for reason in reasons}
            if codes - _CONDITIONAL_CANCEL_CODES:
                raise
            return False

    # Transaction item builders

    def transact_put(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        """Build a Put entry for ``transact_write``.

        Args:
            table: Table name without prefix
            item: Item with Python values (str, int, Decimal, bool, ...)
            condition_expression: Optional condition for the put

        Returns:
            TransactWriteItem dict in low-level attribute-value format
        """
        put: dict[str, Any] = {
            "TableName": self.table_name(table),
            "Item": {k: self._serializer.serialize(v) for k, v in item.items()},
        }
        if condition_expression:
            put["ConditionExpression"] = condition_expression
        return {"Put": put}
