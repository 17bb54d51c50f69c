"""DynamoDB access for bookings, treks, regions, promo codes and offers.

Tables are named ``{prefix}-{table}`` where the prefix is
``DYNAMODB_TABLE_PREFIX`` or ``trek-{ENVIRONMENT}``:

    bookings     PK booking_id   GSIs user_id-index, batch_id-index
    treks        PK trek_id      (batches embedded)
    regions      PK region_id
    promo-codes  PK promo_id     GSI code-index
    offers       PK offer_id

Services hand in pydantic models through ``to_item`` and read them back with
``from_item``; boto3 never sees a float.
"""

import datetime as dt
import os
from collections.abc import Iterator
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from pydantic import BaseModel

T = TypeVar("T", bound=BaseModel)

_service: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Shared DynamoDBService; ``environment`` only applies on first use."""
    global _service
    if _service is None:
        _service = DynamoDBService(environment)
    return _service


def reset_dynamodb_service() -> None:
    """Drop the shared instance so the next call binds to fresh resources (tests)."""
    global _service
    _service = None


def _to_dynamo_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {k: _to_dynamo_value(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple, set)):
        return [_to_dynamo_value(v) for v in value]
    return value


def _from_dynamo_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _from_dynamo_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo_value(v) for v in value]
    if isinstance(value, Decimal) and value == value.to_integral_value():
        # seat counts, ages and percentages are ints in the models
        return int(value)
    return value


def to_item(model: BaseModel) -> dict[str, Any]:
    """Model to item: ISO datetimes, enum values, no None attributes."""
    return _to_dynamo_value(model.model_dump(mode="python", exclude_none=True))


def from_item(model_cls: type[T], item: dict[str, Any]) -> T:
    return model_cls.model_validate(_from_dynamo_value(item))


def _condition_failed(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


class DynamoDBService:
    """Thin typed wrapper over the boto3 table resource."""

    def __init__(self, environment: str | None = None) -> None:
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        self.name_prefix = os.getenv("DYNAMODB_TABLE_PREFIX") or f"trek-{self.environment}"
        self._resource = boto3.resource("dynamodb")

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._resource.Table(self.table_name(table))

    @staticmethod
    def _pages(operation: Any, **kwargs: Any) -> Iterator[dict[str, Any]]:
        """Follow LastEvaluatedKey until the result set is exhausted."""
        while True:
            response = operation(**kwargs)
            yield from response.get("Items", [])
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            kwargs["ExclusiveStartKey"] = last_key

    def get_item(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        return self._table(table).get_item(Key=key).get("Item")

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write an item, replacing any existing one.

        Returns:
            False when ``condition_expression`` rejected the write
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            self._table(table).put_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression atomically.

        Used for counters such as promo ``used_count`` where a read-modify-write
        would race.

        Returns:
            The item after the update, or None when the condition failed
        """
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
        try:
            response = self._table(table).update_item(**kwargs)
        except ClientError as e:
            if _condition_failed(e):
                return None
            raise
        return response.get("Attributes")

    def delete_item(self, table: str, key: dict[str, Any]) -> None:
        self._table(table).delete_item(Key=key)

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        scan_index_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """All items matching a key condition on the table or a GSI."""
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        return list(self._pages(self._table(table).query, **kwargs))

    def scan(self, table: str, filter_expression: Any | None = None) -> list[dict[str, Any]]:
        """Every item in the table, optionally filtered with a boto3 Attr condition."""
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression
        return list(self._pages(self._table(table).scan, **kwargs))

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
    ) -> list[dict[str, Any]]:
        """Equality lookup on a GSI partition key, e.g. bookings by ``user_id``."""
        return self.query(
            table, Key(partition_key_name).eq(partition_key_value), index_name=index_name
        )
