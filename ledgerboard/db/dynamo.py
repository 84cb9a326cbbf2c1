import asyncio
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from ledgerboard.core.errors import BackendError
from ledgerboard.db.base import StorageBackend, check_kind, normalize_record

logger = logging.getLogger(__name__)

# Counter items live in the same table under their own partition per kind
SEQUENCE_PREFIX = "_sequence#"


class DynamoStorage(StorageBackend):
    """
    DynamoDB backend. One table, partition key ``kind`` (S) and sort key
    ``id`` (N). Ids come from an atomic ``ADD`` on a per-kind counter item.
    Blocking boto3 calls run in a worker thread.
    """

    name = "dynamo"

    def __init__(
        self,
        table_name: str,
        region: str = "eu-west-1",
        endpoint_url: Optional[str] = None,
        table: Any = None,
    ) -> None:
        if table is None:
            resource_kwargs = {"region_name": region}
            if endpoint_url:
                resource_kwargs["endpoint_url"] = endpoint_url
            dynamodb = boto3.resource("dynamodb", **resource_kwargs)
            table = dynamodb.Table(table_name)
        self._table = table

    async def fetch_all(self, kind: str, fields: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
        return await self._run("fetch_all", self._fetch_all, check_kind(kind), list(fields or []))

    async def fetch_one(self, kind: str, record_id: int) -> Optional[Dict[str, Any]]:
        return await self._run("fetch_one", self._fetch_one, check_kind(kind), record_id)

    async def create_one(self, kind: str, record: Mapping[str, Any]) -> Dict[str, Any]:
        return await self._run("create_one", self._create_one, check_kind(kind), dict(record))

    async def update_one(self, kind: str, record_id: int, patch: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        return await self._run("update_one", self._update_one, check_kind(kind), record_id, dict(patch))

    async def delete_one(self, kind: str, record_id: int) -> bool:
        return await self._run("delete_one", self._delete_one, check_kind(kind), record_id)

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except ClientError as e:
            message = e.response.get("Error", {}).get("Message", str(e))
            logger.error(f"DynamoDB {operation} failed: {message}")
            raise BackendError(f"{operation} failed: {message}") from e
        except BotoCoreError as e:
            logger.error(f"DynamoDB {operation} failed: {e}")
            raise BackendError(f"{operation} failed: {e}") from e

    def _fetch_all(self, kind: str, fields: List[str]) -> List[Dict[str, Any]]:
        query_kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("kind").eq(kind)}
        if fields:
            names = {f"#p{idx}": field for idx, field in enumerate(sorted(set(fields) | {"id"}))}
            query_kwargs["ProjectionExpression"] = ", ".join(names)
            query_kwargs["ExpressionAttributeNames"] = names

        items: List[Dict[str, Any]] = []
        while True:
            response = self._table.query(**query_kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            query_kwargs["ExclusiveStartKey"] = last_key
        return [_from_dynamo(item) for item in items]

    def _fetch_one(self, kind: str, record_id: int) -> Optional[Dict[str, Any]]:
        response = self._table.get_item(Key={"kind": kind, "id": record_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None

    def _next_id(self, kind: str) -> int:
        response = self._table.update_item(
            Key={"kind": f"{SEQUENCE_PREFIX}{kind}", "id": 0},
            UpdateExpression="ADD seq :one",
            ExpressionAttributeValues={":one": 1},
            ReturnValues="UPDATED_NEW",
        )
        return int(response["Attributes"]["seq"])

    def _create_one(self, kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
        item = normalize_record(record)
        item["id"] = self._next_id(kind)
        self._table.put_item(
            Item=_convert_for_dynamo({**item, "kind": kind}),
            ConditionExpression="attribute_not_exists(id)",
        )
        return item

    def _update_one(self, kind: str, record_id: int, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        changes = normalize_record(patch)
        changes.pop("id", None)
        changes.pop("kind", None)
        if not changes:
            return self._fetch_one(kind, record_id)

        update_expression_parts = []
        expression_attribute_values = {}
        expression_attribute_names = {}

        for idx, (key, value) in enumerate(changes.items()):
            placeholder = f"#f{idx}"
            value_placeholder = f":v{idx}"
            update_expression_parts.append(f"{placeholder} = {value_placeholder}")
            expression_attribute_names[placeholder] = key
            expression_attribute_values[value_placeholder] = value

        try:
            response = self._table.update_item(
                Key={"kind": kind, "id": record_id},
                UpdateExpression="SET " + ", ".join(update_expression_parts),
                ConditionExpression="attribute_exists(id)",
                ExpressionAttributeNames=expression_attribute_names,
                ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
                return None
            raise
        attributes = response.get("Attributes")
        return _from_dynamo(attributes) if attributes else None

    def _delete_one(self, kind: str, record_id: int) -> bool:
        response = self._table.delete_item(
            Key={"kind": kind, "id": record_id},
            ReturnValues="ALL_OLD",
        )
        return "Attributes" in response


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal for DynamoDB compatibility.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert Decimal instances back to native Python numeric types
    and drop the partition key so records come out in canonical shape.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return normalize_record({k: _from_dynamo(v) for k, v in obj.items() if k != "kind"})
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    return obj
