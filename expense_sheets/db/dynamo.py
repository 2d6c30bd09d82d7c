import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from expense_sheets.core.config import settings

logger = logging.getLogger(__name__)

# Created lazily so tests can swap in a mocked AWS backend
_resource = None


def get_resource():
    global _resource
    if _resource is None:
        _resource = boto3.resource(
            "dynamodb",
            region_name=settings.DYNAMO_REGION,
            endpoint_url=settings.DYNAMO_ENDPOINT_URL,
        )
    return _resource


def reset_resource():
    global _resource
    _resource = None


def users_table():
    return get_resource().Table(settings.DYNAMO_USERS_TABLE)


def sheets_table():
    return get_resource().Table(settings.DYNAMO_SHEETS_TABLE)


def expenses_table():
    return get_resource().Table(settings.DYNAMO_EXPENSES_TABLE)


def categories_table():
    return get_resource().Table(settings.DYNAMO_CATEGORIES_TABLE)


def descriptions_table():
    return get_resource().Table(settings.DYNAMO_DESCRIPTIONS_TABLE)


def _table_definitions() -> List[Dict[str, Any]]:
    def key_schema(hash_key: str, range_key: Optional[str] = None) -> Dict[str, Any]:
        keys = [{"AttributeName": hash_key, "KeyType": "HASH"}]
        attrs = [{"AttributeName": hash_key, "AttributeType": "S"}]
        if range_key:
            keys.append({"AttributeName": range_key, "KeyType": "RANGE"})
            attrs.append({"AttributeName": range_key, "AttributeType": "S"})
        return {"KeySchema": keys, "AttributeDefinitions": attrs}

    users = {"TableName": settings.DYNAMO_USERS_TABLE, **key_schema("user_id")}
    users["AttributeDefinitions"].append({"AttributeName": "email", "AttributeType": "S"})
    users["GlobalSecondaryIndexes"] = [
        {
            "IndexName": "email-index",
            "KeySchema": [{"AttributeName": "email", "KeyType": "HASH"}],
            "Projection": {"ProjectionType": "ALL"},
        }
    ]
    return [
        users,
        {"TableName": settings.DYNAMO_SHEETS_TABLE, **key_schema("user_id", "sheet_id")},
        {"TableName": settings.DYNAMO_EXPENSES_TABLE, **key_schema("sheet_id", "expense_id")},
        {"TableName": settings.DYNAMO_CATEGORIES_TABLE, **key_schema("sheet_id", "name")},
        {"TableName": settings.DYNAMO_DESCRIPTIONS_TABLE, **key_schema("expense_id", "column_name")},
    ]


def create_tables():
    """Create any missing table (local DynamoDB, tests, first deploy)."""
    client = get_resource().meta.client
    existing = set(client.list_tables().get("TableNames", []))
    for definition in _table_definitions():
        name = definition["TableName"]
        if name in existing:
            continue
        client.create_table(BillingMode="PAY_PER_REQUEST", **definition)
        client.get_waiter("table_exists").wait(TableName=name)
        logger.info(f"Created DynamoDB table {name}")


def _query_all(table, **kwargs) -> List[Dict[str, Any]]:
    """Run a query and follow LastEvaluatedKey until every page is read."""
    items: List[Dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return [_from_dynamo(item) for item in items]
        kwargs["ExclusiveStartKey"] = last_key


def _update_item(table, key: dict, updates: dict):
    """
    Apply partial updates to an existing item. Returns the updated item or None.
    """
    if not updates:
        return None

    update_expression_parts = []
    expression_attribute_values = {}
    expression_attribute_names = {}

    for idx, (name, value) in enumerate(updates.items()):
        placeholder = f"#f{idx}"
        value_placeholder = f":v{idx}"
        update_expression_parts.append(f"{placeholder} = {value_placeholder}")
        expression_attribute_names[placeholder] = name
        expression_attribute_values[value_placeholder] = value

    # Never upsert: the key must already exist
    condition_parts = []
    for idx, key_name in enumerate(key):
        placeholder = f"#k{idx}"
        expression_attribute_names[placeholder] = key_name
        condition_parts.append(f"attribute_exists({placeholder})")

    response = table.update_item(
        Key=key,
        UpdateExpression="SET " + ", ".join(update_expression_parts),
        ConditionExpression=" AND ".join(condition_parts),
        ExpressionAttributeNames=expression_attribute_names,
        ExpressionAttributeValues=_convert_for_dynamo(expression_attribute_values),
        ReturnValues="ALL_NEW",
    )
    attributes = response.get("Attributes")
    return _from_dynamo(attributes) if attributes else None


def _is_condition_failure(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


# Users

def get_user_by_email(email: str):
    """Query the Users table by email through the email-index GSI."""
    try:
        items = _query_all(
            users_table(),
            IndexName="email-index",
            KeyConditionExpression=Key("email").eq(email),
        )
        return items[0] if items else None
    except ClientError as e:
        logger.error(f"get_user_by_email failed: {e.response['Error']['Message']}")
        return None


def get_user_by_id(user_id: str):
    try:
        response = users_table().get_item(Key={"user_id": user_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_user_by_id failed: {e.response['Error']['Message']}")
        return None


def put_user(user_item: dict):
    try:
        users_table().put_item(Item=_convert_for_dynamo(user_item))
        return True
    except ClientError as e:
        logger.error(f"put_user failed: {e.response['Error']['Message']}")
        return False


def update_user(user_id: str, updates: dict):
    try:
        return _update_item(users_table(), {"user_id": user_id}, updates)
    except ClientError as e:
        if not _is_condition_failure(e):
            logger.error(f"update_user failed: {e.response['Error']['Message']}")
        return None


# Sheets

def list_sheets(user_id: str) -> List[Dict[str, Any]]:
    try:
        return _query_all(sheets_table(), KeyConditionExpression=Key("user_id").eq(user_id))
    except ClientError as e:
        logger.error(f"list_sheets failed: {e.response['Error']['Message']}")
        return []


def get_sheet(user_id: str, sheet_id: str):
    try:
        response = sheets_table().get_item(Key={"user_id": user_id, "sheet_id": sheet_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_sheet failed: {e.response['Error']['Message']}")
        return None


def get_sheet_by_name(user_id: str, name: str):
    wanted = name.lower()
    return next((s for s in list_sheets(user_id) if s["name"].lower() == wanted), None)


def put_sheet(sheet_item: dict):
    try:
        sheets_table().put_item(Item=_convert_for_dynamo(sheet_item))
        return True
    except ClientError as e:
        logger.error(f"put_sheet failed: {e.response['Error']['Message']}")
        return False


def update_sheet(user_id: str, sheet_id: str, updates: dict):
    try:
        return _update_item(sheets_table(), {"user_id": user_id, "sheet_id": sheet_id}, updates)
    except ClientError as e:
        if not _is_condition_failure(e):
            logger.error(f"update_sheet failed: {e.response['Error']['Message']}")
        return None


def delete_sheet(user_id: str, sheet_id: str):
    """
    Delete a sheet together with its expenses, their descriptions and its
    categories. The sheet row goes last and stays if any child listing fails.
    """
    expenses = list_expenses(sheet_id)
    categories = list_categories(sheet_id)
    if expenses is None or categories is None:
        return False
    for expense in expenses:
        if delete_descriptions(expense["expense_id"]) is None:
            return False

    try:
        with expenses_table().batch_writer() as batch:
            for expense in expenses:
                batch.delete_item(Key={"sheet_id": sheet_id, "expense_id": expense["expense_id"]})
        with categories_table().batch_writer() as batch:
            for category in categories:
                batch.delete_item(Key={"sheet_id": sheet_id, "name": category["name"]})

        response = sheets_table().delete_item(
            Key={"user_id": user_id, "sheet_id": sheet_id},
            ReturnValues="ALL_OLD",
        )
        return "Attributes" in response
    except ClientError as e:
        logger.error(f"delete_sheet failed: {e.response['Error']['Message']}")
        return False


# Expenses

def list_expenses(sheet_id: str, date_prefix: Optional[str] = None) -> Optional[List[Dict[str, Any]]]:
    """
    All expenses of a sheet. date_prefix narrows to a month ('2024-11') or a
    year ('2024') since dates are stored as ISO strings.
    Returns None when the query fails, so callers can tell it from an empty sheet.
    """
    kwargs: Dict[str, Any] = {"KeyConditionExpression": Key("sheet_id").eq(sheet_id)}
    if date_prefix:
        kwargs["FilterExpression"] = Attr("date").begins_with(date_prefix)
    try:
        return _query_all(expenses_table(), **kwargs)
    except ClientError as e:
        logger.error(f"list_expenses failed: {e.response['Error']['Message']}")
        return None


def get_expense(sheet_id: str, expense_id: str):
    try:
        response = expenses_table().get_item(Key={"sheet_id": sheet_id, "expense_id": expense_id})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_expense failed: {e.response['Error']['Message']}")
        return None


def find_expense(sheet_id: str, date: Any, category: str):
    """The expense occupying (sheet, date, category), if any."""
    try:
        items = _query_all(
            expenses_table(),
            KeyConditionExpression=Key("sheet_id").eq(sheet_id),
            FilterExpression=Attr("date").eq(_convert_for_dynamo(date)) & Attr("category").eq(category),
        )
        return items[0] if items else None
    except ClientError as e:
        logger.error(f"find_expense failed: {e.response['Error']['Message']}")
        return None


def put_expense(expense_item: dict):
    try:
        expenses_table().put_item(Item=_convert_for_dynamo(expense_item))
        return True
    except ClientError as e:
        logger.error(f"put_expense failed: {e.response['Error']['Message']}")
        return False


def update_expense(sheet_id: str, expense_id: str, updates: dict):
    try:
        return _update_item(expenses_table(), {"sheet_id": sheet_id, "expense_id": expense_id}, updates)
    except ClientError as e:
        if not _is_condition_failure(e):
            logger.error(f"update_expense failed: {e.response['Error']['Message']}")
        return None


def recategorize_expenses(sheet_id: str, old_category: str, new_category: str) -> Optional[int]:
    """Move every expense of the sheet from one category to another. None if the listing fails."""
    expenses = list_expenses(sheet_id)
    if expenses is None:
        return None
    moved = 0
    for expense in expenses:
        if expense["category"] != old_category:
            continue
        if update_expense(sheet_id, expense["expense_id"], {"category": new_category}):
            moved += 1
    return moved


def delete_expense(sheet_id: str, expense_id: str):
    """
    Delete an expense and the column descriptions attached to it. Descriptions
    go first; the expense stays if they cannot be removed.
    """
    if delete_descriptions(expense_id) is None:
        return False
    try:
        response = expenses_table().delete_item(
            Key={"sheet_id": sheet_id, "expense_id": expense_id},
            ReturnValues="ALL_OLD",
        )
        return "Attributes" in response
    except ClientError as e:
        logger.error(f"delete_expense failed: {e.response['Error']['Message']}")
        return False


# Categories

def list_categories(sheet_id: str) -> Optional[List[Dict[str, Any]]]:
    """Categories of a sheet ordered by display order, then name. None if the query fails."""
    try:
        items = _query_all(categories_table(), KeyConditionExpression=Key("sheet_id").eq(sheet_id))
    except ClientError as e:
        logger.error(f"list_categories failed: {e.response['Error']['Message']}")
        return None
    return sorted(items, key=lambda c: (c.get("display_order", 0), c["name"]))


def get_category(sheet_id: str, name: str):
    try:
        response = categories_table().get_item(Key={"sheet_id": sheet_id, "name": name})
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_category failed: {e.response['Error']['Message']}")
        return None


def next_display_order(sheet_id: str) -> Optional[int]:
    categories = list_categories(sheet_id)
    if categories is None:
        return None
    orders = [c.get("display_order", 0) for c in categories]
    return max(orders) + 1 if orders else 0


def put_category(sheet_id: str, name: str, display_order: int):
    try:
        categories_table().put_item(
            Item={"sheet_id": sheet_id, "name": name, "display_order": display_order}
        )
        return True
    except ClientError as e:
        logger.error(f"put_category failed: {e.response['Error']['Message']}")
        return False


def seed_categories(sheet_id: str, names) -> bool:
    try:
        with categories_table().batch_writer() as batch:
            for order, name in enumerate(names):
                batch.put_item(Item={"sheet_id": sheet_id, "name": name, "display_order": order})
        return True
    except ClientError as e:
        logger.error(f"seed_categories failed: {e.response['Error']['Message']}")
        return False


def rename_category(sheet_id: str, old_name: str, new_name: str):
    """The name is the sort key, so a rename writes the new item and drops the old one."""
    current = get_category(sheet_id, old_name)
    if not current:
        return None
    display_order = current.get("display_order", 0)
    if not put_category(sheet_id, new_name, display_order):
        return None
    delete_category(sheet_id, old_name)
    return {"sheet_id": sheet_id, "name": new_name, "display_order": display_order}


def delete_category(sheet_id: str, name: str):
    try:
        response = categories_table().delete_item(
            Key={"sheet_id": sheet_id, "name": name},
            ReturnValues="ALL_OLD",
        )
        return "Attributes" in response
    except ClientError as e:
        logger.error(f"delete_category failed: {e.response['Error']['Message']}")
        return False


# Column descriptions

def list_descriptions(expense_id: str) -> Optional[List[Dict[str, Any]]]:
    try:
        return _query_all(descriptions_table(), KeyConditionExpression=Key("expense_id").eq(expense_id))
    except ClientError as e:
        logger.error(f"list_descriptions failed: {e.response['Error']['Message']}")
        return None


def get_description(expense_id: str, column_name: str):
    try:
        response = descriptions_table().get_item(
            Key={"expense_id": expense_id, "column_name": column_name}
        )
        item = response.get("Item")
        return _from_dynamo(item) if item else None
    except ClientError as e:
        logger.error(f"get_description failed: {e.response['Error']['Message']}")
        return None


def put_description(description_item: dict):
    try:
        descriptions_table().put_item(Item=_convert_for_dynamo(description_item))
        return True
    except ClientError as e:
        logger.error(f"put_description failed: {e.response['Error']['Message']}")
        return False


def delete_descriptions(expense_id: str, column_name: Optional[str] = None) -> Optional[int]:
    """
    Delete one column's description, or all of them, for an expense.
    Returns the count, or None on failure.
    """
    items = list_descriptions(expense_id)
    if items is None:
        return None
    if column_name is not None:
        items = [item for item in items if item["column_name"] == column_name]
    try:
        with descriptions_table().batch_writer() as batch:
            for item in items:
                batch.delete_item(Key={"expense_id": expense_id, "column_name": item["column_name"]})
        return len(items)
    except ClientError as e:
        logger.error(f"delete_descriptions failed: {e.response['Error']['Message']}")
        return None


def _convert_for_dynamo(obj: Any):
    """
    Recursively convert floats to Decimal and dates to ISO strings for DynamoDB.
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, (dt.date, dt.datetime)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: _convert_for_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_for_dynamo(v) for v in obj]
    return obj


def _from_dynamo(obj: Any):
    """
    Recursively convert integral Decimals back to int. Fractional values stay
    Decimal so money is never routed through a float.
    """
    if isinstance(obj, list):
        return [_from_dynamo(item) for item in obj]
    if isinstance(obj, dict):
        return {k: _from_dynamo(v) for k, v in obj.items()}
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return obj
    return obj
