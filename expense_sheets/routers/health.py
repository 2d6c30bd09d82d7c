"""
Health Check Router
Liveness plus a DynamoDB table check
"""
from fastapi import APIRouter
from datetime import datetime, timezone
import logging

from botocore.exceptions import ClientError

from expense_sheets.core.config import settings
from expense_sheets.db import dynamo

router = APIRouter()
logger = logging.getLogger(__name__)


def _table_names():
    return {
        "users": settings.DYNAMO_USERS_TABLE,
        "sheets": settings.DYNAMO_SHEETS_TABLE,
        "expenses": settings.DYNAMO_EXPENSES_TABLE,
        "categories": settings.DYNAMO_CATEGORIES_TABLE,
        "descriptions": settings.DYNAMO_DESCRIPTIONS_TABLE,
    }


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
def dynamo_status():
    """Report whether every DynamoDB table is reachable."""
    client = dynamo.get_resource().meta.client
    tables = {}
    for label, name in _table_names().items():
        try:
            response = client.describe_table(TableName=name)
            tables[label] = {"name": name, "status": response["Table"]["TableStatus"]}
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            tables[label] = {"name": name, "status": "error", "error": error_code}
            logger.error(f"DynamoDB check failed for {name}: {str(e)}")

    connected = all(t["status"] == "ACTIVE" for t in tables.values())
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "region": settings.DYNAMO_REGION,
        "tables": tables,
        "overall_status": "healthy" if connected else "degraded",
    }
