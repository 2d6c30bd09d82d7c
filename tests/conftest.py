import os

# moto needs credentials and a region before boto3 is used
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from moto import mock_aws

from expense_sheets.core.security import create_access_token, get_password_hash
from expense_sheets.db import dynamo
from expense_sheets.main import app
from expense_sheets.models.user import UserInDB


@pytest.fixture
def aws():
    with mock_aws():
        dynamo.reset_resource()
        dynamo.create_tables()
        yield
        dynamo.reset_resource()


@pytest.fixture
def client(aws):
    return TestClient(app)


def make_user(email="owner@example.com", password="correct-horse"):
    user = UserInDB(email=email, name=email.split("@")[0], password_hash=get_password_hash(password))
    assert dynamo.put_user(user.model_dump())
    return user.model_dump()


def auth_for(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user['user_id']})}"}


@pytest.fixture
def user(aws):
    return make_user()


@pytest.fixture
def headers(user):
    return auth_for(user)


@pytest.fixture
def other_headers(aws):
    return auth_for(make_user(email="intruder@example.com"))


@pytest.fixture
def sheet(client, headers):
    response = client.post("/api/sheets/", json={"name": "Household"}, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def add_expense(client, headers, sheet):
    def _add(date, amount, category, description=None):
        payload = {"date": date, "amount": amount, "category": category}
        if description is not None:
            payload["description"] = description
        response = client.post(
            f"/api/sheets/{sheet['sheet_id']}/expenses/", json=payload, headers=headers
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _add


class QueryFailingTable:
    """Wraps a table so that every query raises like an unavailable DynamoDB."""

    def __init__(self, table):
        self._table = table

    def query(self, **kwargs):
        raise ClientError(
            {"Error": {"Code": "InternalServerError", "Message": "Internal server error"}},
            "Query",
        )

    def __getattr__(self, name):
        return getattr(self._table, name)


@pytest.fixture
def fail_queries(monkeypatch):
    """fail_queries("expenses_table") makes queries on that table fail until monkeypatch.undo()."""
    def _fail(table_getter):
        table = getattr(dynamo, table_getter)()
        monkeypatch.setattr(dynamo, table_getter, lambda: QueryFailingTable(table))

    return _fail
