from expense_sheets.db import dynamo
from expense_sheets.models.sheet import DEFAULT_CATEGORIES


def test_create_sheet_seeds_default_categories(client, headers, sheet):
    assert sheet["name"] == "Household"
    assert sheet["has_pin"] is False
    assert "pin" not in sheet

    response = client.get(f"/api/sheets/{sheet['sheet_id']}/categories/", headers=headers)
    assert response.status_code == 200
    categories = response.json()
    assert [c["name"] for c in categories] == list(DEFAULT_CATEGORIES)
    assert [c["display_order"] for c in categories] == list(range(len(DEFAULT_CATEGORIES)))


def test_sheet_names_are_unique_per_user(client, headers, other_headers, sheet):
    assert client.post("/api/sheets/", json={"name": "household"}, headers=headers).status_code == 400
    assert client.post("/api/sheets/", json={"name": "Household"}, headers=other_headers).status_code == 201


def test_list_only_returns_own_sheets(client, headers, other_headers, sheet):
    client.post("/api/sheets/", json={"name": "Theirs"}, headers=other_headers)
    response = client.get("/api/sheets/", headers=headers)
    assert [s["sheet_id"] for s in response.json()] == [sheet["sheet_id"]]


def test_other_users_cannot_see_a_sheet(client, other_headers, sheet):
    response = client.get(f"/api/sheets/{sheet['sheet_id']}", headers=other_headers)
    assert response.status_code == 404


def test_pin_lifecycle(client, headers):
    created = client.post("/api/sheets/", json={"name": "Private", "pin": "0420"}, headers=headers).json()
    assert created["has_pin"] is True
    url = f"/api/sheets/{created['sheet_id']}"

    assert client.post(f"{url}/verify-pin", json={"pin": "0420"}, headers=headers).json() == {"valid": True}
    assert client.post(f"{url}/verify-pin", json={"pin": "1111"}, headers=headers).json() == {"valid": False}
    assert client.post(f"{url}/verify-pin", json={}, headers=headers).json() == {"valid": False}

    cleared = client.put(url, json={"pin": ""}, headers=headers).json()
    assert cleared["has_pin"] is False
    assert client.post(f"{url}/verify-pin", json={"pin": "9999"}, headers=headers).json() == {"valid": True}


def test_pin_must_be_four_digits(client, headers):
    assert client.post("/api/sheets/", json={"name": "Bad", "pin": "12a4"}, headers=headers).status_code == 422
    assert client.post("/api/sheets/", json={"name": "Bad", "pin": "12345"}, headers=headers).status_code == 422


def test_rename_sheet(client, headers, sheet):
    client.post("/api/sheets/", json={"name": "Travel"}, headers=headers)
    url = f"/api/sheets/{sheet['sheet_id']}"

    assert client.put(url, json={"name": "Travel"}, headers=headers).status_code == 400
    response = client.put(url, json={"name": "Home"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Home"
    assert client.get(url, headers=headers).json()["name"] == "Home"


def test_delete_sheet_cascades(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-01", 12.5, "food")
    client.post(
        f"/api/sheets/{sheet['sheet_id']}/expenses/{expense['expense_id']}/descriptions",
        json={"description": "market"},
        headers=headers,
    )

    response = client.delete(f"/api/sheets/{sheet['sheet_id']}", headers=headers)
    assert response.status_code == 204
    assert client.get(f"/api/sheets/{sheet['sheet_id']}", headers=headers).status_code == 404
    assert dynamo.list_expenses(sheet["sheet_id"]) == []
    assert dynamo.list_categories(sheet["sheet_id"]) == []
    assert dynamo.list_descriptions(expense["expense_id"]) == []


def test_delete_sheet_stops_when_expenses_cannot_be_listed(
    client, headers, sheet, add_expense, fail_queries, monkeypatch
):
    expense = add_expense("2024-03-01", 12.5, "food")
    fail_queries("expenses_table")

    assert client.delete(f"/api/sheets/{sheet['sheet_id']}", headers=headers).status_code == 500

    monkeypatch.undo()
    assert client.get(f"/api/sheets/{sheet['sheet_id']}", headers=headers).status_code == 200
    assert [e["expense_id"] for e in dynamo.list_expenses(sheet["sheet_id"])] == [expense["expense_id"]]
    assert len(dynamo.list_categories(sheet["sheet_id"])) == len(DEFAULT_CATEGORIES)


def test_delete_sheet_stops_when_descriptions_cannot_be_listed(
    client, headers, sheet, add_expense, fail_queries, monkeypatch
):
    expense = add_expense("2024-03-01", 12.5, "food")
    client.post(
        f"/api/sheets/{sheet['sheet_id']}/expenses/{expense['expense_id']}/descriptions",
        json={"description": "market"},
        headers=headers,
    )
    fail_queries("descriptions_table")

    assert client.delete(f"/api/sheets/{sheet['sheet_id']}", headers=headers).status_code == 500

    monkeypatch.undo()
    assert client.get(f"/api/sheets/{sheet['sheet_id']}", headers=headers).status_code == 200
    assert len(dynamo.list_expenses(sheet["sheet_id"])) == 1
    assert len(dynamo.list_descriptions(expense["expense_id"])) == 1
