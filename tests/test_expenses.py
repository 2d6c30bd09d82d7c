from decimal import Decimal

from expense_sheets.db import dynamo


def expenses_url(sheet):
    return f"/api/sheets/{sheet['sheet_id']}/expenses/"


def test_create_normalizes_and_stores_decimal(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-05", 19.99, "  Food ", "lunch")
    assert expense["category"] == "food"
    assert expense["amount"] == 19.99
    assert expense["date"] == "2024-03-05"
    assert expense["description"] == "lunch"

    stored = dynamo.get_expense(sheet["sheet_id"], expense["expense_id"])
    assert stored["amount"] == Decimal("19.99")
    assert stored["user_id"]


def test_one_expense_per_date_and_category(client, headers, sheet, add_expense):
    add_expense("2024-03-05", 10, "food")
    response = client.post(
        expenses_url(sheet),
        json={"date": "2024-03-05", "amount": 3, "category": "FOOD"},
        headers=headers,
    )
    assert response.status_code == 409
    add_expense("2024-03-05", 3, "transport")
    add_expense("2024-03-06", 3, "food")


def test_invalid_amounts_and_dates_are_rejected(client, headers, sheet):
    url = expenses_url(sheet)
    bad_payloads = [
        {"date": "2024-02-30", "amount": 1, "category": "food"},
        {"date": "2024-02-01", "amount": "abc", "category": "food"},
        {"date": "2024-02-01", "amount": 1.234, "category": "food"},
        {"date": "2024-02-01", "amount": 1, "category": ""},
    ]
    for payload in bad_payloads:
        assert client.post(url, json=payload, headers=headers).status_code == 422


def test_list_filters_and_orders(client, headers, sheet, add_expense):
    add_expense("2024-01-10", 1, "food")
    add_expense("2024-02-10", 2, "food")
    add_expense("2024-02-20", 3, "food")
    add_expense("2023-12-31", 4, "food")
    url = expenses_url(sheet)

    everything = client.get(url, headers=headers).json()
    assert [e["date"] for e in everything] == ["2024-02-20", "2024-02-10", "2024-01-10", "2023-12-31"]

    february = client.get(url, params={"month": "2024-02"}, headers=headers).json()
    assert [e["amount"] for e in february] == [3, 2]

    year = client.get(url, params={"year": 2023}, headers=headers).json()
    assert [e["date"] for e in year] == ["2023-12-31"]

    assert client.get(url, params={"month": "2024-13"}, headers=headers).status_code == 422


def test_update_expense(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-05", 10, "food")
    url = f"{expenses_url(sheet)}{expense['expense_id']}"

    response = client.put(url, json={"amount": 12.75, "description": "groceries"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["amount"] == 12.75
    assert response.json()["description"] == "groceries"

    assert client.put(url, json={}, headers=headers).status_code == 400


def test_update_cannot_collide_with_another_expense(client, headers, sheet, add_expense):
    add_expense("2024-03-05", 10, "food")
    other = add_expense("2024-03-06", 10, "food")
    url = f"{expenses_url(sheet)}{other['expense_id']}"

    assert client.put(url, json={"date": "2024-03-05"}, headers=headers).status_code == 409
    # Re-saving its own cell is fine
    assert client.put(url, json={"date": "2024-03-06", "category": "food"}, headers=headers).status_code == 200


def test_delete_expense_removes_descriptions(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-05", 10, "food")
    client.post(
        f"{expenses_url(sheet)}{expense['expense_id']}/descriptions",
        json={"description": "weekly shop"},
        headers=headers,
    )
    url = f"{expenses_url(sheet)}{expense['expense_id']}"

    assert client.delete(url, headers=headers).status_code == 204
    assert client.get(url, headers=headers).status_code == 404
    assert client.delete(url, headers=headers).status_code == 404
    assert dynamo.list_descriptions(expense["expense_id"]) == []


def test_expenses_of_other_users_are_hidden(client, other_headers, sheet, add_expense):
    expense = add_expense("2024-03-05", 10, "food")
    response = client.get(f"{expenses_url(sheet)}{expense['expense_id']}", headers=other_headers)
    assert response.status_code == 404


def test_listing_failure_is_reported(client, headers, sheet, add_expense, fail_queries):
    add_expense("2024-03-05", 10, "food")
    fail_queries("expenses_table")
    assert client.get(expenses_url(sheet), headers=headers).status_code == 500


def test_delete_expense_keeps_it_when_descriptions_cannot_be_listed(
    client, headers, sheet, add_expense, fail_queries, monkeypatch
):
    expense = add_expense("2024-03-05", 10, "food")
    url = f"{expenses_url(sheet)}{expense['expense_id']}"
    fail_queries("descriptions_table")

    assert client.delete(url, headers=headers).status_code == 500

    monkeypatch.undo()
    assert client.get(url, headers=headers).status_code == 200


def test_delete_expense_of_another_sheet(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-05", 10, "food")
    other = client.post("/api/sheets/", json={"name": "Travel"}, headers=headers).json()
    url = f"{expenses_url(other)}{expense['expense_id']}"
    assert client.delete(url, headers=headers).status_code == 404
    assert dynamo.get_expense(sheet["sheet_id"], expense["expense_id"])
