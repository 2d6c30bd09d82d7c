def descriptions_url(sheet, expense):
    return f"/api/sheets/{sheet['sheet_id']}/expenses/{expense['expense_id']}/descriptions"


def test_upsert_replaces_text_for_same_column(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-01", 5, "food")
    url = descriptions_url(sheet, expense)

    first = client.post(url, json={"description": "bakery"}, headers=headers)
    assert first.status_code == 201
    assert first.json()["column_name"] == "notes"

    second = client.post(url, json={"description": "bakery and cafe"}, headers=headers)
    assert second.json()["description_id"] == first.json()["description_id"]
    assert second.json()["description"] == "bakery and cafe"

    fetched = client.get(f"{url}/notes", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["description"] == "bakery and cafe"


def test_list_and_filter_descriptions(client, headers, sheet, add_expense):
    food = add_expense("2024-03-01", 5, "food")
    travel = add_expense("2024-03-01", 8, "transport")
    client.post(descriptions_url(sheet, food), json={"description": "a"}, headers=headers)
    client.post(descriptions_url(sheet, food), json={"description": "b", "column_name": "receipt"}, headers=headers)
    client.post(descriptions_url(sheet, travel), json={"description": "c"}, headers=headers)

    base = f"/api/sheets/{sheet['sheet_id']}/descriptions"
    assert len(client.get(base, headers=headers).json()) == 3
    only_food = client.get(base, params={"expense_id": food["expense_id"]}, headers=headers).json()
    assert sorted(d["description"] for d in only_food) == ["a", "b"]
    notes = client.get(base, params={"column_name": "notes"}, headers=headers).json()
    assert sorted(d["description"] for d in notes) == ["a", "c"]


def test_delete_one_column_or_all(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-01", 5, "food")
    url = descriptions_url(sheet, expense)
    client.post(url, json={"description": "a"}, headers=headers)
    client.post(url, json={"description": "b", "column_name": "receipt"}, headers=headers)

    assert client.delete(url, params={"column_name": "receipt"}, headers=headers).json() == {"deleted": 1}
    assert client.get(f"{url}/receipt", headers=headers).status_code == 404
    assert client.delete(url, headers=headers).json() == {"deleted": 1}


def test_description_requires_text_and_known_expense(client, headers, sheet, add_expense):
    expense = add_expense("2024-03-01", 5, "food")
    assert client.post(descriptions_url(sheet, expense), json={"description": ""}, headers=headers).status_code == 422
    missing = {"expense_id": "missing"}
    assert client.post(descriptions_url(sheet, missing), json={"description": "x"}, headers=headers).status_code == 404
