from .conftest import API


def test_changes_are_logged_with_snapshots(client, headers, route_cash_payload):
    entry_id = client.post(f"{API}/route-cash/", json=route_cash_payload(), headers=headers["OPERATOR"]).json()["id"]
    client.put(f"{API}/route-cash/{entry_id}", json=route_cash_payload(cash_handed=950.0), headers=headers["OPERATOR"])

    logs = client.get(f"{API}/audit/?entity=RouteCash", headers=headers["AUDITOR"]).json()
    assert [log["action"] for log in logs] == ["UPDATE", "CREATE"]
    assert logs[0]["user_name"] == "Operator User"
    assert logs[0]["user_role"] == "OPERATOR"
    assert logs[0]["entity_id"] == str(entry_id)

    detail = client.get(f"{API}/audit/{logs[0]['id']}", headers=headers["AUDITOR"]).json()
    assert detail["previous_snapshot"]["cash_handed"] == 940.0
    assert detail["snapshot"]["cash_handed"] == 950.0
    assert detail["snapshot"]["diff"] == 0.0


def test_filters(client, headers, route_cash_payload, agency_cash_payload):
    client.post(f"{API}/route-cash/", json=route_cash_payload(), headers=headers["OPERATOR"])
    client.post(f"{API}/agency-cash/", json=agency_cash_payload(), headers=headers["FINANCIAL"])

    by_user = client.get(f"{API}/audit/?user=financial", headers=headers["MANAGER"]).json()
    assert [log["entity"] for log in by_user] == ["AgencyCash"]

    by_action = client.get(f"{API}/audit/?action=CREATE&limit=1", headers=headers["MANAGER"]).json()
    assert len(by_action) == 1


def test_unknown_entry(client, headers):
    assert client.get(f"{API}/audit/12345", headers=headers["ADMIN"]).status_code == 404
