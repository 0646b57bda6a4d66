from onnibox.models import CommissionRule

from .conftest import API


def test_commission_comes_from_the_agency_rule(client, headers, agency_cash_payload):
    response = client.post(f"{API}/agency-cash/", json=agency_cash_payload(), headers=headers["OPERATOR"])
    assert response.status_code == 201
    body = response.json()
    assert body["commission_pct"] == 10.0
    assert body["commission_value"] == 200.0
    assert body["expenses_total"] == 50.0
    assert body["net_expected"] == 1750.0
    assert body["diff"] == 0.0


def test_agency_without_rule_has_no_commission(client, headers, registry, agency_cash_payload):
    payload = agency_cash_payload(agency_id=registry.plain_agency_id)
    body = client.post(f"{API}/agency-cash/", json=payload, headers=headers["OPERATOR"]).json()
    assert body["commission_pct"] == 0.0
    assert body["commission_value"] == 0.0
    assert body["net_expected"] == 1950.0
    assert body["diff"] == -200.0


def test_list_summary(client, headers, registry, agency_cash_payload):
    client.post(f"{API}/agency-cash/", json=agency_cash_payload(), headers=headers["OPERATOR"])
    client.post(
        f"{API}/agency-cash/",
        json=agency_cash_payload(agency_id=registry.plain_agency_id, value_received=1950.0),
        headers=headers["OPERATOR"],
    )
    body = client.get(f"{API}/agency-cash/", headers=headers["FINANCIAL"]).json()
    assert len(body["items"]) == 2
    assert body["summary"] == {
        "informed": 4000.0,
        "received": 3700.0,
        "commissions": 200.0,
        "expenses": 100.0,
        "diff": 0.0,
    }

    filtered = client.get(
        f"{API}/agency-cash/?agency_id={registry.plain_agency_id}", headers=headers["FINANCIAL"]
    ).json()
    assert [item["agency_id"] for item in filtered["items"]] == [registry.plain_agency_id]


def test_checked_entry_keeps_its_commission_after_rule_change(
    client, headers, agency_cash_payload, yesterday, db_session
):
    checked_id = client.post(
        f"{API}/agency-cash/", json=agency_cash_payload(), headers=headers["OPERATOR"]
    ).json()["id"]
    client.post(f"{API}/agency-cash/{checked_id}/check", headers=headers["OPERATOR"])
    open_id = client.post(
        f"{API}/agency-cash/", json=agency_cash_payload(), headers=headers["OPERATOR"]
    ).json()["id"]

    rule = db_session.query(CommissionRule).one()
    response = client.put(
        f"{API}/commission-rules/{rule.id}",
        json={"target_type": rule.target_type, "target_id": rule.target_id, "percentage": 20},
        headers=headers["ADMIN"],
    )
    assert response.status_code == 200

    report = client.get(f"{API}/closing/report?day={yesterday.isoformat()}", headers=headers["FINANCIAL"]).json()
    by_id = {row["id"]: row for row in report["agencies"]}
    assert by_id[checked_id]["commission_value"] == 200.0
    assert by_id[open_id]["commission_value"] == 400.0
    assert report["total_commissions"] == 600.0


def test_unknown_agency_is_rejected(client, headers, agency_cash_payload):
    response = client.post(f"{API}/agency-cash/", json=agency_cash_payload(agency_id=404), headers=headers["OPERATOR"])
    assert response.status_code == 400
