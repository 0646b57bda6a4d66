from datetime import timedelta

import pytest

from .conftest import API


@pytest.fixture
def period_data(client, headers, registry, route_cash_payload, agency_cash_payload, yesterday):
    """One day with every kind of movement on vehicle ABC-1234"""
    day = yesterday.isoformat()
    client.post(f"{API}/route-cash/", json=route_cash_payload(), headers=headers["OPERATOR"])
    client.post(f"{API}/agency-cash/", json=agency_cash_payload(), headers=headers["OPERATOR"])
    client.post(f"{API}/tourism/", json={
        "client_id": registry.client_id,
        "destination": "Aparecida",
        "departure_date": day,
        "return_date": day,
        "vehicle_id": registry.vehicle_id,
        "contract_value": 2000.0,
        "expenses": [{"amount": 100.0}],
        "status": "COMPLETED",
    }, headers=headers["MANAGER"])
    client.post(f"{API}/fuel/", json={
        "date": day, "vehicle_id": registry.vehicle_id, "amount": 300.0, "liters": 50.0, "mileage": 1500.0,
    }, headers=headers["OPERATOR"])
    client.post(f"{API}/expenses/", json={
        "date": day, "description": "Aluguel garagem", "amount": 500.0,
        "type_id": registry.expense_type_id, "payment_method": "PIX",
    }, headers=headers["FINANCIAL"])
    return f"start={day}&end={day}"


def test_financial_metrics(client, headers, period_data, yesterday):
    body = client.get(f"{API}/reports/financial?{period_data}", headers=headers["FINANCIAL"]).json()
    current = body["current"]
    assert current["total_revenue"] == 5000.0
    assert current["variable_costs"] == 500.0
    assert current["general_expenses"] == 500.0
    assert current["contribution_margin"] == 4500.0
    assert current["net_result"] == 4000.0
    assert body["previous"]["total_revenue"] == 0.0
    assert body["previous_period"]["end"] == (yesterday - timedelta(days=1)).isoformat()


def test_full_report(client, headers, period_data):
    body = client.get(f"{API}/reports?{period_data}", headers=headers["AUDITOR"]).json()

    top = body["fleet"][0]
    assert top["plate"] == "ABC-1234"
    assert top["revenue"] == 3000.0
    assert top["fuel"] == 300.0
    assert top["other_costs"] == 150.0
    assert top["margin"] == 2550.0
    assert top["margin_pct"] == 85.0

    assert body["lines"] == [{"name": "São Paulo x Campinas", "revenue": 1000.0, "passengers": 30}]
    assert [i["title"] for i in body["insights"]] == ["Destaque da Frota"]


def test_loss_insight_comes_first(client, headers, registry, period_data, yesterday):
    client.post(f"{API}/expenses/", json={
        "date": yesterday.isoformat(), "description": "Motor retificado", "amount": 10000.0,
        "type_id": registry.expense_type_id, "payment_method": "BOLETO",
    }, headers=headers["FINANCIAL"])

    body = client.get(f"{API}/reports?{period_data}", headers=headers["MANAGER"]).json()
    assert body["insights"][0]["type"] == "danger"
    assert body["insights"][0]["title"] == "Alerta de Prejuízo Operacional"


def test_full_dashboard(client, headers, period_data):
    body = client.get(f"{API}/dashboard?{period_data}", headers=headers["MANAGER"]).json()
    assert body["view"] == "full"
    assert body["current"]["revenue"] == 5000.0
    assert body["current"]["cost"] == 500.0
    assert body["current"]["net_result"] == 4500.0
    assert body["current"]["margin"] == 90.0
    assert body["current"]["fuel_ratio"] == 6.0
    assert body["alerts"] == []
    assert body["ranking"]["top"][0]["plate"] == "ABC-1234"
    assert body["ranking"]["top"][0]["profit"] == 2550.0
    assert len(body["series"]) == 1


def test_restricted_roles_get_operational_dashboard(client, headers, period_data):
    body = client.get(f"{API}/dashboard", headers=headers["FINANCIAL"]).json()
    assert body["view"] == "operational"
    assert "revenue" not in body


def test_inverted_range_is_rejected(client, headers, yesterday):
    query = f"start={yesterday.isoformat()}&end={(yesterday - timedelta(days=3)).isoformat()}"
    assert client.get(f"{API}/reports?{query}", headers=headers["MANAGER"]).status_code == 400
