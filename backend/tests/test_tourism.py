from datetime import timedelta

import pytest

from .conftest import API


@pytest.fixture
def tourism_payload(registry, yesterday):
    def build(**overrides):
        payload = {
            "client_id": registry.client_id,
            "destination": "Aparecida",
            "departure_date": yesterday.isoformat(),
            "return_date": (yesterday + timedelta(days=1)).isoformat(),
            "vehicle_id": registry.vehicle_id,
            "driver_id": registry.driver_id,
            "pricing_type": "FIXED",
            "contract_value": 2000.0,
            "expenses": [{"type_id": registry.expense_type_id, "amount": 100.0, "note": "pedágios"}],
        }
        payload.update(overrides)
        return payload
    return build


def test_client_name_is_copied_to_contractor(client, headers, tourism_payload):
    response = client.post(f"{API}/tourism/", json=tourism_payload(), headers=headers["OPERATOR"])
    assert response.status_code == 201
    body = response.json()
    assert body["contractor_name"] == "Igreja Batista Central"
    assert body["status"] == "QUOTE"


def test_manual_contractor_without_client(client, headers, tourism_payload):
    payload = tourism_payload(client_id=None, contractor_name="  Excursão do Clube  ")
    body = client.post(f"{API}/tourism/", json=payload, headers=headers["OPERATOR"]).json()
    assert body["contractor_name"] == "Excursão do Clube"

    missing = tourism_payload(client_id=None, contractor_name="")
    assert client.post(f"{API}/tourism/", json=missing, headers=headers["OPERATOR"]).status_code == 400


def test_calculated_price(client, headers, tourism_payload):
    payload = tourism_payload(
        pricing_type="CALCULATED", total_km=300, price_per_km=2.5, days=2, daily_rate=400, contract_value=0
    )
    body = client.post(f"{API}/tourism/", json=payload, headers=headers["OPERATOR"]).json()
    assert body["contract_value"] == 1550.0


def test_return_before_departure_is_rejected(client, headers, tourism_payload, yesterday):
    payload = tourism_payload(return_date=(yesterday - timedelta(days=1)).isoformat())
    assert client.post(f"{API}/tourism/", json=payload, headers=headers["OPERATOR"]).status_code == 400


def test_status_change_requires_approval_permission(client, headers, tourism_payload):
    confirmed = tourism_payload(status="CONFIRMED")
    assert client.post(f"{API}/tourism/", json=confirmed, headers=headers["OPERATOR"]).status_code == 403

    service_id = client.post(f"{API}/tourism/", json=tourism_payload(), headers=headers["OPERATOR"]).json()["id"]
    assert client.put(
        f"{API}/tourism/{service_id}", json=confirmed, headers=headers["OPERATOR"]
    ).status_code == 403

    response = client.put(f"{API}/tourism/{service_id}", json=confirmed, headers=headers["FINANCIAL"])
    assert response.status_code == 200
    assert response.json()["status"] == "CONFIRMED"

    # same status: plain edit stays open to operators
    edited = client.put(
        f"{API}/tourism/{service_id}", json=tourism_payload(status="CONFIRMED", notes="saída 06:00"),
        headers=headers["OPERATOR"],
    )
    assert edited.status_code == 200


def test_stats_ignore_canceled_services(client, headers, tourism_payload):
    client.post(f"{API}/tourism/", json=tourism_payload(status="COMPLETED"), headers=headers["MANAGER"])
    client.post(
        f"{API}/tourism/", json=tourism_payload(status="CANCELED", contract_value=500.0), headers=headers["MANAGER"]
    )

    body = client.get(f"{API}/tourism/", headers=headers["OPERATOR"]).json()
    assert len(body["items"]) == 2
    assert body["stats"] == {
        "total_value": 2000.0,
        "total_expenses": 100.0,
        "profit": 1900.0,
        "count": 1,
        "completed": 1,
    }
