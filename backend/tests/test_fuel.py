from datetime import timedelta

import pytest

from .conftest import API


@pytest.fixture
def fuel_payload(registry, yesterday):
    def build(**overrides):
        payload = {
            "date": (yesterday - timedelta(days=1)).isoformat(),
            "vehicle_id": registry.vehicle_id,
            "amount": 300.0,
            "liters": 50.0,
            "mileage": 1500.0,
            "is_full_tank": True,
            "payment_method": "CARD",
        }
        payload.update(overrides)
        return payload
    return build


def test_consumption_uses_initial_mileage_for_first_fill(client, headers, fuel_payload):
    assert client.post(f"{API}/fuel/", json=fuel_payload(), headers=headers["OPERATOR"]).status_code == 201

    body = client.get(f"{API}/fuel/", headers=headers["OPERATOR"]).json()
    row = body["items"][0]
    assert row["vehicle_plate"] == "ABC-1234"
    assert row["previous_mileage"] == 1000.0
    assert row["dist_traveled"] == 500.0
    assert row["km_per_liter"] == 10.0
    assert row["cost_per_km"] == 0.6
    assert row["price_per_liter"] == 6.0


def test_partial_tank_has_distance_but_no_efficiency(client, headers, fuel_payload, yesterday):
    client.post(f"{API}/fuel/", json=fuel_payload(), headers=headers["OPERATOR"])
    client.post(
        f"{API}/fuel/",
        json=fuel_payload(date=yesterday.isoformat(), mileage=1900.0, liters=40.0, amount=240.0, is_full_tank=False),
        headers=headers["OPERATOR"],
    )

    body = client.get(f"{API}/fuel/", headers=headers["OPERATOR"]).json()
    latest = body["items"][0]
    assert latest["previous_mileage"] == 1500.0
    assert latest["dist_traveled"] == 400.0
    assert latest["km_per_liter"] is None
    assert latest["cost_per_km"] is None

    assert body["stats"] == {
        "total_spent": 540.0,
        "total_liters": 90.0,
        "avg_km_per_liter": 10.0,
        "avg_price": 6.0,
        "avg_cost_per_km": 0.6,
    }


def test_lower_mileage_needs_confirmation(client, headers, fuel_payload, yesterday):
    client.post(f"{API}/fuel/", json=fuel_payload(), headers=headers["OPERATOR"])
    lower = fuel_payload(date=yesterday.isoformat(), mileage=1400.0)

    response = client.post(f"{API}/fuel/", json=lower, headers=headers["OPERATOR"])
    assert response.status_code == 400
    assert "allow_lower_mileage" in response.json()["detail"]

    response = client.post(f"{API}/fuel/?allow_lower_mileage=true", json=lower, headers=headers["OPERATOR"])
    assert response.status_code == 201


def test_payment_method_must_be_a_fuel_method(client, headers, fuel_payload):
    response = client.post(f"{API}/fuel/", json=fuel_payload(payment_method="PIX"), headers=headers["OPERATOR"])
    assert response.status_code == 400


def test_non_positive_values_are_rejected(client, headers, fuel_payload):
    response = client.post(f"{API}/fuel/", json=fuel_payload(liters=0), headers=headers["OPERATOR"])
    assert response.status_code == 422


def test_filter_by_vehicle(client, headers, registry, fuel_payload):
    client.post(f"{API}/fuel/", json=fuel_payload(), headers=headers["OPERATOR"])
    client.post(
        f"{API}/fuel/",
        json=fuel_payload(vehicle_id=registry.second_vehicle_id, mileage=800.0),
        headers=headers["OPERATOR"],
    )

    body = client.get(f"{API}/fuel/?vehicle_id={registry.second_vehicle_id}", headers=headers["OPERATOR"]).json()
    assert len(body["items"]) == 1
    assert body["items"][0]["vehicle_plate"] == "XYZ-9876"
    assert body["items"][0]["dist_traveled"] == 300.0


def test_update_and_delete(client, headers, fuel_payload):
    entry_id = client.post(f"{API}/fuel/", json=fuel_payload(), headers=headers["OPERATOR"]).json()["id"]

    updated = client.put(f"{API}/fuel/{entry_id}", json=fuel_payload(amount=310.0), headers=headers["OPERATOR"])
    assert updated.status_code == 200
    assert updated.json()["amount"] == 310.0

    assert client.delete(f"{API}/fuel/{entry_id}", headers=headers["OPERATOR"]).status_code == 403
    assert client.delete(f"{API}/fuel/{entry_id}", headers=headers["MANAGER"]).status_code == 204


def test_editing_an_older_fill_skips_the_mileage_comparison(client, headers, fuel_payload, yesterday):
    older_id = client.post(f"{API}/fuel/", json=fuel_payload(), headers=headers["OPERATOR"]).json()["id"]
    client.post(f"{API}/fuel/", json=fuel_payload(date=yesterday.isoformat(), mileage=2000.0),
                headers=headers["OPERATOR"])

    response = client.put(f"{API}/fuel/{older_id}", json=fuel_payload(notes="nota fiscal 123"),
                          headers=headers["OPERATOR"])
    assert response.status_code == 200
    assert response.json()["mileage"] == 1500.0
    assert response.json()["notes"] == "nota fiscal 123"
