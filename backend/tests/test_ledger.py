from .conftest import API


def _entry(registry, yesterday, **overrides):
    payload = {
        "driver_id": registry.driver_id,
        "date": yesterday.isoformat(),
        "type": "DEBIT",
        "category": "SHORTAGE",
        "amount": 100.0,
        "description": "Falta no caixa da rota 08:00",
    }
    payload.update(overrides)
    return payload


def test_balance_is_credits_minus_debits(client, headers, registry, yesterday):
    assert client.post(f"{API}/ledger/", json=_entry(registry, yesterday), headers=headers["FINANCIAL"]).status_code == 201
    client.post(
        f"{API}/ledger/",
        json=_entry(registry, yesterday, type="CREDIT", category="PAYMENT", amount=40.0, description="Pagamento parcial"),
        headers=headers["FINANCIAL"],
    )

    statement = client.get(f"{API}/ledger/drivers/{registry.driver_id}", headers=headers["OPERATOR"]).json()
    assert statement["debits"] == 100.0
    assert statement["credits"] == 40.0
    assert statement["balance"] == -60.0
    assert len(statement["items"]) == 2

    balances = client.get(f"{API}/ledger/balances", headers=headers["OPERATOR"]).json()
    assert balances == [{
        "driver_id": registry.driver_id,
        "driver_name": "João Silva",
        "entries": 2,
        "credits": 40.0,
        "debits": 100.0,
        "balance": -60.0,
    }]


def test_category_must_match_type(client, headers, registry, yesterday):
    response = client.post(
        f"{API}/ledger/", json=_entry(registry, yesterday, category="BONUS"), headers=headers["FINANCIAL"]
    )
    assert response.status_code == 400
    assert "SHORTAGE" in response.json()["detail"]


def test_unknown_type_is_rejected(client, headers, registry, yesterday):
    response = client.post(
        f"{API}/ledger/", json=_entry(registry, yesterday, type="TRANSFER"), headers=headers["FINANCIAL"]
    )
    assert response.status_code == 400


def test_operator_cannot_post_entries(client, headers, registry, yesterday):
    response = client.post(f"{API}/ledger/", json=_entry(registry, yesterday), headers=headers["OPERATOR"])
    assert response.status_code == 403


def test_statement_of_unknown_driver(client, headers):
    assert client.get(f"{API}/ledger/drivers/999", headers=headers["MANAGER"]).status_code == 404


def test_delete_entry(client, headers, registry, yesterday):
    entry_id = client.post(
        f"{API}/ledger/", json=_entry(registry, yesterday), headers=headers["FINANCIAL"]
    ).json()["id"]
    assert client.delete(f"{API}/ledger/{entry_id}", headers=headers["FINANCIAL"]).status_code == 403
    assert client.delete(f"{API}/ledger/{entry_id}", headers=headers["MANAGER"]).status_code == 204

    statement = client.get(f"{API}/ledger/drivers/{registry.driver_id}", headers=headers["MANAGER"]).json()
    assert statement["balance"] == 0.0
