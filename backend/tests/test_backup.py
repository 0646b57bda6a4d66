import json

from onnibox.models import Driver, User
from onnibox.services.backup import TABLE_ORDER, write_backup_file, read_backup_file

from .conftest import API


def test_export_contains_every_table(client, headers, registry):
    body = client.get(f"{API}/backup/export", headers=headers["ADMIN"]).json()
    assert body["app"] == "OnniBox"
    assert list(body["tables"]) == TABLE_ORDER
    assert [v["plate"] for v in body["tables"]["vehicles"]] == ["ABC-1234", "XYZ-9876"]


def test_reset_then_import_restores_data(client, headers, route_cash_payload, db_session):
    client.post(f"{API}/route-cash/", json=route_cash_payload(), headers=headers["OPERATOR"])
    dump = client.get(f"{API}/backup/export", headers=headers["ADMIN"]).json()

    reset = client.post(f"{API}/backup/reset", headers=headers["ADMIN"])
    assert reset.status_code == 200
    assert client.get(f"{API}/drivers/", headers=headers["ADMIN"]).json() == []
    assert client.get(f"{API}/users/", headers=headers["ADMIN"]).status_code == 200

    response = client.post(f"{API}/backup/import", json=dump, headers=headers["ADMIN"])
    assert response.status_code == 200
    assert response.json()["imported"]["route_cash"] == 1

    rows = client.get(f"{API}/route-cash/", headers=headers["ADMIN"]).json()
    assert rows["summary"]["diff"] == -10.0
    db_session.expire_all()
    assert db_session.query(User).count() == 5


def test_import_rejects_unknown_tables_without_touching_data(client, headers, registry, db_session):
    dump = client.get(f"{API}/backup/export", headers=headers["ADMIN"]).json()
    dump["tables"]["spaceships"] = []

    response = client.post(f"{API}/backup/import", json=dump, headers=headers["ADMIN"])
    assert response.status_code == 400
    db_session.expire_all()
    assert db_session.query(Driver).count() == 1


def test_import_rejects_unknown_columns(client, headers, registry, db_session):
    dump = client.get(f"{API}/backup/export", headers=headers["ADMIN"]).json()
    dump["tables"]["drivers"][0]["favourite_colour"] = "blue"

    response = client.post(f"{API}/backup/import", json=dump, headers=headers["ADMIN"])
    assert response.status_code == 400
    assert "favourite_colour" in response.json()["detail"]
    db_session.expire_all()
    assert db_session.query(Driver).count() == 1


def test_import_requires_an_active_admin(client, headers):
    dump = client.get(f"{API}/backup/export", headers=headers["ADMIN"]).json()
    dump["tables"]["users"] = [u for u in dump["tables"]["users"] if u["role"] != "ADMIN"]

    response = client.post(f"{API}/backup/import", json=dump, headers=headers["ADMIN"])
    assert response.status_code == 400


def test_malformed_payload(client, headers):
    response = client.post(f"{API}/backup/import", json={"drivers": []}, headers=headers["ADMIN"])
    assert response.status_code == 400


def test_backup_is_admin_only(client, headers):
    assert client.get(f"{API}/backup/export", headers=headers["MANAGER"]).status_code == 403
    assert client.post(f"{API}/backup/reset", headers=headers["MANAGER"]).status_code == 403


def test_backup_file_round_trip(db_session, registry, tmp_path):
    path = write_backup_file(db_session, directory=tmp_path, label="manual")
    assert path.parent == tmp_path
    data = read_backup_file(path)
    assert data["tables"]["drivers"][0]["name"] == "João Silva"
    assert json.loads(path.read_text(encoding="utf-8"))["version"] == data["version"]


def test_import_rejects_bad_dates_without_touching_data(client, headers, registry, db_session):
    payload = {"tables": {"drivers": [{"id": 1, "name": "X", "admission_date": "not-a-date"}]}}

    response = client.post(f"{API}/backup/import", json=payload, headers=headers["ADMIN"])
    assert response.status_code == 400
    assert "drivers.admission_date" in response.json()["detail"]
    db_session.expire_all()
    assert db_session.query(Driver).one().name == "João Silva"


def test_import_rejects_rows_the_database_refuses(client, headers, registry, db_session):
    payload = {"tables": {"drivers": [{"id": 1, "name": None}]}}

    response = client.post(f"{API}/backup/import", json=payload, headers=headers["ADMIN"])
    assert response.status_code == 400
    assert "drivers" in response.json()["detail"]
    db_session.expire_all()
    assert db_session.query(Driver).one().name == "João Silva"


def test_import_rejects_tables_that_are_not_lists(client, headers):
    response = client.post(f"{API}/backup/import", json={"tables": {"users": 5}}, headers=headers["ADMIN"])
    assert response.status_code == 400
