import pytest

from onnibox.models import UserRole
from onnibox.utils.permissions import Permission, PERMISSION_MATRIX, can, role_label, permissions_for

from .conftest import API


def test_admin_has_every_permission():
    for permission in PERMISSION_MATRIX:
        assert can(UserRole.ADMIN, permission)


@pytest.mark.parametrize("role, permission, expected", [
    (UserRole.MANAGER, Permission.REOPEN_CASH, True),
    (UserRole.FINANCIAL, Permission.REOPEN_CASH, False),
    (UserRole.FINANCIAL, Permission.CLOSE_BOX, True),
    (UserRole.OPERATOR, Permission.VIEW_REPORTS, False),
    (UserRole.OPERATOR, Permission.RECORD_ENTRIES, True),
    (UserRole.AUDITOR, Permission.VIEW_DASHBOARD_FULL, True),
    (UserRole.AUDITOR, Permission.RECORD_ENTRIES, False),
    (UserRole.MANAGER, Permission.EDIT_COMMISSIONS, False),
    (UserRole.MANAGER, Permission.MANAGE_SYSTEM, False),
])
def test_permission_matrix(role, permission, expected):
    assert can(role, permission) is expected


def test_unknown_role_and_missing_user():
    assert can("GUEST", Permission.VIEW_REPORTS) is False
    assert can(None, Permission.VIEW_REPORTS) is False
    assert role_label("GUEST") == "Visitante"
    assert role_label(UserRole.MANAGER) == "Gestor de Frota"


def test_permissions_for_auditor_is_read_only():
    perms = permissions_for(UserRole.AUDITOR)
    assert set(perms) == {Permission.VIEW_DASHBOARD_FULL, Permission.VIEW_REPORTS}


def test_requests_without_token_are_rejected(client):
    response = client.get(f"{API}/route-cash/")
    assert response.status_code == 401


def test_invalid_token_is_rejected(client):
    response = client.get(f"{API}/route-cash/", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_auditor_cannot_record_entries(client, headers, route_cash_payload):
    response = client.post(f"{API}/route-cash/", json=route_cash_payload(), headers=headers["AUDITOR"])
    assert response.status_code == 403


def test_operator_cannot_read_reports_or_audit(client, headers):
    assert client.get(f"{API}/reports", headers=headers["OPERATOR"]).status_code == 403
    assert client.get(f"{API}/audit/", headers=headers["OPERATOR"]).status_code == 403


def test_only_admin_edits_commissions(client, headers, registry):
    payload = {"target_type": "AGENCY", "target_id": registry.plain_agency_id, "percentage": 8}
    assert client.post(f"{API}/commission-rules/", json=payload, headers=headers["MANAGER"]).status_code == 403
    response = client.post(f"{API}/commission-rules/", json=payload, headers=headers["ADMIN"])
    assert response.status_code == 201
    assert response.json()["percentage"] == 8
