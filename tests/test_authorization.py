import pytest

from backend.app.services.exports.authorization import (
    ANONYMOUS,
    EXPORT_ROLES,
    Principal,
    is_export_allowed,
    principal_from_claims,
)


@pytest.mark.parametrize("roles", [
    {"administrator"},
    {"gestor"},
    {"authenticated", "gestor"},
    ["administrator", "gestor"],
])
def test_export_roles_are_allowed(roles):
    assert is_export_allowed(roles) is True


@pytest.mark.parametrize("roles", [
    set(),
    {"authenticated"},
    {"admin"},
    {"Administrator"},
    {"editor", "user"},
])
def test_other_roles_are_refused(roles):
    assert is_export_allowed(roles) is False


def test_custom_allowed_roles():
    assert is_export_allowed({"auditor"}, allowed_roles={"auditor"}) is True
    assert is_export_allowed({"gestor"}, allowed_roles={"auditor"}) is False


def test_default_roles():
    assert EXPORT_ROLES == frozenset({"administrator", "gestor"})


def test_principal_from_roles_claim():
    principal = principal_from_claims({"sub": 42, "roles": ["gestor", "authenticated"]})
    assert principal == Principal(user_id="42", roles=frozenset({"gestor", "authenticated"}))


def test_principal_from_single_role_claim():
    principal = principal_from_claims({"sub": "u-1", "role": "administrator"})
    assert principal.roles == frozenset({"administrator"})
    assert not principal.is_anonymous


def test_principal_without_claims_is_anonymous():
    assert principal_from_claims(None) is ANONYMOUS
    assert principal_from_claims({}) is ANONYMOUS
    assert ANONYMOUS.is_anonymous
    assert is_export_allowed(ANONYMOUS.roles) is False
