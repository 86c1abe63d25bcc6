import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from app.api.deps import require_roles
from app.core.exceptions import APIError, InsufficientPermissions, InvalidRoleSpec, Unauthenticated
from app.core.roles import authorize, parse_role_spec
from app.main import api_error_handler, app as main_app
from app.models.user import User, UserRole


def _principal(role: UserRole) -> User:
    return User(name="Someone", email=f"{role.value}@example.com", role=role)


def test_parse_role_spec_drops_unknown_tokens():
    assert parse_role_spec("seller| admin |owner") == [UserRole.SELLER, UserRole.ADMIN]
    assert parse_role_spec("seller|seller") == [UserRole.SELLER]
    assert parse_role_spec("nobody") == []


def test_authorize_without_principal():
    with pytest.raises(Unauthenticated) as exc_info:
        authorize(None, "admin")

    assert exc_info.value.status_code == 401
    assert exc_info.value.code == "UNAUTHENTICATED"


def test_authorize_single_invalid_role():
    with pytest.raises(InvalidRoleSpec) as exc_info:
        authorize(_principal(UserRole.ADMIN), "owner")

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "INVALID_ROLE"
    assert exc_info.value.message == "Invalid role specified"


def test_authorize_all_invalid_roles():
    with pytest.raises(InvalidRoleSpec) as exc_info:
        authorize(_principal(UserRole.ADMIN), "owner|guest")

    assert exc_info.value.code == "INVALID_ROLES"
    assert exc_info.value.message == "Invalid roles specified"


def test_authorize_wrong_single_role():
    with pytest.raises(InsufficientPermissions) as exc_info:
        authorize(_principal(UserRole.SELLER), "admin")

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "Insufficient permissions. Required role: Administrator"


def test_authorize_wrong_role_among_several():
    with pytest.raises(InsufficientPermissions) as exc_info:
        authorize(_principal(UserRole.CLIENT), "seller|admin")

    assert exc_info.value.message == "Insufficient permissions. Required one of: Shop, Administrator"


def test_authorize_ignores_unknown_tokens_next_to_valid_ones():
    seller = _principal(UserRole.SELLER)

    assert authorize(seller, "seller|owner") is seller


def test_authorize_returns_principal():
    admin = _principal(UserRole.ADMIN)

    assert authorize(admin, "seller|admin") is admin


@pytest.fixture()
def guarded_client(client):
    # Separate app sharing the db override, so the guard can be mounted with any spec.
    guarded_app = FastAPI()
    guarded_app.dependency_overrides = main_app.dependency_overrides
    guarded_app.add_exception_handler(APIError, api_error_handler)

    @guarded_app.get("/bad-spec")
    def bad_spec(user: User = Depends(require_roles("owner"))):
        return {"id": str(user.id)}

    @guarded_app.get("/clients-only")
    def clients_only(user: User = Depends(require_roles("client"))):
        return {"id": str(user.id)}

    with TestClient(guarded_app) as test_client:
        yield test_client


def test_guard_bad_spec_is_400(guarded_client, admin_headers):
    response = guarded_client.get("/bad-spec", headers=admin_headers)

    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert payload["code"] == "INVALID_ROLE"


def test_guard_without_token_is_401(guarded_client):
    response = guarded_client.get("/clients-only")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_guard_passes_matching_role(guarded_client, client_user, client_headers):
    response = guarded_client.get("/clients-only", headers=client_headers)

    assert response.status_code == 200
    assert response.json() == {"id": str(client_user.id)}
