import time
from datetime import timedelta

import pytest
from jose import jwt

from auth import IdentityService
from config import Settings
from errors import AuthError
from schemas import User


@pytest.fixture
def service(settings):
    return IdentityService(settings)


USER = User(id=5, name="Alice", email="a@x.com")


def test_password_hash_round_trip(service):
    hashed = service.hash_password("pw123")

    assert hashed != "pw123"
    assert service.verify_password("pw123", hashed)
    assert not service.verify_password("pw124", hashed)


def test_token_carries_identity(service):
    identity = service.decode_token(service.create_access_token(USER))

    assert (identity.id, identity.email, identity.name) == (5, "a@x.com", "Alice")


def test_token_expires_after_seven_days_by_default(service, settings):
    claims = jwt.get_unverified_claims(service.create_access_token(USER))
    remaining = claims["exp"] - int(time.time())

    assert settings.access_token_expire_minutes == 60 * 24 * 7
    assert 7 * 86400 - 60 <= remaining <= 7 * 86400


def test_expired_token_rejected(service):
    token = service.create_access_token(USER, expires_delta=timedelta(seconds=-1))
    with pytest.raises(AuthError):
        service.decode_token(token)


def test_token_signed_with_other_key_rejected(service):
    other = IdentityService(Settings(jwt_secret="someone-else", bcrypt_rounds=4))
    with pytest.raises(AuthError):
        service.decode_token(other.create_access_token(USER))


def test_token_missing_claims_rejected(service, settings):
    token = jwt.encode({"email": "a@x.com"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    with pytest.raises(AuthError):
        service.decode_token(token)


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer"])
def test_header_without_bearer_token_rejected(service, header):
    with pytest.raises(AuthError):
        service.identity_from_header(header)
