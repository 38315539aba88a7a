"""Unit tests for bearer token verification."""

import uuid
from datetime import timedelta

from jose import jwt

from furioza.kernel.identity.jwt import JWTManager

SECRET = "unit-test-secret-key-0123456789abcdef"


class TestJWTManager:
    def setup_method(self):
        self.manager = JWTManager(secret_key=SECRET, algorithm="HS256", access_token_expire_minutes=5)

    def test_round_trip(self):
        user_id = uuid.uuid4()
        token, expires, jti = self.manager.create_access_token(user_id)
        payload = self.manager.verify_access_token(token)
        assert payload is not None
        assert payload.sub == str(user_id)
        assert payload.jti == jti

    def test_expired_token_rejected(self):
        token, _, _ = self.manager.create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-5))
        assert self.manager.verify_access_token(token) is None

    def test_wrong_secret_rejected(self):
        token, _, _ = self.manager.create_access_token(uuid.uuid4())
        other = JWTManager(secret_key="another-secret-key-0123456789abcdef")
        assert other.verify_access_token(token) is None

    def test_non_access_token_rejected(self):
        token = jwt.encode({"sub": str(uuid.uuid4()), "type": "refresh"}, SECRET, algorithm="HS256")
        assert self.manager.verify_access_token(token) is None

    def test_garbage_rejected(self):
        assert self.manager.verify_access_token("not-a-token") is None
