"""
LoveAlbum Backend — Admin Auth Service Unit Tests
==================================================

What we test:
    ✅ bcrypt hashing and verification (malformed hashes never match)
    ✅ Token round trip, expiry and tampering
    ✅ Login failures share one message; missing credentials are a 400
    ✅ Session verification for missing, invalid and orphaned tokens
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.config import settings
from app.exceptions import AuthenticationError, ValidationError
from app.models.admin import Admin
from app.services.auth_service import AuthService, hash_password, verify_password


def make_admin(password: str = "s3cret-pass") -> Admin:
    return Admin(id=uuid.uuid4(), admin_account="admin", hash_password=hash_password(password))


class TestPasswords:

    def test_hash_is_bcrypt_and_salted(self):
        first = hash_password("hunter22")
        second = hash_password("hunter22")
        assert first.startswith("$2")
        assert first != second

    def test_verify(self):
        hashed = hash_password("hunter22")
        assert verify_password("hunter22", hashed) is True
        assert verify_password("hunter23", hashed) is False

    def test_malformed_hash_never_matches(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestTokens:

    def setup_method(self):
        self.service = AuthService()

    def test_round_trip(self):
        admin = make_admin()
        claims = self.service.decode_token(self.service.create_token(admin))
        assert claims["admin_id"] == str(admin.id)
        assert claims["admin_account"] == "admin"
        assert claims["exp"] - claims["iat"] == settings.jwt_expire_hours * 3600

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "admin_id": str(uuid.uuid4()),
                "admin_account": "admin",
                "iat": int(past.timestamp()),
                "exp": int((past + timedelta(hours=1)).timestamp()),
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError, match="Invalid token"):
            self.service.decode_token(token)

    def test_wrong_secret_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "admin_id": str(uuid.uuid4()),
                "admin_account": "admin",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(hours=1)).timestamp()),
            },
            "some-other-secret-of-decent-length",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            self.service.decode_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            self.service.decode_token("not.a.jwt")


class TestLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_missing_credentials(self, mock_db_session):
        with pytest.raises(ValidationError, match="required"):
            await self.service.login(mock_db_session, "admin", "")
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_account(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(None)
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await self.service.login(mock_db_session, "ghost", "whatever")

    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(make_admin("right-pass"))
        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            await self.service.login(mock_db_session, "admin", "wrong-pass")

    @pytest.mark.asyncio
    async def test_success_sets_last_login_and_issues_token(self, mock_db_session, make_result):
        admin = make_admin("right-pass")
        mock_db_session.execute.return_value = make_result(admin)

        result = await self.service.login(mock_db_session, "admin", "right-pass")

        assert result.admin is admin
        assert admin.last_login is not None
        assert self.service.decode_token(result.token)["admin_id"] == str(admin.id)


class TestVerify:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_no_token(self, mock_db_session):
        with pytest.raises(AuthenticationError, match="No token provided"):
            await self.service.verify(mock_db_session, None)

    @pytest.mark.asyncio
    async def test_admin_deleted_after_login(self, mock_db_session, make_result):
        token = self.service.create_token(make_admin())
        mock_db_session.execute.return_value = make_result(None)
        with pytest.raises(AuthenticationError, match="Invalid token"):
            await self.service.verify(mock_db_session, token)

    @pytest.mark.asyncio
    async def test_valid_session(self, mock_db_session, make_result):
        admin = make_admin()
        mock_db_session.execute.return_value = make_result(admin)
        assert await self.service.verify(mock_db_session, self.service.create_token(admin)) is admin

    @pytest.mark.asyncio
    async def test_ensure_admin_is_idempotent(self, mock_db_session, make_result):
        mock_db_session.execute.return_value = make_result(make_admin())
        assert await self.service.ensure_admin(mock_db_session, "admin", "pw-12345") is False
        mock_db_session.add.assert_not_called()

        mock_db_session.execute.return_value = make_result(None)
        assert await self.service.ensure_admin(mock_db_session, "admin", "pw-12345") is True
        created = mock_db_session.add.call_args[0][0]
        assert verify_password("pw-12345", created.hash_password)
