"""Tests for actor tokens in CabDispatch."""

import time

import jwt
import pytest

from cabdispatch import config
from cabdispatch.services.identity_service import IdentityService, AuthError, Role


class TestIdentityService:
    """Test class for issuing and verifying tokens."""

    def test_issue_and_verify(self):
        token = IdentityService.issue_token("driver-7", "driver")

        actor = IdentityService.verify_token(token)

        assert actor.user_id == "driver-7"
        assert actor.role == Role.DRIVER

    def test_unknown_role_cannot_be_issued(self):
        with pytest.raises(AuthError):
            IdentityService.issue_token("someone", "passenger")

    def test_expired_token(self):
        token = IdentityService.issue_token("driver-7", "driver", hours=-1)

        with pytest.raises(AuthError) as excinfo:
            IdentityService.verify_token(token)

        assert "expired" in str(excinfo.value).lower()

    def test_lifetime_is_counted_from_the_current_utc_time(self):
        before = int(time.time())
        payload = IdentityService.decode_token(IdentityService.issue_token("driver-7", "driver", hours=2))
        after = int(time.time())

        assert before <= payload["iat"] <= after
        assert payload["exp"] - payload["iat"] == 2 * 3600

    def test_token_signed_with_other_secret(self):
        token = jwt.encode({"user_id": "x", "role": "admin"}, "not-the-secret", algorithm=config.JWT_ALGORITHM)

        with pytest.raises(AuthError):
            IdentityService.verify_token(token)

    def test_token_without_user_id(self):
        token = jwt.encode({"role": "admin"}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)

        with pytest.raises(AuthError):
            IdentityService.verify_token(token)

    def test_require_role(self):
        dispatcher = IdentityService.issue_token("disp-1", "dispatcher")
        driver = IdentityService.issue_token("driver-7", "driver")

        assert IdentityService.require_role(dispatcher, ["dispatcher", "admin"]).user_id == "disp-1"
        with pytest.raises(AuthError):
            IdentityService.require_role(driver, ["dispatcher", "admin"])
