"""
Unit tests for configuration and error mapping
"""

import pytest


def test_config_defaults():
    """Test that configuration loads correctly"""
    from config.config import (
        MIGRATION_CODE_TTL_SECONDS,
        MIGRATION_CODE_MAX_ATTEMPTS,
        STREAK_HISTORY_SIZE,
        POINTS_PER_CHECK_IN,
        EXPECTED_GENDER,
    )

    assert MIGRATION_CODE_TTL_SECONDS == 300
    assert MIGRATION_CODE_MAX_ATTEMPTS == 10
    assert STREAK_HISTORY_SIZE == 7
    assert POINTS_PER_CHECK_IN == 1
    assert EXPECTED_GENDER == "F"


def test_invariant_constants_ignore_environment(monkeypatch):
    import importlib

    import config.config as cfg

    monkeypatch.setenv("STREAK_HISTORY_SIZE", "3")
    monkeypatch.setenv("MIGRATION_CODE_TTL_SECONDS", "60")
    monkeypatch.setenv("POINTS_PER_CHECK_IN", "5")
    monkeypatch.setenv("MIGRATION_CODE_MAX_ATTEMPTS", "50")
    reloaded = importlib.reload(cfg)

    assert reloaded.STREAK_HISTORY_SIZE == 7
    assert reloaded.MIGRATION_CODE_TTL_SECONDS == 300
    assert reloaded.POINTS_PER_CHECK_IN == 1
    assert reloaded.MIGRATION_CODE_MAX_ATTEMPTS == 10


def test_validate_config_requires_jwt_secret(monkeypatch):
    import config.config as cfg

    monkeypatch.setattr(cfg, "JWT_SECRET", "")
    with pytest.raises(ValueError, match="JWT_SECRET is required"):
        cfg.validate_config()

    monkeypatch.setattr(cfg, "JWT_SECRET", "secret")
    assert cfg.validate_config() is True


def test_validate_bot_config_requires_token(monkeypatch):
    import config.config as cfg

    monkeypatch.setattr(cfg, "JWT_SECRET", "secret")
    monkeypatch.setattr(cfg, "BOT_TOKEN", "")
    with pytest.raises(ValueError, match="BOT_TOKEN is required"):
        cfg.validate_bot_config()


def test_error_kinds_map_to_status():
    from astra.api.errors import status_for
    from astra.core.exceptions import (
        CodeExpiredError,
        CodeGenerationExhaustedError,
        ConflictingLinkError,
        InvalidResponseError,
        InvalidTokenError,
        NotInvitedError,
        NotOwnerError,
        PasswordTooLongError,
        ProofRejectedError,
        UserNotFoundError,
        VerifierUnavailableError,
    )

    assert status_for(InvalidResponseError()) == 400
    assert status_for(PasswordTooLongError()) == 400
    assert status_for(InvalidTokenError()) == 401
    assert status_for(NotOwnerError()) == 403
    assert status_for(NotInvitedError()) == 403
    assert status_for(UserNotFoundError()) == 404
    assert status_for(ConflictingLinkError()) == 409
    assert status_for(CodeExpiredError()) == 410
    assert status_for(ProofRejectedError()) == 400
    assert status_for(VerifierUnavailableError()) == 503
    assert status_for(CodeGenerationExhaustedError()) == 503


def test_error_payload():
    from astra.core.exceptions import CodeNotFoundError

    error = CodeNotFoundError(code="123456")

    assert error.to_dict() == {
        "error": "Invalid code",
        "kind": "not_found",
        "details": {"code": "123456"},
    }


def test_sentry_drops_expected_errors():
    from config.sentry import before_send_hook
    from astra.core.exceptions import DuplicateCheckInError

    error = DuplicateCheckInError()
    event = {"exception": {}}
    hint = {"exc_info": (type(error), error, None)}

    assert before_send_hook(event, hint) is None


def test_sentry_filters_credentials():
    from config.sentry import before_send_hook

    event = {
        "request": {
            "headers": {"Authorization": "Bearer abc", "Accept": "*/*"},
            "data": {"password": "hunter22", "email": "a@example.com"},
        }
    }

    filtered = before_send_hook(event, {})

    assert filtered["request"]["headers"]["Authorization"] == "[Filtered]"
    assert filtered["request"]["headers"]["Accept"] == "*/*"
    assert filtered["request"]["data"]["password"] == "[Filtered]"


def test_log_redaction():
    from config.logging import redact

    assert redact("login failed for ann@example.com") == "login failed for [email]"
    assert redact("header Bearer eyJ.abc-1") == "header Bearer [redacted]"
    assert redact("user 3fa2c1 checked in") == "user 3fa2c1 checked in"
