import json

import pytest
from pydantic import ValidationError

import acmeauth
from acmeauth.config import FlowSettings


class TestFlowSettings:
    def test_defaults(self):
        """Test default settings values."""
        settings = FlowSettings(authorization_endpoint="https://idp.example/auth")

        assert settings.username == "user1"
        assert settings.timeout == 30.0
        assert settings.login_form_id == "kc-form-login"
        assert settings.challenge_form_id == "kc-totp-login-form"
        assert settings.error_element_id == "kc-error-message"
        assert settings.user_agent == f"acmeauth/{acmeauth.__version__}"
        assert settings.http_timeout().read == 30.0

    @pytest.mark.parametrize(
        "endpoint", ["/auth", "idp.example/auth", "ftp://idp.example/auth"]
    )
    def test_rejects_non_absolute_endpoint(self, endpoint):
        """Test rejects non absolute endpoint."""
        with pytest.raises(ValidationError):
            FlowSettings(authorization_endpoint=endpoint)

    def test_rejects_non_positive_timeout(self):
        """Test rejects non positive timeout."""
        with pytest.raises(ValidationError):
            FlowSettings(authorization_endpoint="https://idp.example/auth", timeout=0)

    def test_rejects_unknown_keys(self):
        """Test rejects unknown keys."""
        with pytest.raises(ValidationError):
            FlowSettings(
                authorization_endpoint="https://idp.example/auth", acct="user1"
            )

    def test_settings_are_immutable(self):
        """Test settings are immutable."""
        settings = FlowSettings(authorization_endpoint="https://idp.example/auth")

        with pytest.raises(ValidationError):
            settings.username = "user2"

    def test_from_file(self, tmp_path):
        """Test from file."""
        # Arrange
        path = tmp_path / "settings.json"
        path.write_text(
            json.dumps(
                {
                    "authorization_endpoint": "https://idp.example/auth",
                    "username": "alice",
                    "timeout": 5,
                }
            )
        )

        # Act
        settings = FlowSettings.from_file(path)

        # Assert
        assert settings.authorization_endpoint == "https://idp.example/auth"
        assert settings.username == "alice"
        assert settings.timeout == 5.0
