"""Tests for credential and authentication exceptions."""

import pytest

from vms_client_core.auth.exceptions import (
    AuthenticationError,
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
)


class TestCredentialError:
    """Test CredentialError base exception."""

    def test_can_be_raised(self):
        """Test that CredentialError can be raised."""
        with pytest.raises(CredentialError):
            raise CredentialError("Test error")

    def test_exception_message(self):
        """Test that exception message is preserved."""
        try:
            raise CredentialError("Custom error message")
        except CredentialError as e:
            assert str(e) == "Custom error message"


class TestCredentialNotFoundError:
    """Test CredentialNotFoundError exception."""

    def test_is_credential_error(self):
        """Test that CredentialNotFoundError is a CredentialError."""
        with pytest.raises(CredentialError):
            raise CredentialNotFoundError("Test error")

    def test_env_var_name_attribute(self):
        """Test that the checked environment variable is kept."""
        error = CredentialNotFoundError("missing", env_var_name="VMS_HOST")
        assert error.env_var_name == "VMS_HOST"


class TestCredentialFileError:
    """Test CredentialFileError exception."""

    def test_is_credential_error(self):
        """Test that CredentialFileError is a CredentialError."""
        with pytest.raises(CredentialError):
            raise CredentialFileError("File not found")


class TestAuthenticationError:
    """Test AuthenticationError exception."""

    def test_attributes(self):
        """Test that url, status code and body are kept."""
        error = AuthenticationError(
            "login rejected",
            url="https://vms.test:443/api/token/",
            status_code=401,
            body='{"detail": "bad credentials"}',
        )

        assert str(error) == "login rejected"
        assert error.url == "https://vms.test:443/api/token/"
        assert error.status_code == 401
        assert "bad credentials" in error.body

    def test_defaults(self):
        """Test that an unreachable endpoint reports status 0."""
        error = AuthenticationError("unreachable")
        assert error.status_code == 0
        assert error.body == ""
