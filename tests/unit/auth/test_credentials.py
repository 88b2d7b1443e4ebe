"""Tests for multi-source settings resolution.

This module tests the CredentialResolver class which resolves VMS connection
settings from explicit values, ``VMS_*`` environment variables, .env files
and credential files.
"""

import logging
import os

import pytest

from vms_client_core.auth import CredentialResolver
from vms_client_core.auth.exceptions import CredentialFileError, CredentialNotFoundError


class TestCredentialResolverInit:
    """Test CredentialResolver initialization."""

    def test_init_default(self):
        """Test default initialization."""
        resolver = CredentialResolver()
        assert resolver.prefix == "VMS_"
        assert resolver._dotenv_loaded  # Should load dotenv by default

    def test_init_skip_dotenv(self):
        """Test initialization with dotenv loading disabled."""
        resolver = CredentialResolver(load_dotenv=False)
        assert not resolver._dotenv_loaded

    def test_env_var_uses_prefix(self):
        """Test that setting names are prefixed."""
        assert CredentialResolver(load_dotenv=False).env_var("HOST") == "VMS_HOST"
        assert CredentialResolver(prefix="TEST_", load_dotenv=False).env_var("HOST") == "TEST_HOST"


class TestCredentialResolverResolve:
    """Test basic setting resolution."""

    def test_resolve_from_explicit_value(self):
        """Test resolving from explicitly provided value (highest priority)."""
        resolver = CredentialResolver(load_dotenv=False)
        assert resolver.resolve("PASSWORD", value="explicit-value-123") == "explicit-value-123"

    def test_resolve_from_environment_variable(self, monkeypatch):
        """Test resolving from environment variable."""
        monkeypatch.setenv("VMS_HOST", "vms.example.com")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve("HOST") == "vms.example.com"

    def test_resolve_from_dotenv_file(self, tmp_path, monkeypatch):
        """Test resolving from .env file."""
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text("TEST_DOTENV_HOST=dotenv-host\n")
        monkeypatch.delenv("TEST_DOTENV_HOST", raising=False)

        resolver = CredentialResolver(prefix="TEST_", dotenv_path=str(dotenv_file))
        try:
            assert resolver.resolve("DOTENV_HOST") == "dotenv-host"
        finally:
            os.environ.pop("TEST_DOTENV_HOST", None)

    def test_resolve_returns_none_when_not_found(self):
        """Test that resolve returns None when nothing is set and not required."""
        resolver = CredentialResolver(load_dotenv=False)
        assert resolver.resolve("NONEXISTENT") is None

    def test_resolve_raises_when_required_and_not_found(self):
        """Test that resolve raises error when required=True and not found."""
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialNotFoundError) as exc_info:
            resolver.resolve("HOST", required=True)

        assert "Required setting not found" in str(exc_info.value)
        assert exc_info.value.env_var_name == "VMS_HOST"


class TestCredentialResolverPriority:
    """Test resolution priority ordering."""

    def test_explicit_value_overrides_all(self, monkeypatch):
        """Test that explicit value takes priority over everything."""
        monkeypatch.setenv("VMS_USERNAME", "env-user")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve("USERNAME", value="explicit-user", default="default-user") == "explicit-user"

    def test_environment_overrides_default(self, monkeypatch):
        """Test that environment variable takes priority over default."""
        monkeypatch.setenv("VMS_USERNAME", "env-user")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve("USERNAME", default="default-user") == "env-user"

    def test_default_used_when_nothing_else_set(self):
        """Test that default is used when no other source provides value."""
        resolver = CredentialResolver(load_dotenv=False)
        assert resolver.resolve("USERNAME", default="admin") == "admin"


class TestTypedResolution:
    """Test integer and boolean settings."""

    def test_resolve_int(self, monkeypatch):
        monkeypatch.setenv("VMS_PORT", "8443")
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_int("PORT") == 8443
        assert resolver.resolve_int("PORT", value=9443) == 9443
        assert resolver.resolve_int("TIMEOUT", default=30) == 30

    def test_resolve_int_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("VMS_PORT", "https")
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialNotFoundError, match="must be an integer"):
            resolver.resolve_int("PORT")

    @pytest.mark.parametrize(
        "raw,expected",
        [("1", True), ("true", True), ("YES", True), ("on", True), ("0", False), ("false", False), ("off", False)],
    )
    def test_resolve_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("VMS_SSL_VERIFY", raw)
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_bool("SSL_VERIFY", default=not expected) is expected

    def test_resolve_bool_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("VMS_SSL_VERIFY", "maybe")
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialNotFoundError, match="must be a boolean"):
            resolver.resolve_bool("SSL_VERIFY")

    def test_resolve_bool_explicit_and_default(self):
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_bool("SSL_VERIFY", value=False, default=True) is False
        assert resolver.resolve_bool("SSL_VERIFY", default=True) is True


class TestCredentialResolverFromFile:
    """Test file-based credential resolution."""

    def test_resolve_from_file_with_explicit_path(self, tmp_path):
        """Test resolving credential from file with explicit path."""
        cred_file = tmp_path / "api_token.txt"
        cred_file.write_text("  file-token-abc123  \n")

        resolver = CredentialResolver(load_dotenv=False)

        # Should strip whitespace
        assert resolver.resolve_from_file(file_path=str(cred_file)) == "file-token-abc123"

    def test_resolve_from_file_with_env_var_path(self, tmp_path, monkeypatch):
        """Test resolving credential from file path specified in env var."""
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("secret-from-env-path")
        monkeypatch.setenv("VMS_API_TOKEN_FILE", str(cred_file))

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(env_var_name="VMS_API_TOKEN_FILE") == "secret-from-env-path"

    def test_resolve_from_file_with_tilde_expansion(self, tmp_path, monkeypatch):
        """Test file path expansion with ~ (home directory)."""
        fake_home = tmp_path / "home"
        cred_file = fake_home / ".config" / "vms_token"
        cred_file.parent.mkdir(parents=True)
        cred_file.write_text("home-dir-credential")
        monkeypatch.setenv("HOME", str(fake_home))

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(file_path="~/.config/vms_token") == "home-dir-credential"

    def test_resolve_from_file_with_env_var_expansion(self, tmp_path, monkeypatch):
        """Test file path expansion with $VAR environment variables."""
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "vms_token").write_text("env-var-expanded-credential")
        monkeypatch.setenv("CONFIG_DIR", str(config_dir))

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(file_path="$CONFIG_DIR/vms_token") == "env-var-expanded-credential"

    def test_resolve_from_file_returns_none_when_not_found(self):
        """Test that resolve_from_file returns None when file not found and not required."""
        resolver = CredentialResolver(load_dotenv=False)
        assert resolver.resolve_from_file(file_path="/nonexistent/path/to/file.txt") is None

    def test_resolve_from_file_raises_when_required_and_not_found(self):
        """Test that resolve_from_file raises error when file not found and required=True."""
        resolver = CredentialResolver(load_dotenv=False)

        with pytest.raises(CredentialFileError) as exc_info:
            resolver.resolve_from_file(file_path="/nonexistent/path/to/file.txt", required=True)

        assert "not found" in str(exc_info.value)

    def test_resolve_from_file_no_path_provided(self):
        """Test resolve_from_file when no path is provided."""
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file() is None
        with pytest.raises(CredentialFileError, match="No file path provided"):
            resolver.resolve_from_file(required=True)

    def test_resolve_from_file_env_var_not_set(self):
        """Test resolve_from_file when the path variable is not set."""
        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(env_var_name="VMS_API_TOKEN_FILE") is None
        with pytest.raises(CredentialFileError) as exc_info:
            resolver.resolve_from_file(env_var_name="VMS_API_TOKEN_FILE", required=True)
        assert "VMS_API_TOKEN_FILE" in str(exc_info.value)

    def test_resolve_from_file_with_general_read_error(self, tmp_path):
        """Test handling of general read errors."""
        # A directory is not readable as a file
        not_a_file = tmp_path / "dir_not_file"
        not_a_file.mkdir()

        resolver = CredentialResolver(load_dotenv=False)

        assert resolver.resolve_from_file(file_path=str(not_a_file)) is None
        with pytest.raises(CredentialFileError):
            resolver.resolve_from_file(file_path=str(not_a_file), required=True)


class TestCredentialMasking:
    """Test credential masking in logs."""

    def test_credential_value_is_masked_in_debug_logs(self, caplog):
        """Test that secret values are masked in log messages."""
        caplog.set_level(logging.DEBUG)

        CredentialResolver(load_dotenv=False).resolve("PASSWORD", value="super-secret-key-123")

        assert "super-secret-key-123" not in caplog.text
        assert "***" in caplog.text

    def test_credential_masking_can_be_disabled(self, caplog):
        """Test that masking can be disabled for non-sensitive values."""
        caplog.set_level(logging.DEBUG)

        CredentialResolver(load_dotenv=False).resolve("HOST", value="vms.example.com", secret=False)

        assert "vms.example.com" in caplog.text

    def test_file_credentials_are_masked(self, tmp_path, caplog):
        """Test that credentials from files are masked in logs."""
        caplog.set_level(logging.DEBUG)
        cred_file = tmp_path / "secret.txt"
        cred_file.write_text("file-secret-xyz")

        CredentialResolver(load_dotenv=False).resolve_from_file(file_path=str(cred_file))

        assert "file-secret-xyz" not in caplog.text
        assert "***" in caplog.text


class TestThreadSafety:
    """Test thread-safe dotenv loading."""

    def test_dotenv_loaded_only_once(self, tmp_path):
        """Test that .env file is loaded only once even with multiple calls."""
        dotenv_file = tmp_path / ".env"
        dotenv_file.write_text("# empty\n")

        resolver = CredentialResolver(dotenv_path=str(dotenv_file))

        resolver._ensure_dotenv_loaded()
        resolver._ensure_dotenv_loaded()

        assert resolver._dotenv_loaded is True
