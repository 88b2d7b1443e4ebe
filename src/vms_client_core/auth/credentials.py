"""Multi-source resolution of VMS connection settings and credentials.

Resolution order (highest to lowest priority):
1. Explicitly provided value
2. Environment variable (``<prefix><NAME>``, e.g. ``VMS_PASSWORD``)
3. .env file (python-dotenv, loaded into the environment once)
4. Default value

Example:
    ```python
    from vms_client_core.auth import CredentialResolver

    resolver = CredentialResolver()
    host = resolver.resolve("HOST", required=True)
    token = resolver.resolve_from_file(env_var_name="VMS_API_TOKEN_FILE")
    ```

Secrets are masked as ``***`` whenever they reach a log line, and values read
from files are stripped of surrounding whitespace. The .env file is loaded at
most once per resolver, guarded by a lock.
"""

import logging
import os
from pathlib import Path
from threading import Lock

from dotenv import load_dotenv

from vms_client_core.auth.exceptions import CredentialFileError, CredentialNotFoundError

logger = logging.getLogger(__name__)

ENV_PREFIX = "VMS_"

_TRUE_VALUES = frozenset(["1", "true", "yes", "on"])
_FALSE_VALUES = frozenset(["0", "false", "no", "off"])


class CredentialResolver:
    """Resolve connection settings from explicit values, the environment and .env files.

    Attributes:
        prefix: Prefix prepended to every variable name passed to ``resolve``.
    """

    def __init__(self, prefix: str = ENV_PREFIX, dotenv_path: str | None = None, load_dotenv: bool = True):
        """Initialize credential resolver.

        Args:
            prefix: Environment variable prefix (default ``VMS_``).
            dotenv_path: Path to .env file. If None, python-dotenv searches
                parent directories.
            load_dotenv: Whether to load the .env file at all.
        """
        self.prefix = prefix
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path

        if load_dotenv:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                logger.debug("Loaded .env file for VMS settings")
            except OSError as e:
                logger.warning(f"Failed to load .env file: {e}")
            self._dotenv_loaded = True

    def env_var(self, name: str) -> str:
        """Full environment variable name for a setting name."""
        return f"{self.prefix}{name}"

    def resolve(
        self,
        name: str,
        *,
        value: str | None = None,
        default: str | None = None,
        required: bool = False,
        secret: bool = True,
    ) -> str | None:
        """Resolve a single setting.

        Args:
            name: Setting name without prefix (``"HOST"`` checks ``VMS_HOST``).
            value: Explicit value; wins over every other source.
            default: Fallback when nothing else is set.
            required: Raise CredentialNotFoundError when unresolved.
            secret: Mask the value in log messages.

        Returns:
            The resolved value, or None.
        """
        env_var_name = self.env_var(name)
        result = None
        source = None

        if value is not None:
            result = value
            source = "explicit parameter"
        elif env_var_name in os.environ:
            result = os.environ[env_var_name]
            source = f"environment variable '{env_var_name}'"
        elif default is not None:
            result = default
            source = "default value"

        if result is not None:
            shown = "***" if secret else result
            logger.debug(f"Resolved {name.lower()} from {source}: {shown}")

        if required and result is None:
            raise CredentialNotFoundError(
                f"Required setting not found (checked env var: {env_var_name})",
                env_var_name=env_var_name,
            )
        return result

    def resolve_int(self, name: str, *, value: int | None = None, default: int | None = None) -> int | None:
        raw = self.resolve(name, value=None if value is None else str(value), secret=False)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            raise CredentialNotFoundError(
                f"Setting {self.env_var(name)} must be an integer, got {raw!r}",
                env_var_name=self.env_var(name),
            ) from None

    def resolve_bool(self, name: str, *, value: bool | None = None, default: bool = False) -> bool:
        if value is not None:
            return value
        raw = self.resolve(name, secret=False)
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise CredentialNotFoundError(
            f"Setting {self.env_var(name)} must be a boolean, got {raw!r}",
            env_var_name=self.env_var(name),
        )

    def resolve_from_file(
        self,
        *,
        file_path: str | Path | None = None,
        env_var_name: str | None = None,
        required: bool = False,
    ) -> str | None:
        """Read a credential (typically an API token) from a file.

        Args:
            file_path: Path to the file; supports ``~`` and ``$VAR`` expansion.
            env_var_name: Environment variable holding the path, used when
                ``file_path`` is None.
            required: Raise CredentialFileError when the file cannot be read.

        Returns:
            File contents stripped of whitespace, or None.
        """
        if file_path is None and env_var_name:
            file_path = os.environ.get(env_var_name) or None
        if file_path is None:
            if not required:
                return None
            where = f" (env var '{env_var_name}' not set)" if env_var_name else ""
            raise CredentialFileError(f"No file path provided for credential resolution{where}")

        token_path = Path(os.path.expandvars(str(file_path))).expanduser()
        try:
            secret = token_path.read_text().strip()
        except OSError as e:
            if isinstance(e, FileNotFoundError):
                problem, level = f"Credential file not found: {token_path}", logging.DEBUG
            elif isinstance(e, PermissionError):
                problem, level = f"Permission denied reading credential file: {token_path}", logging.WARNING
            else:
                problem, level = f"Error reading credential file {token_path}: {e}", logging.WARNING
            if required:
                raise CredentialFileError(problem) from e
            logger.log(level, problem)
            return None

        logger.debug(f"Resolved credential from file: {token_path} (***)")
        return secret
