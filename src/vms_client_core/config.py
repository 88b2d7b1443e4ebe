"""Client configuration.

``VMSConfig`` collects connection coordinates, credentials and the three
optional hook functions. ``validate()`` fills in defaults and rejects
configurations that cannot possibly work; ``from_env()`` builds one from the
environment and ``.env`` files.

Example:
    ```python
    config = VMSConfig(host="vms.example.com", username="admin", password="secret")
    config.validate()

    # or, from VMS_* environment variables
    config = VMSConfig.from_env(ssl_verify=False)
    ```
"""

import platform
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from typing import Any

from vms_client_core._version import __version__
from vms_client_core.auth.credentials import CredentialResolver
from vms_client_core.errors.exceptions import ValidationError

DEFAULT_PORT = 443
DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_API_VERSION = "v5"

ConfigValidator = Callable[["VMSConfig"], None]


def default_user_agent() -> str:
    return f"vms-client-core/{__version__} ({platform.system().lower()}; {platform.machine().lower()})"


@dataclass
class VMSConfig:
    """Configuration required to open a VMS session.

    Attributes:
        host: Hostname or IP address of the VMS.
        port: HTTPS port.
        username: Username for bearer-token login (used with ``password``).
        password: Password for bearer-token login.
        api_token: Static API token; wins over username/password when both are set.
        tenant: Tenant name sent as ``X-Tenant-Name``.
        ssl_verify: Whether to verify TLS certificates.
        timeout: Per-request timeout in seconds.
        max_connections: Connection pool size.
        user_agent: ``User-Agent`` header value.
        api_version: Default API version (``/api/<api_version>/...``).
        page_size: Default ``page_size`` query parameter for paginated iteration;
            0 leaves it to the server.
        before_request_fn: Global hook run before every request.
        after_request_fn: Global hook run after every response.
        fill_fn: Replacement for the default Record-to-object projection.
    """

    host: str = ""
    port: int = 0
    username: str | None = None
    password: str | None = None
    api_token: str | None = None
    tenant: str | None = None
    ssl_verify: bool = True
    timeout: float | None = None
    max_connections: int = 0
    user_agent: str = ""
    api_version: str = ""
    page_size: int = 0
    before_request_fn: Callable[..., Any] | None = field(default=None, repr=False)
    after_request_fn: Callable[..., Any] | None = field(default=None, repr=False)
    fill_fn: Callable[..., Any] | None = field(default=None, repr=False)

    def __repr__(self) -> str:
        # Credentials never show up in logs or tracebacks.
        shown = []
        for f in fields(self):
            if not f.repr:
                continue
            value = getattr(self, f.name)
            if f.name in ("password", "api_token") and value:
                value = "***"
            shown.append(f"{f.name}={value!r}")
        return f"VMSConfig({', '.join(shown)})"

    def validate(self, *validators: ConfigValidator) -> "VMSConfig":
        """Apply ``validators`` in order (the default set when none are given).

        Raises:
            ValidationError: If a validator rejects the configuration.
        """
        for validator in validators or DEFAULT_VALIDATORS:
            validator(self)
        return self

    @classmethod
    def from_env(cls, resolver: CredentialResolver | None = None, **overrides: Any) -> "VMSConfig":
        """Build a configuration from ``VMS_*`` variables; ``overrides`` win over the environment."""
        resolver = resolver or CredentialResolver()
        api_token = resolver.resolve("API_TOKEN", value=overrides.pop("api_token", None))
        if api_token is None:
            api_token = resolver.resolve_from_file(env_var_name=resolver.env_var("API_TOKEN_FILE"))

        return cls(
            host=resolver.resolve("HOST", value=overrides.pop("host", None), default="", secret=False),
            port=resolver.resolve_int("PORT", value=overrides.pop("port", None), default=0),
            username=resolver.resolve("USERNAME", value=overrides.pop("username", None), secret=False),
            password=resolver.resolve("PASSWORD", value=overrides.pop("password", None)),
            api_token=api_token,
            tenant=resolver.resolve("TENANT", value=overrides.pop("tenant", None), secret=False),
            ssl_verify=resolver.resolve_bool("SSL_VERIFY", value=overrides.pop("ssl_verify", None), default=True),
            api_version=resolver.resolve(
                "API_VERSION", value=overrides.pop("api_version", None), default="", secret=False
            ),
            page_size=resolver.resolve_int("PAGE_SIZE", value=overrides.pop("page_size", None), default=0) or 0,
            **overrides,
        )


def with_host(config: VMSConfig) -> None:
    if not config.host:
        raise ValidationError("host cannot be empty string")


def with_port(default_port: int = DEFAULT_PORT) -> ConfigValidator:
    def validator(config: VMSConfig) -> None:
        if not config.port:
            config.port = default_port
        if not 0 < config.port < 65536:
            raise ValidationError(f"port must be between 1 and 65535, got {config.port}")

    return validator


def with_auth(config: VMSConfig) -> None:
    has_user_pass = bool(config.username and config.password)
    if not has_user_pass and not config.api_token:
        raise ValidationError("either username/password or api token must be provided")


def with_timeout(default_timeout: float = DEFAULT_TIMEOUT) -> ConfigValidator:
    def validator(config: VMSConfig) -> None:
        if config.timeout is None:
            config.timeout = default_timeout
        elif config.timeout <= 0:
            raise ValidationError(f"timeout must be positive, got {config.timeout}")

    return validator


def with_max_connections(default_max: int = DEFAULT_MAX_CONNECTIONS) -> ConfigValidator:
    def validator(config: VMSConfig) -> None:
        if not config.max_connections:
            config.max_connections = default_max

    return validator


def with_page_size(config: VMSConfig) -> None:
    if config.page_size < 0:
        raise ValidationError(f"page_size cannot be negative, got {config.page_size}")


def with_user_agent(config: VMSConfig) -> None:
    if not config.user_agent:
        config.user_agent = default_user_agent()


def with_api_version(default_version: str = DEFAULT_API_VERSION) -> ConfigValidator:
    def validator(config: VMSConfig) -> None:
        if not config.api_version:
            config.api_version = default_version

    return validator


DEFAULT_VALIDATORS: tuple[ConfigValidator, ...] = (
    with_host,
    with_port(),
    with_auth,
    with_timeout(),
    with_max_connections(),
    with_page_size,
    with_user_agent,
    with_api_version(),
)
