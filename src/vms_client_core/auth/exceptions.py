"""Exceptions for credential resolution and authentication.

Example:
    ```python
    from vms_client_core.auth.exceptions import AuthenticationError

    try:
        await authorizer.authorize()
    except AuthenticationError as e:
        print(f"login failed with HTTP {e.status_code}")
    ```
"""

from vms_client_core.errors.exceptions import VMSClientError


class CredentialError(VMSClientError):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class CredentialNotFoundError(CredentialError):
    """Raised when a required credential cannot be resolved.

    Attributes:
        env_var_name: The environment variable name that was checked (if any).
    """

    def __init__(self, message: str, env_var_name: str | None = None):
        super().__init__(message)
        self.env_var_name = env_var_name


class CredentialFileError(CredentialError):
    """Raised when a credential file (e.g. an API token file) cannot be read."""

    pass


class AuthenticationError(CredentialError):
    """Raised when the token login or token refresh call is rejected.

    Attributes:
        url: Token endpoint that was called.
        status_code: HTTP status returned by the endpoint (0 when unreachable).
        body: Response body text.
    """

    def __init__(self, message: str, url: str = "", status_code: int = 0, body: str = ""):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body
