"""Authentication components for the VMS client.

This module provides:
- Multi-source resolution of connection settings (value → env → .env → default)
- Bearer-token and static API-token authorizers
- A registry that shares one authorizer per distinct credential set

Example:
    ```python
    from vms_client_core.auth import CredentialResolver, default_registry

    resolver = CredentialResolver()
    host = resolver.resolve("HOST", required=True, secret=False)
    authorizer = default_registry.resolve(config)
    ```
"""

from vms_client_core.auth.authorizers import (
    ApiTokenAuthorizer,
    Authorizer,
    AuthorizerRegistry,
    BearerToken,
    BearerTokenAuthorizer,
    build_authorizer,
    default_registry,
)
from vms_client_core.auth.credentials import CredentialResolver
from vms_client_core.auth.exceptions import (
    AuthenticationError,
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
)

__all__ = [
    "ApiTokenAuthorizer",
    "AuthenticationError",
    "Authorizer",
    "AuthorizerRegistry",
    "BearerToken",
    "BearerTokenAuthorizer",
    "CredentialError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "CredentialResolver",
    "build_authorizer",
    "default_registry",
]
