"""Factory for the transport stack every VMS session uses."""

import logging
from typing import TYPE_CHECKING

import httpx

from vms_client_core.transport.retry import AuthRefreshRetry

if TYPE_CHECKING:
    from vms_client_core.auth.authorizers import Authorizer
    from vms_client_core.config import VMSConfig

logger = logging.getLogger(__name__)


def create_transport(
    config: "VMSConfig",
    authorizer: "Authorizer",
    wrapped_transport: httpx.AsyncBaseTransport | None = None,
    max_retries: int = 3,
) -> AuthRefreshRetry:
    """Build the re-authenticating transport for ``config``.

    Args:
        config: Validated client configuration (TLS policy and pool size are read).
        authorizer: Authorizer refreshed on 401/403.
        wrapped_transport: Innermost transport; a pooled ``httpx.AsyncHTTPTransport``
            when omitted. Tests pass an ``httpx.MockTransport`` here.
        max_retries: Attempts per request, including the first.
    """
    if wrapped_transport is None:
        wrapped_transport = httpx.AsyncHTTPTransport(
            verify=config.ssl_verify,
            limits=httpx.Limits(
                max_connections=config.max_connections,
                max_keepalive_connections=config.max_connections,
            ),
        )
    logger.debug(f"Creating transport for {config.host}:{config.port} (max_retries={max_retries})")
    return AuthRefreshRetry(wrapped_transport=wrapped_transport, authorizer=authorizer, max_retries=max_retries)
