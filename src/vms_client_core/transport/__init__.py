"""Transport layer for VMS sessions.

The session's ``httpx.AsyncClient`` sends through ``AuthRefreshRetry``, which
wraps a pooled ``httpx.AsyncHTTPTransport`` (or any transport supplied by the
caller, e.g. ``httpx.MockTransport`` in tests).

Example:
    ```python
    from vms_client_core.transport import create_transport

    transport = create_transport(config, authorizer)
    ```
"""

from vms_client_core.transport.factory import create_transport
from vms_client_core.transport.retry import AuthRefreshRetry

__all__ = ["AuthRefreshRetry", "create_transport"]
