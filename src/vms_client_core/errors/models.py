"""Error body models for VMS API responses.

The management API answers failed requests with Django REST framework style
bodies, either ``{"detail": "..."}`` or a mapping of field names to lists of
messages (``{"name": ["This field is required."]}``).
"""

from dataclasses import dataclass

import httpx


@dataclass
class ErrorDetail:
    """Parsed error body of a failed API call."""

    detail: str | None = None  # Human-readable explanation
    code: str | None = None  # Machine readable error code, when present

    # Per-field validation messages
    field_errors: dict[str, list[str]] | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ErrorDetail | None":
        """Parse an error body from an HTTP response.

        Args:
            response: HTTP response object

        Returns:
            ErrorDetail or None if the body is not a JSON object
        """
        try:
            data = response.json()
        except (ValueError, TypeError, AttributeError):
            return None
        if not isinstance(data, dict) or not data:
            return None

        detail = data.get("detail")
        code = data.get("code")
        field_errors: dict[str, list[str]] = {}
        for key, value in data.items():
            if key in ("detail", "code"):
                continue
            if isinstance(value, list):
                field_errors[key] = [str(item) for item in value]
            elif isinstance(value, str):
                field_errors[key] = [value]

        if detail is None and not field_errors:
            return None
        return cls(
            detail=str(detail) if detail is not None else None,
            code=str(code) if code is not None else None,
            field_errors=field_errors or None,
        )
