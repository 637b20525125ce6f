"""Low-level helpers shared by the edge handlers."""

from __future__ import annotations

import json
from typing import Any

from starlette.responses import Response

JSON_MEDIA_TYPE = "application/json; charset=utf-8"


class HTTPError(Exception):
    """HTTP error with status code."""

    def __init__(self, code: int, err: Exception | str | None = None):
        self.code = code
        self.err = err
        super().__init__(str(self))

    def __str__(self) -> str:
        from http import HTTPStatus

        try:
            text = HTTPStatus(self.code).phrase
        except ValueError:
            text = "Unknown"

        s = f"{self.code} {text}"
        if self.err:
            return f"{s}: {self.err}"
        return s

    @property
    def message(self) -> str:
        """Message shown to clients."""
        if self.err:
            return str(self.err)
        return str(self)


class ConfigurationError(HTTPError):
    """A required upstream URL or credential is not configured."""

    def __init__(self, err: Exception | str | None = None):
        super().__init__(500, err)


class UpstreamError(HTTPError):
    """The remote feed answered with a non-2xx status or could not be reached."""

    def __init__(self, err: Exception | str | None = None, status: int | None = None):
        self.status = status
        super().__init__(502, err)


class NotFoundError(HTTPError):
    """Unknown route or unknown redirect slug."""

    def __init__(self, err: Exception | str | None = None):
        super().__init__(404, err)


def serve_json(
    obj: Any,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> Response:
    """Serve a JSON response."""
    return Response(
        content=json.dumps(obj, ensure_ascii=False),
        status_code=status_code,
        media_type=JSON_MEDIA_TYPE,
        headers=headers,
    )


def serve_error(err: Exception, headers: dict[str, str] | None = None) -> Response:
    """Serve an error response.

    Not-found errors are answered in plain text, configuration and upstream
    errors as ``{"error": ...}`` JSON. Other HTTP errors are answered with
    their status line, and anything else with a fixed plain-text 500.
    """
    if isinstance(err, NotFoundError):
        return Response(
            content=err.message,
            status_code=404,
            media_type="text/plain; charset=utf-8",
            headers=headers,
        )

    if isinstance(err, (ConfigurationError, UpstreamError)):
        return serve_json({"error": err.message}, status_code=err.code, headers=headers)

    if isinstance(err, HTTPError):
        code, text = err.code, str(err)
    else:
        code, text = 500, "Internal Server Error"

    return Response(
        content=text,
        status_code=code,
        media_type="text/plain; charset=utf-8",
        headers=headers,
    )
