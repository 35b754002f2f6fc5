"""Authenticated HTTP client for the tsuru API.

This module provides :class:`TsuruClient`, the blocking HTTP client used by
API commands such as ``app-swap``. It wraps :class:`httpx.Client` and
layers on:

- **Token injection** -- ``Authorization: bearer <token>`` from the
  :class:`~tsuru_client.models.Session` on every request.
- **Versioned URLs** -- request paths are prefixed with the configured API
  version (``/1.0/swap``).
- **Error mapping** -- transport failures become
  :class:`~tsuru_client.exceptions.NetworkError` and responses with a status
  of 400 or above become :class:`~tsuru_client.exceptions.HTTPError`, which
  keeps the status code and the body text for callers that react to a
  specific status.

There are no retries at this layer; commands that want one (``app-swap``
after a confirmation) reissue the request themselves.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from tsuru_client import __version__
from tsuru_client.config import get_url
from tsuru_client.exceptions import HTTPError, NetworkError
from tsuru_client.models import GlobalConfig, Session

logger = logging.getLogger(__name__)


class TsuruClient:
    """Synchronous HTTP client for the tsuru API.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        session: Target URL and token to act with.
        config: Global settings (API version, timeout, SSL verification).
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with TsuruClient(load_session(), load_global_config()) as client:
            client.put("/swap", params={"app1": "blue", "app2": "green"})
    """

    def __init__(
        self,
        session: Session,
        config: Optional[GlobalConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._session = session
        self._config = config or GlobalConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def session(self) -> Session:
        return self._session

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> TsuruClient:
        request_config = self._config.request
        self._client = httpx.Client(
            timeout=request_config.timeout,
            verify=request_config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
            headers={
                "Authorization": f"bearer {self._session.token}",
                "User-Agent": f"tsuru-client/{__version__}",
            },
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def url_for(self, path: str) -> str:
        """Return the absolute, versioned URL for an API *path*."""
        return get_url(self._session.target, path, self._config.api_version)

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a request to the API and map failures to tsuru errors.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            path: API path, e.g. ``"/swap"``; the target and API version are
                prepended.
            params: Query parameters.
            json_body: JSON-serialisable body.

        Returns:
            The :class:`httpx.Response`, whose status is below 400.

        Raises:
            NetworkError: On connection, timeout or other transport errors.
            HTTPError: On a response status of 400 or above.
            RuntimeError: If called outside the ``with`` block.
        """
        if self._client is None:
            raise RuntimeError("Client not initialised -- use as context manager")

        url = self.url_for(path)
        logger.debug("%s %s params=%s", method.upper(), url, params)
        try:
            response = self._client.request(
                method.upper(), url, params=params, json=json_body
            )
        except httpx.TransportError as exc:
            raise NetworkError(
                f"Failed to connect to tsuru server ({self._session.target}): {exc}"
            ) from exc

        logger.debug("%s %s -> %d", method.upper(), url, response.status_code)
        if response.status_code >= 400:
            raise HTTPError(response.status_code, response.text)
        return response

    def put(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send a PUT request. See :meth:`request`."""
        return self.request("PUT", path, **kwargs)


def create_client() -> TsuruClient:
    """Build a :class:`TsuruClient` for the current session and settings.

    Raises:
        TargetError: If no target is defined.
        AuthError: If no token is available.
    """
    from tsuru_client.config import load_global_config, load_session

    return TsuruClient(load_session(), load_global_config())
