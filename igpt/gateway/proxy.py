"""Forward-proxy dispatcher shared by the token exchange and the model clients.

The deployment only reaches the gateway through a corporate proxy. A
:class:`ProxyDispatcher` is built once per process (see
:func:`get_default_dispatcher`) and injected wherever traffic leaves the
process, so tests can substitute one backed by ``httpx.MockTransport``.
"""

from __future__ import annotations

import functools
import logging
import threading

import httpx

from igpt.config import settings

logger = logging.getLogger(__name__)


def redact_proxy_url(proxy_url: str | None) -> str | None:
    """``proxy_url`` without any ``user:password@`` part, for logs and reprs."""
    if not proxy_url:
        return proxy_url
    url = httpx.URL(proxy_url)
    if not url.userinfo:
        return proxy_url
    return str(url.copy_with(username=None, password=None))


class ProxyDispatcher:
    """Routes outbound HTTP through a fixed forward proxy.

    Immutable after construction apart from the lazily built shared model
    clients, which live until process exit.
    """

    def __init__(
        self,
        proxy_url: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._proxy_url = proxy_url or None
        self._transport = transport

        self._lock = threading.Lock()
        self._http_client: httpx.Client | None = None
        self._http_async_client: httpx.AsyncClient | None = None

    @property
    def proxy_url(self) -> str | None:
        return self._proxy_url

    def __repr__(self) -> str:
        return f"ProxyDispatcher(proxy_url={redact_proxy_url(self._proxy_url)!r})"

    def async_client(self, timeout: float | None = None) -> httpx.AsyncClient:
        """A fresh short-lived client for a single request (e.g. one token fetch)."""
        if self._transport is not None:
            # A proxy mount would shadow the injected transport
            return httpx.AsyncClient(transport=self._transport, timeout=timeout)
        return httpx.AsyncClient(proxy=self._proxy_url, timeout=timeout)

    def http_client(self) -> httpx.Client:
        """Shared sync client handed to the LangChain model clients."""
        with self._lock:
            if self._http_client is None:
                logger.debug(
                    "Creating shared sync client via proxy %s", redact_proxy_url(self._proxy_url),
                )
                self._http_client = httpx.Client(proxy=self._proxy_url)
            return self._http_client

    def http_async_client(self) -> httpx.AsyncClient:
        """Shared async client handed to the LangChain model clients."""
        with self._lock:
            if self._http_async_client is None:
                logger.debug(
                    "Creating shared async client via proxy %s", redact_proxy_url(self._proxy_url),
                )
                if self._transport is not None:
                    self._http_async_client = httpx.AsyncClient(transport=self._transport)
                else:
                    self._http_async_client = httpx.AsyncClient(proxy=self._proxy_url)
            return self._http_async_client


@functools.lru_cache(maxsize=None)
def get_default_dispatcher() -> ProxyDispatcher:
    """The process-wide dispatcher, built on first use from ``settings.proxy_url``."""
    logger.info("Using forward proxy %s", redact_proxy_url(settings.proxy_url) or "(none)")
    return ProxyDispatcher(settings.proxy_url)
