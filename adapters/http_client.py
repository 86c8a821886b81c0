"""
Upstream HTTP client base

Shared request plumbing for the gateway, Typesense and Supabase adapters.
Calls are made once: there is no retry, circuit breaking or backoff, and
every failure is terminal for the request that triggered it.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

import aiohttp

from config import ControlPanelConfig
from exceptions import ConfigurationMissingError, ConnectionException, UpstreamServiceError

_CONTENT_RANGE_TOTAL = re.compile(r'/(\d+)$')


@dataclass
class UpstreamResponse:
    """Buffered upstream response"""
    status: int
    text: str
    reason: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        if not self.text:
            return None
        return json.loads(self.text)

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def content_range_total(self) -> Optional[int]:
        """Total row count from a PostgREST ``Content-Range`` header"""
        content_range = self.header('Content-Range')
        if not content_range:
            return None
        match = _CONTENT_RANGE_TOTAL.search(content_range)
        return int(match.group(1)) if match else None


class HttpClient:
    """Base class of the upstream adapters"""

    def __init__(self, service_name: str, config: ControlPanelConfig, base_url: str):
        """Initialize the client

        Args:
            service_name: Name used in logs and errors
            config: Control panel configuration
            base_url: Upstream base URL
        """
        self.service_name = service_name
        self.config = config
        self.base_url = (base_url or '').rstrip('/')
        self.logger = logging.getLogger(f"{__name__}.{service_name}")
        self._session: Optional[aiohttp.ClientSession] = None
        self._owns_session = False

        self._request_count = 0
        self._success_count = 0
        self._error_count = 0

    def missing_settings(self) -> List[str]:
        """Names of the environment variables this client still needs"""
        return []

    def configuration_hint(self) -> Optional[str]:
        return None

    @property
    def is_configured(self) -> bool:
        return not self.missing_settings()

    def ensure_configured(self) -> None:
        """Raise ConfigurationMissingError when a required setting is absent"""
        missing = self.missing_settings()
        if missing:
            self.logger.error(f"{self.service_name} configuration missing: {missing}")
            raise ConfigurationMissingError(self.service_name, missing, self.configuration_hint())

    def default_headers(self) -> Dict[str, str]:
        return {}

    def bind_session(self, session: aiohttp.ClientSession) -> None:
        """Share a session owned by the service registry"""
        self._session = session
        self._owns_session = False

    async def start(self):
        if self._session:
            return

        timeout = aiohttp.ClientTimeout(
            total=self.config.adapter.request_timeout,
            connect=self.config.adapter.connection_timeout
        )
        connector = aiohttp.TCPConnector(
            limit=self.config.adapter.pool_size,
            limit_per_host=self.config.adapter.limit_per_host
        )
        self._session = aiohttp.ClientSession(timeout=timeout, connector=connector)
        self._owns_session = True

        self.logger.info(f"HTTP client for {self.service_name} started")

    async def stop(self):
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

        self.logger.info(f"HTTP client for {self.service_name} stopped")

    async def request(self, method: str, path: str, params: Any = None,
                      json_body: Any = None, headers: Optional[Dict[str, str]] = None,
                      data: Optional[bytes] = None) -> UpstreamResponse:
        """Send one request and buffer the response

        Args:
            method: HTTP method
            path: Path below the base URL, starting with ``/``
            params: Query parameters, a dict or a list of pairs
            json_body: JSON body
            headers: Extra headers, merged over the defaults
            data: Raw body, used instead of ``json_body``

        Returns:
            UpstreamResponse: Status, text and headers, whatever the status

        Raises:
            ConfigurationMissingError: Required settings are absent
            ConnectionException: Network failure or timeout
        """
        self.ensure_configured()

        url = f"{self.base_url}{path}"
        request_headers = self.default_headers()
        if headers:
            request_headers.update(headers)

        kwargs: Dict[str, Any] = {'headers': request_headers}
        if params:
            kwargs['params'] = params
        if data is not None:
            kwargs['data'] = data
        elif json_body is not None:
            kwargs['json'] = json_body

        self._request_count += 1
        self.logger.debug(f"{method} {url}")

        try:
            response = await self._send(method, url, **kwargs)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._error_count += 1
            raise ConnectionException(self.service_name, url, str(e) or type(e).__name__)

        if response.ok:
            self._success_count += 1
        else:
            self._error_count += 1
            self.logger.warning(
                f"{self.service_name} {method} {path} -> HTTP {response.status}: {response.text[:500]}"
            )
        return response

    async def request_json(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and decode the JSON body

        Raises:
            UpstreamServiceError: The upstream answered with a non-2xx status
        """
        response = await self.request(method, path, **kwargs)
        if not response.ok:
            raise UpstreamServiceError(
                self.service_name, method, path, response.status,
                response.text or response.reason
            )
        return response.json()

    async def _send(self, method: str, url: str, **kwargs) -> UpstreamResponse:
        if not self._session:
            await self.start()

        async with self._session.request(method, url, **kwargs) as resp:
            text = await resp.text()
            return UpstreamResponse(
                status=resp.status,
                text=text,
                reason=resp.reason or "",
                headers=dict(resp.headers),
            )

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'service': self.service_name,
            'configured': self.is_configured,
            'request_count': self._request_count,
            'success_count': self._success_count,
            'error_count': self._error_count,
            'success_rate': self._success_count / max(self._request_count, 1)
        }
