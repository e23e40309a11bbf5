# homeservice_admin/api/client.py
import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional
import aiohttp
from ..config import Config
from ..exceptions import ApiError, MalformedResponseError, TransportError, UnauthorizedError
from .multipart import MultipartForm
from .session import AdminSession

class ApiClient:
    """HTTP client for the marketplace admin API"""

    def __init__(self, base_url: Optional[str] = None, session: Optional[AdminSession] = None):
        self.base_url = (base_url or Config.API_URL).rstrip('/')
        self.session = session if session is not None else AdminSession(Config.API_TOKEN)
        self.http: Optional[aiohttp.ClientSession] = None
        self.logger = logging.getLogger(__name__)

    async def connect(self):
        """Open the underlying HTTP session"""
        if self.http is not None and not self.http.closed:
            return
        self.http = aiohttp.ClientSession(
            headers={"Accept": "application/json"},
            timeout=aiohttp.ClientTimeout(total=None)
        )
        self.logger.info(f"API client ready for {self.base_url}")

    async def close(self):
        """Close the underlying HTTP session"""
        if self.http and not self.http.closed:
            await self.http.close()
            self.logger.info("API client closed")
        self.http = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, form: Optional[MultipartForm] = None) -> Any:
        return await self.request("POST", path, json=json, form=form)

    async def put(self, path: str, json: Any = None, form: Optional[MultipartForm] = None) -> Any:
        return await self.request("PUT", path, json=json, form=form)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                      json: Any = None, form: Optional[MultipartForm] = None) -> Any:
        """Send one request and return the `data` of the response envelope"""
        await self.connect()
        url = f"{self.base_url}/{path.lstrip('/')}"
        kwargs: Dict[str, Any] = {"headers": self.session.auth_headers()}

        query = self._clean_params(params)
        if query:
            kwargs["params"] = query
        if form is not None:
            # aiohttp sets the multipart boundary itself
            kwargs["data"] = form.to_writer()
        elif json is not None:
            kwargs["json"] = json

        self.logger.debug(f"{method} {url} params={query}")
        try:
            async with self.http.request(method, url, **kwargs) as response:
                status = response.status
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.warning(f"{method} {url} failed: {e!r}")
            raise TransportError(str(e) or e.__class__.__name__, method, url) from e

        return self._unwrap(method, url, status, body)

    def _unwrap(self, method: str, url: str, status: int, body: Any) -> Any:
        """Turn an envelope into its data, raising on any rejection"""
        envelope = body if isinstance(body, dict) else {}
        message = envelope.get("message") or ""
        errors = envelope.get("errors") or []

        if status == 401:
            self.session.clear()
            self.logger.warning(f"{method} {url} rejected the admin token")
            raise UnauthorizedError(message or "Your session has expired", errors, status)

        if not 200 <= status < 300:
            self.logger.warning(f"{method} {url} returned {status}: {message or errors}")
            if not message and not errors:
                message = f"Request failed with status code {status}"
            raise ApiError(message, errors, status)

        if "success" not in envelope:
            raise MalformedResponseError(status=status)

        if not envelope["success"]:
            self.logger.warning(f"{method} {url} was refused: {message or errors}")
            raise ApiError(message, errors, status)

        return envelope.get("data")

    @staticmethod
    def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
        query = {}
        for key, value in (params or {}).items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            query[key] = str(value)
        return query
