import asyncio
from typing import Any, Dict, Optional

import requests

from ojclient.auth.session import AuthSession
from ojclient.config import logger
from ojclient.errors import (AuthenticationException,
                             ResourceNotFoundException, TransportException,
                             ValidationException)

api_logger = logger.getChild("api")


class ApiClient:
    """
    HTTP client for the platform backend.

    Calls go through a shared `requests.Session`; the blocking part runs in
    `asyncio.to_thread` so callers can await it from the event loop.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[AuthSession] = None,
        timeout: float = 10,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = session
        self.timeout = timeout
        self.http = http or requests.Session()
        self.headers = {"Content-Type": "application/json"}

    def _build_headers(self) -> Dict[str, str]:
        headers = dict(self.headers)
        if self.auth is not None:
            headers.update(self.auth.auth_headers())
        return headers

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(
                method,
                url,
                headers=self._build_headers(),
                params=params,
                json=payload,
                timeout=timeout or self.timeout,
            )
        except requests.RequestException as e:
            api_logger.error(f"{method} {path} failed: {str(e)}")
            raise TransportException(
                detail="Could not reach the server. Please try again."
            ) from e

        if response.status_code == 404:
            api_logger.info(f"{method} {path} returned 404")
            raise ResourceNotFoundException(detail=self._message(response, "Not found"))

        if response.status_code == 401:
            api_logger.warning(f"{method} {path} rejected credentials, clearing session")
            if self.auth is not None:
                self.auth.logout()
            raise AuthenticationException(detail="Your session has expired. Please log in again.")

        if not response.ok:
            api_logger.error(
                f"{method} {path} error: {response.status_code} - {response.text}"
            )
            raise TransportException(
                detail=self._message(response, f"Request failed with status {response.status_code}"),
                upstream_status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            api_logger.error(f"{method} {path} returned a non-JSON body")
            raise ValidationException(detail="Malformed response from server") from e

        return self._unwrap(body, method, path)

    @staticmethod
    def _message(response: requests.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return default

    @staticmethod
    def _unwrap(body: Any, method: str, path: str) -> Any:
        """Strip the `{success, data, message}` envelope the backend wraps replies in."""
        if not isinstance(body, dict) or "success" not in body:
            return body
        if not body.get("success"):
            message = body.get("message") or "Request was not successful"
            api_logger.error(f"{method} {path} unsuccessful: {message}")
            raise TransportException(detail=message)
        return body.get("data") or {}

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await asyncio.to_thread(self._request, "GET", path, params, None, **kwargs)

    async def post(self, path: str, payload: Dict[str, Any], **kwargs) -> Any:
        return await asyncio.to_thread(self._request, "POST", path, None, payload, **kwargs)

    async def put(self, path: str, payload: Dict[str, Any], **kwargs) -> Any:
        return await asyncio.to_thread(self._request, "PUT", path, None, payload, **kwargs)

    def close(self) -> None:
        self.http.close()
