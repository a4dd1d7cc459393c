"""
Categories backend REST client.
"""

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import httpx

from category_api.core.category_paths import encode_path, normalize_path
from category_api.core.errors import CategoryNetworkError, CategoryNotFound
from category_api.core.security import sanitize_dict_for_logging

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class CategoryClient:
    """
    Async client for the categories backend.

    Endpoints:
    - GET    /categories                 full forest
    - GET    /categories/{encodedPath}   single node
    - PUT    /categories/{encodedPath}   partial update
    - DELETE /categories/{encodedPath}   subtree delete
    - POST   /categories                 create
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        max_retries: int = 0,
        initial_delay: float = 2.0,
        backoff_factor: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize categories client.

        Args:
            base_url: Backend base URL (e.g., https://api.example.com/api/v1)
            api_token: Bearer token sent with every request (optional)
            timeout: Request timeout in seconds
            max_retries: Retry attempts for 429/5xx and transport errors
            initial_delay: Initial retry delay in seconds
            backoff_factor: Backoff multiplier
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip('/')
        self.api_token = api_token
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor

        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers=headers,
            transport=transport,
        )

    def _retry_delay(self, attempt: int) -> float:
        delay = min(self.initial_delay * (self.backoff_factor ** attempt), 60.0)
        return delay + random.uniform(0, 0.4) if delay > 0 else 0

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None,
        path: str = "",
    ) -> httpx.Response:
        """
        Make HTTP request with optional retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint (relative to base_url)
            params: Query parameters
            json_data: JSON body
            path: Category path the request is about (for error reporting)

        Returns:
            httpx.Response

        Raises:
            CategoryNotFound: If the backend answers 404
            CategoryNetworkError: On any other failure
        """
        url = urljoin(self.base_url + '/', endpoint.lstrip('/'))
        if json_data is not None:
            logger.debug(f"{method} {url} payload={sanitize_dict_for_logging(json_data)}")
        else:
            logger.debug(f"{method} {url}")

        last_error = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.request(
                    method=method,
                    url=url,
                    params=params,
                    json=json_data,
                )

                if response.status_code in (200, 201, 204):
                    return response

                if response.status_code == 404:
                    raise CategoryNotFound(path or endpoint)

                if response.status_code in RETRYABLE_STATUS:
                    last_error = f"HTTP {response.status_code}"
                    if attempt < self.max_retries:
                        await asyncio.sleep(self._retry_delay(attempt))
                        continue
                    raise CategoryNetworkError(
                        f"HTTP {response.status_code} from {method} {endpoint}: {response.text[:200]}",
                        status_code=response.status_code,
                    )

                # Non-retryable errors (400, 401, 403, 409, 422, ...)
                raise CategoryNetworkError(
                    f"HTTP {response.status_code} from {method} {endpoint}: {response.text[:200]}",
                    status_code=response.status_code,
                )

            except httpx.TimeoutException as e:
                last_error = f"Timeout: {str(e)}"
                if attempt < self.max_retries:
                    await asyncio.sleep(self._retry_delay(attempt))
                    continue
                raise CategoryNetworkError(f"Timeout calling {method} {endpoint}: {e}")

            except httpx.RequestError as e:
                last_error = f"Request error: {str(e)}"
                if attempt < self.max_retries:
                    await asyncio.sleep(self._retry_delay(attempt))
                    continue
                raise CategoryNetworkError(f"Request error calling {method} {endpoint}: {e}")

        # Should not reach here
        raise CategoryNetworkError(f"Request failed after {self.max_retries} retries: {last_error}")

    @staticmethod
    def _endpoint_for(path: str) -> str:
        encoded = encode_path(normalize_path(path))
        if not encoded:
            raise CategoryNotFound(path or "", "Empty path does not address a category")
        return f"/categories/{encoded}"

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        # The backend wraps bodies as {"success": true, "data": ...}
        if isinstance(payload, dict) and "data" in payload and (
            "success" in payload or len(payload) == 1
        ):
            return payload["data"]
        return payload

    async def get_categories(self) -> List[Dict[str, Any]]:
        """
        Get the full category forest, ordered.

        Returns:
            List of nested category dicts (or flat rows carrying parent_id)
        """
        response = await self._request("GET", "/categories")
        data = self._unwrap(response.json())
        return data if isinstance(data, list) else []

    async def get_category(self, path: str) -> Dict[str, Any]:
        """Get a single category by path."""
        response = await self._request("GET", self._endpoint_for(path), path=path)
        data = self._unwrap(response.json())
        if not data:
            raise CategoryNotFound(path)
        return data

    async def update_category(self, path: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update to the category at `path`."""
        response = await self._request("PUT", self._endpoint_for(path), json_data=data, path=path)
        if response.status_code == 204 or not response.content:
            return {}
        return self._unwrap(response.json()) or {}

    async def delete_category(self, path: str) -> bool:
        """Delete the category at `path` and its subtree."""
        response = await self._request("DELETE", self._endpoint_for(path), path=path)
        return response.status_code in (200, 201, 204)

    async def create_category(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a category (`parent_path` in the body selects the parent)."""
        response = await self._request("POST", "/categories", json_data=data)
        if response.status_code == 204 or not response.content:
            return {}
        return self._unwrap(response.json()) or {}

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()
