#!/usr/bin/env python
# Base service for API communication
import asyncio
import requests
from typing import Dict, Any, Optional, Union, List
import json

from peerfusion_client.utils.config import config
from peerfusion_client.session import session


JSONBody = Union[Dict[str, Any], List[Any]]


class APIError(Exception):
    """Exception raised for API errors"""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"API Error ({status_code}): {detail}")


class BaseService:
    """Base class for API services"""

    def __init__(self, api_url: Optional[str] = None, timeout: Optional[float] = None):
        self.api_url = api_url or config.api_url
        self.timeout = timeout or config.request_timeout

    def _get_headers(self) -> Dict[str, str]:
        """Get common headers for API requests"""
        headers = {
            "Content-Type": "application/json"
        }

        if session.access_token:
            headers["Authorization"] = f"Bearer {session.access_token}"

        return headers

    def _handle_response(self, response: requests.Response) -> JSONBody:
        """Process API response and handle errors"""
        if 200 <= response.status_code < 300:
            if response.status_code == 204:  # No content
                return {}

            try:
                return response.json()
            except json.JSONDecodeError:
                return {"message": response.text}
        else:
            try:
                error_data = response.json()
                detail = error_data.get("detail", "Unknown error")
            except (json.JSONDecodeError, AttributeError):
                detail = response.text or "Unknown error"

            raise APIError(response.status_code, detail)

    async def _request(self, method: str, endpoint: str, **kwargs) -> JSONBody:
        url = f"{self.api_url}{endpoint}"
        try:
            # requests is blocking; keep the event loop free for socket events
            response = await asyncio.to_thread(
                requests.request, method, url,
                headers=self._get_headers(), timeout=self.timeout, **kwargs
            )
        except requests.Timeout:
            raise APIError(504, f"Request timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise APIError(503, f"Request failed: {str(e)}")
        return self._handle_response(response)

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> JSONBody:
        """Make GET request to API"""
        return await self._request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: Dict[str, Any]) -> JSONBody:
        """Make POST request to API"""
        return await self._request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: Optional[Dict[str, Any]] = None) -> JSONBody:
        """Make PUT request to API"""
        return await self._request("PUT", endpoint, json=data)
