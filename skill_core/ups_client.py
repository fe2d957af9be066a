"""Async client for the Alexa profile service (UPS).

Only the person-level given name endpoint is needed here. Identity is implied
by the per-request ``apiAccessToken``; the client takes no person argument.
"""
from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Optional

import httpx

if TYPE_CHECKING:
    from skill_core.config import SkillConfig
    from skill_core.schema import SystemContext

logger = logging.getLogger(__name__)

GIVEN_NAME_PATH = "/v2/persons/~current/profile/givenName"


class ServiceError(Exception):
    """Raised when the profile service returns a non-success response."""

    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.body = body

    @property
    def status_message(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"ServiceError(status_code={self.status_code}, message={self.message!r})"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


class UpsServiceClient:
    """Profile service client bound to one request's endpoint and token."""

    def __init__(
        self,
        *,
        api_endpoint: str,
        api_access_token: str,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_endpoint = api_endpoint.rstrip("/")
        self._api_access_token = api_access_token
        self.timeout_s = timeout_s
        self._transport = transport

    async def get_persons_profile_given_name(self) -> Optional[str]:
        """Return the current person's consented given name, or None if unset.

        Raises:
            ServiceError: on any non-2xx response or transport failure.
                A 403 means the person has not granted the given-name scope.
        """
        headers = {
            "Authorization": f"Bearer {self._api_access_token}",
            "Accept": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.api_endpoint,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.get(GIVEN_NAME_PATH, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("Profile service request failed: %s", e)
            raise ServiceError(0, str(e) or e.__class__.__name__) from e

        if response.status_code == 204:
            return None
        if response.status_code != 200:
            raise ServiceError(response.status_code, _error_message(response), body=response.text)

        if not response.content:
            return None
        try:
            name = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise ServiceError(response.status_code, f"Malformed given name response: {e}") from e
        if name is None:
            return None
        if not isinstance(name, str):
            raise ServiceError(response.status_code, f"Unexpected given name payload type: {type(name).__name__}")
        return name


class ServiceClientFactory:
    """Builds service clients for one request, like the platform SDK factory does."""

    def __init__(
        self,
        *,
        api_endpoint: str,
        api_access_token: str,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_endpoint = api_endpoint
        self.api_access_token = api_access_token
        self.timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_system_context(
        cls,
        system: SystemContext,
        cfg: SkillConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ServiceClientFactory":
        return cls(
            api_endpoint=system.api_endpoint or cfg.default_api_endpoint,
            api_access_token=system.api_access_token or "",
            timeout_s=cfg.ups_timeout_s,
            transport=transport,
        )

    def get_ups_service_client(self) -> UpsServiceClient:
        return UpsServiceClient(
            api_endpoint=self.api_endpoint,
            api_access_token=self.api_access_token,
            timeout_s=self.timeout_s,
            transport=self._transport,
        )
