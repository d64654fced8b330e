"""
Safaricom Daraja client: OAuth token and C2B URL registration.

Calls here are plain HTTP and must never run inside a database transaction.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from schoolfees.core.config import settings

logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = "https://sandbox.safaricom.co.ke"
PRODUCTION_BASE_URL = "https://api.safaricom.co.ke"

CONFIRMATION_PATH = "/api/v1/mpesa/c2b/confirmation"
VALIDATION_PATH = "/api/v1/mpesa/c2b/validation"


class DarajaError(Exception):
    pass


class DarajaClient:
    def __init__(
        self,
        consumer_key: Optional[str],
        consumer_secret: Optional[str],
        environment: str = "sandbox",
        callback_base_url: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.consumer_key = consumer_key or ""
        self.consumer_secret = consumer_secret or ""
        self.environment = (environment or "sandbox").strip().lower()
        self.callback_base_url = (callback_base_url or "").strip().rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "DarajaClient":
        return cls(
            consumer_key=settings.mpesa_consumer_key,
            consumer_secret=settings.mpesa_consumer_secret,
            environment=settings.mpesa_environment,
            callback_base_url=settings.mpesa_callback_base_url,
            timeout=settings.mpesa_timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return PRODUCTION_BASE_URL if self.environment == "production" else SANDBOX_BASE_URL

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def get_access_token(self) -> str:
        if not self.consumer_key or not self.consumer_secret:
            raise DarajaError("Daraja consumer key/secret not configured")
        try:
            async with self._client() as client:
                resp = await client.get(
                    "/oauth/v1/generate",
                    params={"grant_type": "client_credentials"},
                    auth=(self.consumer_key, self.consumer_secret),
                )
        except httpx.HTTPError as e:
            raise DarajaError(f"Network error contacting Daraja token endpoint: {type(e).__name__}: {e}") from e
        if resp.status_code != 200:
            raise DarajaError(f"Auth failed: {resp.status_code} {resp.text}")
        try:
            data = resp.json()
        except ValueError as e:
            raise DarajaError("Auth failed: non-JSON response from Daraja") from e
        token = data.get("access_token") or ""
        if not token:
            raise DarajaError("Auth failed: access_token missing in response")
        return token

    async def register_c2b_urls(self, short_code: str) -> Dict[str, Any]:
        """Register this service's validation and confirmation URLs for a paybill."""
        if not self.callback_base_url.startswith("https://"):
            raise DarajaError("MPESA_CALLBACK_BASE_URL must be a public HTTPS URL")
        token = await self.get_access_token()
        body = {
            "ShortCode": short_code,
            "ResponseType": "Completed",
            "ConfirmationURL": self.callback_base_url + CONFIRMATION_PATH,
            "ValidationURL": self.callback_base_url + VALIDATION_PATH,
        }
        try:
            async with self._client() as client:
                resp = await client.post(
                    "/mpesa/c2b/v1/registerurl",
                    json=body,
                    headers={"Authorization": f"Bearer {token}"},
                )
        except httpx.HTTPError as e:
            raise DarajaError(f"Network error registering C2B URLs: {type(e).__name__}: {e}") from e
        if resp.status_code != 200:
            raise DarajaError(f"C2B URL registration failed: {resp.status_code} {resp.text}")
        logger.info("Registered C2B URLs", extra={"short_code": short_code})
        return resp.json()
