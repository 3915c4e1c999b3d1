"""IP geolocation lookups used by the fraud engine.

GeoIPLookup is the capability contract for an external provider. The
default NullGeoIPLookup always reports a clear origin; HttpGeoIPLookup talks
to an HTTP provider and raises GeolocationError on any failure so the fraud
engine can fail safe.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from payment_guard.config import GeolocationSettings
from payment_guard.models.exceptions import GeolocationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GeoCheck:
    """Result of a geolocation lookup."""

    is_suspicious: bool
    country: str | None = None
    is_vpn: bool = False


class GeoIPLookup(ABC):
    """Abstract IP geolocation provider."""

    @abstractmethod
    async def check(self, ip: str | None, user_id: str | None) -> GeoCheck:
        """
        Assess whether a transaction origin is unusual for the user.

        Raises:
            GeolocationError: If the provider fails or returns a malformed response
        """
        pass

    async def close(self) -> None:
        return None


class NullGeoIPLookup(GeoIPLookup):
    """Stand-in used when no provider is configured: every origin is clear."""

    async def check(self, ip: str | None, user_id: str | None) -> GeoCheck:
        return GeoCheck(is_suspicious=False)


class HttpGeoIPLookup(GeoIPLookup):
    """
    Client for an HTTP geolocation provider.

    Calls ``GET {base_url}/v1/check?ip=...&user_id=...`` and expects a JSON
    object ``{"suspicious": bool, "country": str, "is_vpn": bool}``.
    """

    def __init__(self, base_url: str, api_key: str = "", timeout_seconds: float = 2.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.http_client = httpx.AsyncClient(timeout=timeout_seconds)

        logger.info(
            "geoip_client_initialized",
            base_url=self.base_url,
            timeout_seconds=timeout_seconds,
        )

    async def close(self) -> None:
        """Close the HTTP client connection pool."""
        await self.http_client.aclose()

    async def check(self, ip: str | None, user_id: str | None) -> GeoCheck:
        if not ip:
            return GeoCheck(is_suspicious=False)

        url = f"{self.base_url}/v1/check"
        headers = {"X-Api-Key": self.api_key} if self.api_key else {}

        try:
            response = await self.http_client.get(
                url,
                params={"ip": ip, "user_id": user_id or ""},
                headers=headers,
            )
        except httpx.TimeoutException as e:
            logger.warning("geoip_lookup_timeout", ip=ip, error=str(e))
            raise GeolocationError("Geolocation lookup timed out") from e
        except httpx.RequestError as e:
            logger.warning("geoip_lookup_request_error", ip=ip, error=str(e))
            raise GeolocationError(f"Geolocation request error: {e}") from e

        if response.status_code != 200:
            logger.warning("geoip_lookup_bad_status", ip=ip, status_code=response.status_code)
            raise GeolocationError(f"Geolocation provider returned {response.status_code}")

        try:
            body: Any = response.json()
        except ValueError as e:
            raise GeolocationError("Geolocation response is not JSON") from e

        if not isinstance(body, dict) or not isinstance(body.get("suspicious"), bool):
            logger.warning("geoip_lookup_malformed_response", ip=ip)
            raise GeolocationError("Geolocation response is missing 'suspicious'")

        return GeoCheck(
            is_suspicious=body["suspicious"],
            country=body.get("country"),
            is_vpn=bool(body.get("is_vpn", False)),
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def get_geoip_lookup(config: GeolocationSettings) -> GeoIPLookup:
    """Build the configured lookup ('none' or 'http')."""
    provider = config.provider.lower()
    if provider == "none":
        return NullGeoIPLookup()
    if provider == "http":
        return HttpGeoIPLookup(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout_seconds=config.timeout_seconds,
        )
    raise ValueError(f"Unknown geolocation provider: {config.provider}. Available: none, http")
