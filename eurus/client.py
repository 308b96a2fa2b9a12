"""
Cloudflare API client.

Wraps an injected httpx.Client with bearer authentication, retry logic on
transient network errors and unwrapping of Cloudflare's response envelope
``{"errors": [...], "result": ...}``.

Copyright (c) 2026 Snapp'
Author: Yannis Duvignau (yduvignau@snapp.fr)
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from eurus.config import ZoneInfo
from eurus.constants import CLOUDFLARE_BASE_URL, HTTP_TIMEOUT
from eurus.exceptions import ApiError

logger = logging.getLogger(__name__)


@dataclass
class DnsRecord:
    """A DNS record as returned by, or sent to, Cloudflare."""

    name: str
    type: str
    content: str = ""
    proxied: bool = False
    id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "content": self.content,
            "proxied": self.proxied,
        }

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "DnsRecord":
        return cls(
            id=raw.get("id"),
            name=raw.get("name", ""),
            type=raw.get("type", ""),
            content=raw.get("content", ""),
            proxied=bool(raw.get("proxied", False)),
        )


def format_api_errors(errors: list[dict]) -> str:
    """Render Cloudflare error entries as "[code] message" items."""
    return "; ".join(f"[{e.get('code', '?')}] {e.get('message', '')}" for e in errors)


def create_http_client() -> httpx.Client:
    """Create the HTTP client shared by every Cloudflare call of a run."""
    return httpx.Client(base_url=CLOUDFLARE_BASE_URL, timeout=HTTP_TIMEOUT)


class CloudflareClient:
    """
    Minimal Cloudflare v4 client for zones and DNS records.

    Parameters:
        http_client: httpx.Client whose base URL is the Cloudflare API
        api_token: Cloudflare API token with DNS edit permissions
    """

    def __init__(self, http_client: httpx.Client, api_token: str) -> None:
        self._client = http_client
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    def get_zone(self, zone_id: str) -> ZoneInfo:
        """
        Fetch a zone's details.

        Raises:
            ApiError: If the zone cannot be fetched
        """
        result = self._request_object("GET", f"/zones/{zone_id}")
        if not result.get("name"):
            raise ApiError(f"Cloudflare API returned a zone without a name for {zone_id}")
        return ZoneInfo(id=result.get("id", zone_id), name=result["name"])

    def list_records(self, zone_id: str) -> list[DnsRecord]:
        """List the DNS records of a zone."""
        result = self._request("GET", f"/zones/{zone_id}/dns_records") or []
        return [DnsRecord.from_api(r) for r in result]

    def create_record(self, zone_id: str, record: DnsRecord) -> DnsRecord:
        result = self._request_object("POST", f"/zones/{zone_id}/dns_records", json=record.to_payload())
        return DnsRecord.from_api(result)

    def update_record(self, zone_id: str, record_id: str, record: DnsRecord) -> DnsRecord:
        result = self._request_object(
            "PATCH", f"/zones/{zone_id}/dns_records/{record_id}", json=record.to_payload()
        )
        return DnsRecord.from_api(result)

    def upsert_record(
        self,
        zone_id: str,
        record: DnsRecord,
        existing: list[DnsRecord],
    ) -> tuple[DnsRecord, bool]:
        """
        Update the record with the same name if there is one, else create it.

        Parameters:
            zone_id: Zone identifier
            record: Desired record
            existing: Records currently in the zone

        Returns:
            Tuple of (resulting record, True if an existing record was updated)
        """
        match = next((r for r in existing if r.name == record.name), None)
        if match is not None and match.id:
            logger.debug("Record %s exists (ID: %s), updating", record.name, match.id)
            return self.update_record(zone_id, match.id, record), True

        logger.debug("No record named %s, creating", record.name)
        return self.create_record(zone_id, record), False

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    def _send(self, method: str, path: str, json: dict | None = None) -> httpx.Response:
        """
        Send a request, retrying up to 3 times on network errors.

        Raises:
            httpx.TransportError: On persistent network failures
        """
        logger.debug("%s %s", method, path)
        return self._client.request(method, path, headers=self._headers, json=json)

    def _request(self, method: str, path: str, json: dict | None = None) -> Any:
        """
        Send a request and unwrap the Cloudflare envelope.

        Returns:
            The envelope's "result" value

        Raises:
            ApiError: On network failure, non-JSON body, reported errors or HTTP error status
        """
        try:
            response = self._send(method, path, json=json)
        except httpx.TransportError as e:
            logger.error("Network error calling Cloudflare (%s %s): %s", method, path, e)
            raise ApiError(f"Network error calling Cloudflare API ({method} {path}): {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(
                f"Cloudflare API returned a non-JSON response ({response.status_code}) for {method} {path}"
            ) from e
        if not isinstance(body, dict):
            raise ApiError(f"Cloudflare API returned an unexpected response for {method} {path}")

        errors = body.get("errors") or []
        if errors:
            logger.error("Cloudflare API errors for %s %s: %s", method, path, errors)
            raise ApiError(f"Cloudflare API returned an error: {format_api_errors(errors)}", errors)

        if response.is_error:
            raise ApiError(f"Cloudflare API error {response.status_code} for {method} {path}")

        return body.get("result")

    def _request_object(self, method: str, path: str, json: dict | None = None) -> dict:
        """Like _request, but the result must be a JSON object."""
        result = self._request(method, path, json=json)
        if not isinstance(result, dict):
            raise ApiError(f"Cloudflare API returned no result for {method} {path}")
        return result
