"""
Microsoft Defender for Endpoint machine inventory and tagging.
"""

import logging
from typing import List, Dict

import requests

from services.azure_auth import TaggingSession
from src.tagging.errors import DefenderApiError, InventoryFetchError
from src.tagging.models import InventoryDevice
from src.utils.http_utils import bearer_headers, error_detail

logger = logging.getLogger(__name__)

TAG_ACTION_ADD = "Add"


class DefenderClient:
    """Client for the Defender for Endpoint machines API."""

    def __init__(self, session: TaggingSession, base_url: str):
        self.session = session
        self.base_url = base_url.rstrip('/')

    def _headers(self) -> Dict[str, str]:
        return bearer_headers(self.session.defender_token)

    def list_machines(self) -> List[InventoryDevice]:
        """
        Fetch the full machine inventory, following @odata.nextLink until absent.

        Any failed page aborts the fetch; records from earlier pages are dropped.
        Records are kept in the order the API returned them.
        """
        url = f"{self.base_url}/api/machines"
        machines = []
        page_count = 0

        while url:
            try:
                response = self.session.http.get(url, headers=self._headers())
            except requests.exceptions.RequestException as e:
                raise InventoryFetchError(f"Machine inventory page {page_count + 1} failed: {e}")
            if response is None:
                raise InventoryFetchError(f"No response from {url} after repeated connection failures")
            if not response.ok:
                raise InventoryFetchError(
                    f"Machine inventory page {page_count + 1} failed ({response.status_code}): {error_detail(response)}"
                )

            page_count += 1
            try:
                payload = response.json()
                for machine in payload.get("value", []):
                    machines.append(InventoryDevice(
                        dns_name=machine.get("computerDnsName") or "",
                        platform_id=machine["id"],
                    ))
            except (ValueError, KeyError, AttributeError, TypeError) as e:
                raise InventoryFetchError(f"Machine inventory page {page_count} was malformed: {e!r}")
            url = payload.get("@odata.nextLink")
            logger.debug(f"Fetched inventory page {page_count}, {len(machines)} machines so far")

        logger.info(f"Fetched {len(machines)} machines from Defender in {page_count} pages")
        return machines

    def add_machine_tag(self, platform_id: str, tag: str) -> None:
        """Add a tag to one machine. Single attempt, never retried."""
        url = f"{self.base_url}/api/machines/{platform_id}/tags"
        body = {"Value": tag, "Action": TAG_ACTION_ADD}

        response = self.session.http.post(url, headers=self._headers(), json=body, max_attempts=1)
        if response is None:
            raise DefenderApiError(None, url, "no response from server")
        if not response.ok:
            raise DefenderApiError(response.status_code, url, error_detail(response))
