"""
Microsoft Entra ID group lookups through Microsoft Graph.
"""

import logging
from typing import Iterator, List, Dict, Any, Optional

import requests

from services.azure_auth import TaggingSession
from src.tagging.errors import GraphApiError, GroupNotFoundError
from src.tagging.models import GroupMember
from src.utils.http_utils import bearer_headers, error_detail

logger = logging.getLogger(__name__)

DEVICE_ODATA_TYPE = "#microsoft.graph.device"
# Graph answers 400 for malformed ids and 403 when the signed-in user cannot read the group
GROUP_NOT_FOUND_STATUSES = {400, 403, 404}


class EntraIdClient:
    """Client for the Graph group, member and device endpoints."""

    def __init__(self, session: TaggingSession, base_url: str):
        self.session = session
        self.base_url = base_url.rstrip('/')

    def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        try:
            response = self.session.http.get(url, headers=bearer_headers(self.session.graph_token), params=params)
        except requests.exceptions.RequestException as e:
            raise GraphApiError(None, url, str(e))
        if response is None:
            raise GraphApiError(None, url, "no response after repeated connection failures")
        return response

    def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        response = self._get(url, params)
        if not response.ok:
            raise GraphApiError(response.status_code, url, error_detail(response))
        return response.json()

    def get_group(self, group_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/groups/{group_id}"
        response = self._get(url, params={"$select": "id,displayName"})
        if response.status_code in GROUP_NOT_FOUND_STATUSES:
            raise GroupNotFoundError(group_id, error_detail(response))
        if not response.ok:
            raise GraphApiError(response.status_code, url, error_detail(response))
        return response.json()

    def iter_group_members(self, group_id: str) -> Iterator[Dict[str, Any]]:
        """Yield every direct member of the group, following @odata.nextLink."""
        url = f"{self.base_url}/groups/{group_id}/members"
        params = {"$select": "id,displayName"}

        while url:
            payload = self._get_json(url, params)
            yield from payload.get("value", [])
            url = payload.get("@odata.nextLink")
            params = None

    def get_device(self, directory_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/devices/{directory_id}"
        return self._get_json(url, params={"$select": "id,displayName"})

    def get_device_members(self, group_id: str) -> List[GroupMember]:
        """
        Resolve the device members of a group.

        Users, nested groups and other member types are skipped. Each device
        member is looked up individually to read its display name.
        """
        group = self.get_group(group_id)
        logger.info(f"Found group '{group.get('displayName', group_id)}'")

        members = []
        for member in self.iter_group_members(group_id):
            if member.get("@odata.type") != DEVICE_ODATA_TYPE:
                continue

            device = self.get_device(member["id"])
            display_name = device.get("displayName")
            if not display_name:
                logger.warning(f"Device {member['id']} has no display name, skipping")
                continue
            members.append(GroupMember(display_name=display_name, directory_id=device.get("id", member["id"])))

        logger.info(f"Group contains {len(members)} devices")
        return members
