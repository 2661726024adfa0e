from typing import Optional


class DeviceTaggingError(Exception):
    """Base class for errors that abort a tagging run."""


class AuthenticationError(DeviceTaggingError):
    """Token acquisition for Graph or Defender failed."""


class ApiError(DeviceTaggingError):
    """Non-success response from a remote API, with the remote error text."""
    service = "API"

    def __init__(self, status_code: Optional[int], endpoint: str, detail: str):
        self.status_code = status_code
        self.endpoint = endpoint
        self.detail = detail
        status = status_code if status_code is not None else "no response"
        super().__init__(f"{self.service} error ({status}) on {endpoint}: {detail}")


class GraphApiError(ApiError):
    service = "Microsoft Graph"


class DefenderApiError(ApiError):
    service = "Defender for Endpoint"


class GroupNotFoundError(DeviceTaggingError):
    def __init__(self, group_id: str, detail: str = ""):
        self.group_id = group_id
        self.detail = detail
        message = f"Group '{group_id}' not found or not accessible"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InventoryFetchError(DeviceTaggingError):
    """A page of the Defender machine inventory could not be fetched."""
