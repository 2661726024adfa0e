import logging
from typing import List, Sequence

import requests
from tqdm import tqdm

from services.defender import DefenderClient
from src.tagging.errors import DefenderApiError
from src.tagging.models import MatchedDevice, TagResult, TagOutcome

logger = logging.getLogger(__name__)


def tag_device(client: DefenderClient, device: MatchedDevice, tag: str) -> TagResult:
    """Add the tag to one machine. A failed write is final for this run."""
    try:
        client.add_machine_tag(device.platform_id, tag)
    except (DefenderApiError, requests.exceptions.RequestException) as e:
        logger.error(f"Failed to tag {device.display_name} ({device.platform_id}): {e}")
        return TagResult(device=device, outcome=TagOutcome.FAILURE, error_detail=str(e))

    logger.debug(f"Tagged {device.display_name} with '{tag}'")
    return TagResult(device=device, outcome=TagOutcome.SUCCESS)


def tag_devices(client: DefenderClient, devices: Sequence[MatchedDevice], tag: str,
                show_progress: bool = True) -> List[TagResult]:
    """Tag each matched machine in turn, one request in flight at a time."""
    results = []
    for device in tqdm(devices, desc=f"Tagging devices with '{tag}'", disable=not show_progress):
        results.append(tag_device(client, device, tag))

    tagged = sum(1 for result in results if result.succeeded)
    logger.info(f"Tagged {tagged} of {len(results)} devices")
    return results
