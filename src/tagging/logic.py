from typing import Dict, Iterable

from src.tagging.models import GroupMember, InventoryDevice, MatchedDevice, MatchResult

TAG_QUERY_FIELDS = ("DeviceDynamicTags", "RegistryDeviceTag", "DeviceManualTags")


def index_inventory(inventory: Iterable[InventoryDevice]) -> Dict[str, InventoryDevice]:
    """Map dns name to the first machine seen with that name."""
    by_name = {}
    for device in inventory:
        by_name.setdefault(device.dns_name, device)
    return by_name


def match_devices(members: Iterable[GroupMember], inventory: Iterable[InventoryDevice]) -> MatchResult:
    """
    Join group members to inventory machines on exact, case-sensitive name equality.

    When several machines share a dns name the earliest one in inventory order wins.
    A member repeated in the group (same directory id) is matched only once.
    """
    by_name = index_inventory(inventory)
    result = MatchResult()
    seen_ids = set()

    for member in members:
        if member.directory_id in seen_ids:
            continue
        seen_ids.add(member.directory_id)

        device = by_name.get(member.display_name)
        if device is None:
            result.unmatched.append(member.display_name)
            continue
        result.matched.append(MatchedDevice(
            display_name=member.display_name,
            directory_id=member.directory_id,
            platform_id=device.platform_id,
        ))

    return result


def build_hunting_query(tag: str) -> str:
    """Advanced hunting filter that finds devices carrying the tag from any tag source."""
    return " or ".join(f'{field} contains "{tag}"' for field in TAG_QUERY_FIELDS)


def is_affirmative(answer: str) -> bool:
    return answer.strip() in ("Y", "y")
