from src.tagging.logic import match_devices, build_hunting_query, index_inventory, is_affirmative
from src.tagging.models import GroupMember, InventoryDevice, MatchedDevice


def test_match_devices_splits_matched_and_unmatched():
    members = [GroupMember("web01", "dir-1"), GroupMember("web02", "dir-2")]
    inventory = [InventoryDevice("web01", "id-A"), InventoryDevice("web03", "id-B")]

    result = match_devices(members, inventory)

    assert result.matched == [MatchedDevice("web01", "dir-1", "id-A")]
    assert result.unmatched == ["web02"]


def test_first_inventory_record_wins_on_duplicate_names():
    members = [GroupMember("web01", "dir-1")]
    inventory = [
        InventoryDevice("web01", "id-first"),
        InventoryDevice("web02", "id-other"),
        InventoryDevice("web01", "id-second"),
    ]

    for _ in range(3):
        result = match_devices(members, inventory)
        assert [m.platform_id for m in result.matched] == ["id-first"]


def test_member_listed_twice_is_matched_once():
    members = [GroupMember("web01", "dir-1"), GroupMember("web01", "dir-1")]
    inventory = [InventoryDevice("web01", "id-A")]

    result = match_devices(members, inventory)

    assert len(result.matched) == 1
    assert result.unmatched == []


def test_matching_is_case_sensitive_and_exact():
    members = [GroupMember("WEB01", "dir-1"), GroupMember("web02", "dir-2")]
    inventory = [InventoryDevice("web01", "id-A"), InventoryDevice("web02.corp.example.com", "id-B")]

    result = match_devices(members, inventory)

    assert result.matched == []
    assert result.unmatched == ["WEB01", "web02"]


def test_index_inventory_keeps_first_entry():
    index = index_inventory([InventoryDevice("a", "1"), InventoryDevice("a", "2")])
    assert index["a"].platform_id == "1"


def test_hunting_query_for_finance():
    assert build_hunting_query("Finance") == (
        'DeviceDynamicTags contains "Finance" or RegistryDeviceTag contains "Finance" '
        'or DeviceManualTags contains "Finance"'
    )


def test_hunting_query_substitutes_tag_literally():
    assert build_hunting_query("Ring 1") == (
        'DeviceDynamicTags contains "Ring 1" or RegistryDeviceTag contains "Ring 1" '
        'or DeviceManualTags contains "Ring 1"'
    )


def test_is_affirmative():
    assert is_affirmative("Y")
    assert is_affirmative("y")
    assert is_affirmative(" y\n")
    assert not is_affirmative("yes")
    assert not is_affirmative("n")
    assert not is_affirmative("")
