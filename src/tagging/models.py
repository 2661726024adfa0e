from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TagOutcome(Enum):
    """Result of a single tag write."""
    SUCCESS = "Success"
    FAILURE = "Failure"


@dataclass(frozen=True)
class GroupMember:
    """A device member of the Entra ID group."""
    display_name: str
    directory_id: str


@dataclass(frozen=True)
class InventoryDevice:
    """A machine from the Defender for Endpoint inventory."""
    dns_name: str
    platform_id: str


@dataclass(frozen=True)
class MatchedDevice:
    display_name: str
    directory_id: str
    platform_id: str


@dataclass(frozen=True)
class TagResult:
    device: MatchedDevice
    outcome: TagOutcome
    error_detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is TagOutcome.SUCCESS


@dataclass
class MatchResult:
    """Output of joining group members to the machine inventory."""
    matched: List[MatchedDevice] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)


@dataclass
class RunSummary:
    """
    Counts reported at the end of a run.
    """
    tag: str
    group_device_count: int = 0
    matched: List[MatchedDevice] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    results: List[TagResult] = field(default_factory=list)

    @property
    def tagged_count(self) -> int:
        return sum(1 for result in self.results if result.succeeded)

    @property
    def failed_count(self) -> int:
        return sum(1 for result in self.results if not result.succeeded)
