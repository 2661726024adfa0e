"""
Tag the Defender for Endpoint machines that belong to an Entra ID device group.

Reads the device members of the group from Microsoft Graph, matches them to the
Defender machine inventory by exact device name, asks for confirmation, then
adds the tag to every matched machine and prints a summary with an advanced
hunting filter for the tag.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from config import get_config, Config, ConfigurationError
from services.azure_auth import open_session, TaggingSession
from services.defender import DefenderClient
from services.entra_id import EntraIdClient
from src.tagging.errors import DeviceTaggingError
from src.tagging.logic import match_devices, is_affirmative
from src.tagging.models import RunSummary
from src.tagging.report import print_summary, write_excel_report
from src.tagging.tagger import tag_devices
from src.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="group-device-tagging",
        description="Tag Defender for Endpoint devices that are members of an Entra ID group"
    )
    parser.add_argument("--group-id", required=True, help="Object ID of the Entra ID group")
    parser.add_argument("--tag", required=True, help="Tag to add to each matched Defender device")
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    parser.add_argument("--dry-run", action="store_true", help="Show matches without tagging anything")
    parser.add_argument("--device-code", action="store_true",
                        help="Sign in with the device code flow instead of a browser")
    parser.add_argument("--report", type=Path, help="Write per-device results to this Excel file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if not args.tag.strip():
        parser.error("--tag must not be blank")
    return args


def confirm(device_count: int, tag: str, input_func: Callable[[str], str] = input) -> bool:
    try:
        answer = input_func(f"Add tag '{tag}' to {device_count} devices? (Y/N): ")
    except EOFError:
        return False
    return is_affirmative(answer)


def collect_and_tag(session: TaggingSession, args, config: Config,
                    input_func: Callable[[str], str] = input) -> RunSummary:
    """Run every stage of the workflow against an authenticated session."""
    entra_id = EntraIdClient(session, config.graph_api_base_url)
    defender = DefenderClient(session, config.defender_api_base_url)
    summary = RunSummary(tag=args.tag)

    members = entra_id.get_device_members(args.group_id)
    summary.group_device_count = len(members)
    if not members:
        logger.warning(f"Group {args.group_id} has no device members, nothing to tag")
        return summary

    inventory = defender.list_machines()
    match = match_devices(members, inventory)
    summary.matched = match.matched
    summary.unmatched = match.unmatched

    for name in match.unmatched:
        logger.warning(f"{name} not found in Defender")

    if not match.matched:
        logger.warning("None of the group devices were found in Defender, nothing to tag")
        return summary

    if args.dry_run:
        for device in match.matched:
            logger.info(f"Would tag {device.display_name} ({device.platform_id})")
        return summary

    if not args.yes and not confirm(len(match.matched), args.tag, input_func):
        logger.info("Tagging cancelled, no devices were changed")
        return summary

    summary.results = tag_devices(defender, match.matched, args.tag)
    return summary


def run(args, config: Config, session_factory=open_session,
        input_func: Callable[[str], str] = input) -> int:
    with session_factory(config, use_device_code=args.device_code) as session:
        summary = collect_and_tag(session, args, config, input_func)

    print_summary(summary)
    if args.report and summary.results:
        try:
            write_excel_report(summary, args.report)
        except OSError as e:
            logger.error(f"Could not write report: {e}")
            return 1
    return 0


def main(argv=None, session_factory=open_session, input_func: Optional[Callable[[str], str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = get_config()
        config.validate()
        return run(args, config, session_factory, input_func or input)
    except (ConfigurationError, DeviceTaggingError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted, session released")
        return 1


if __name__ == "__main__":
    sys.exit(main())
