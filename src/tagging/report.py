"""
Console summary and optional Excel export of a tagging run.
"""
import logging
from pathlib import Path
from typing import List

import pandas as pd
from tabulate import tabulate

from src.tagging.logic import build_hunting_query
from src.tagging.models import RunSummary

logger = logging.getLogger(__name__)

REPORT_COLUMNS = ["Device", "Directory ID", "Defender ID", "Outcome", "Error"]


def format_summary(summary: RunSummary) -> str:
    """Render the end-of-run summary. The last line is the hunting query."""
    lines: List[str] = []

    if summary.results:
        rows = [
            [r.device.display_name, r.device.platform_id, r.outcome.value, r.error_detail or ""]
            for r in summary.results
        ]
        lines.append(tabulate(rows, headers=["Device", "Defender ID", "Outcome", "Error"], tablefmt="github"))
        lines.append("")

    lines.append(f"Group devices: {summary.group_device_count}")
    lines.append(f"Matched:       {len(summary.matched)}")
    lines.append(f"Unmatched:     {len(summary.unmatched)}")
    lines.append(f"Tagged:        {summary.tagged_count}")
    lines.append(f"Failed:        {summary.failed_count}")

    if summary.unmatched:
        lines.append("")
        lines.append("Not found in Defender: " + ", ".join(summary.unmatched))

    lines.append("")
    lines.append("Advanced hunting filter:")
    lines.append(build_hunting_query(summary.tag))
    return "\n".join(lines)


def print_summary(summary: RunSummary) -> None:
    print(format_summary(summary), flush=True)


def results_dataframe(summary: RunSummary) -> pd.DataFrame:
    rows = [
        {
            "Device": r.device.display_name,
            "Directory ID": r.device.directory_id,
            "Defender ID": r.device.platform_id,
            "Outcome": r.outcome.value,
            "Error": r.error_detail or "",
        }
        for r in summary.results
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def write_excel_report(summary: RunSummary, file_path: Path) -> None:
    """Write per-device tag results to an Excel file."""
    df = results_dataframe(summary)
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_excel(file_path, index=False, engine="openpyxl")
        logger.info(f"Successfully wrote {len(df)} records to {file_path}")
    except PermissionError:
        logger.error(f"Permission denied when writing to {file_path}")
        raise
    except OSError as e:
        logger.error(f"OS error when writing to {file_path}: {e}")
        raise
