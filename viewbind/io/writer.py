"""
Writer — serialize the generation report to JSON.

Filesystem layout:
    <output_dir>/viewbind_report.json
"""
import json
from pathlib import Path

from viewbind.io.schema import GenerationReport

REPORT_FILENAME = "viewbind_report.json"


def write_report(report: GenerationReport, output_dir: Path) -> Path:
    """
    Write viewbind_report.json into *output_dir*.

    Creates *output_dir* if it does not exist.
    Returns the report path.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    report_path = output_dir / REPORT_FILENAME
    report_path.write_text(
        json.dumps(
            report.model_dump(mode="json"),
            indent=2,
            sort_keys=True,
        )
        + "\n"
    )
    return report_path
