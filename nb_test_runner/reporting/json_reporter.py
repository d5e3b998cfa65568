"""JSON report generator for test runs.

Generates structured JSON reports from a run summary.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..runner.result_collector import RunSummary


class JsonReporter:
    """Generates JSON reports from run summaries."""

    def generate(self, summary: RunSummary) -> dict[str, Any]:
        """Generate a JSON report from a run summary.

        Args:
            summary: Summary collected during the run.

        Returns:
            Report dictionary ready for JSON serialization.
        """
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "target": summary.target,
            "status": "passed" if summary.all_passed else "failed",
            "summary": {
                "total": summary.total,
                "passed": summary.passed,
                "failed": summary.failed_count,
                "skipped": summary.skipped_count,
                "duration_s": summary.duration_s,
            },
            "failures": [
                {
                    "name": f.name,
                    "message": f.message,
                    "stack_trace": f.stack_trace,
                }
                for f in summary.failures
            ],
            "skips": [
                {"name": s.name, "reason": s.reason}
                for s in summary.skips
            ],
            "errors": list(summary.errors),
        }

    def save(self, report: dict[str, Any], path: Path) -> Path:
        """Save report to a JSON file.

        Args:
            report: Report dictionary.
            path: Output file path.

        Returns:
            Path to the saved file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        return path

