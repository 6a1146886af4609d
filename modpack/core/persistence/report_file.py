"""
Install report persistence — what the last install pass produced.

Stored as JSON in ``<output>/.modpack/install-report.json``. Writes are
atomic. The report is informational only: nothing reads it back to make
decisions, so a missing or corrupt report just means "no history".
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from modpack.core.persistence.files import write_text_atomic

logger = logging.getLogger(__name__)

DEFAULT_REPORT_DIR = ".modpack"
DEFAULT_REPORT_FILE = "install-report.json"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class ArtifactReceipt(BaseModel):
    """One installed artifact."""

    coords: str
    mode: str
    installed_version: str
    file_name: str
    reference: str
    transformed: bool = False
    excluded: bool = False
    source: str = "resolved"


class InstallReport(BaseModel):
    """Summary of one install pass."""

    schema_version: int = 1
    name: str = ""
    mode: str = "fat"
    suffix: str = ""
    created_at: str = Field(default_factory=_now_iso)
    modules: list[str] = Field(default_factory=list)
    artifacts: list[ArtifactReceipt] = Field(default_factory=list)
    excluded: list[str] = Field(default_factory=list)
    renamed_module_paths: int = 0

    @property
    def transformed_count(self) -> int:
        return sum(1 for a in self.artifacts if a.transformed)


def default_report_path(output_dir: Path) -> Path:
    """Get the default report path for an output directory."""
    return output_dir / DEFAULT_REPORT_DIR / DEFAULT_REPORT_FILE


def save_report(report: InstallReport, path: Path) -> None:
    """Save the report as JSON (atomic write)."""
    data = report.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    try:
        write_text_atomic(path, content)
    except OSError as e:
        logger.error("Failed to save install report to %s: %s", path, e)
        raise
    logger.debug("Install report saved to %s", path)


def load_report(path: Path) -> InstallReport | None:
    """Load a report, or None if it is missing or unreadable."""
    if not path.is_file():
        logger.info("No install report at %s", path)
        return None
    try:
        return InstallReport.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Cannot load install report %s: %s", path, e)
        return None
