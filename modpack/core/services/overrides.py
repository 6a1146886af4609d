"""
Overridden artifacts — caller-supplied replacements for resolved artifacts.

The compact form is a ``|``-separated list of five-field coordinates:

    grp:art:1.0::jar | grp2:art2:2.0:classifier:jar

Each entry is keyed by ``group:artifact`` (``group:artifact::classifier``
when classified) so it can replace the artifact a module template names.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

OVERRIDE_SEPARATOR = "|"


def parse_overridden_artifacts(text: str) -> dict[str, str]:
    """Parse the compact overridden-artifacts string.

    Returns:
        Mapping of ``g:a[::c]`` key to normalized ``g:a:v:c:ext``.

    Raises:
        ValueError: If any entry is not a valid five-field coordinate.
    """
    result: dict[str, str] = {}
    for entry in text.split(OVERRIDE_SEPARATOR):
        fields = [f.strip() for f in entry.strip().split(":")]
        if len(fields) != 5:
            raise ValueError(f"Unexpected artifact coordinates format: '{entry.strip()}'")
        group_id, artifact_id, version, classifier, extension = fields
        if not group_id or not artifact_id or not version or not extension:
            raise ValueError(f"Unexpected artifact coordinates format: '{entry.strip()}'")
        key = f"{group_id}:{artifact_id}"
        if classifier:
            key = f"{key}::{classifier}"
        result[key] = ":".join(fields)
    logger.debug("Parsed %d overridden artifact(s)", len(result))
    return result
