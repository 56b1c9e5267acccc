"""Load the log extraction configuration for the managed service."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from procwatch.classifier import ExtractionRule, compile_rules
from procwatch.errors import RuleConfigError

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionTarget:
    """One log file to watch, with the rules used to tag its lines."""

    group_name: str
    file_path: str
    rules: tuple[ExtractionRule, ...] = field(default_factory=tuple)


def parse_extraction_config(data: Any) -> list[ExtractionTarget]:
    """Build targets from an already-decoded config document.

    Expected shape::

        {"groups": [{"groupName": "app",
                     "files": [{"filePath": "/var/log/app.log",
                                "tags": [{"tagName": "Deadlock", "regex": "deadlock"}]}]}]}
    """
    if not isinstance(data, dict) or not isinstance(data.get("groups"), list):
        raise RuleConfigError("Extraction config must be an object with a 'groups' list")

    targets: list[ExtractionTarget] = []
    for group in data["groups"]:
        group_name = group.get("groupName") if isinstance(group, dict) else None
        if not group_name:
            raise RuleConfigError(f"Extraction group without groupName: {group!r}")
        for entry in group.get("files", []):
            file_path = entry.get("filePath") if isinstance(entry, dict) else None
            if not file_path:
                raise RuleConfigError(f"File entry without filePath in group {group_name!r}")
            rules = compile_rules(entry.get("tags", []))
            targets.append(ExtractionTarget(group_name, str(Path(file_path).expanduser()), tuple(rules)))
    return targets


def load_extraction_config(path: str | Path) -> list[ExtractionTarget]:
    """Read and validate the JSON extraction config at *path*.

    Any problem (missing file, bad JSON, bad regex) raises RuleConfigError.
    """
    path = Path(path).expanduser()
    try:
        data = json.loads(path.read_text())
    except OSError as e:
        raise RuleConfigError(f"Cannot read extraction config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise RuleConfigError(f"Extraction config {path} is not valid JSON: {e}") from e

    targets = parse_extraction_config(data)
    log.info("Loaded %d extraction target(s) from %s", len(targets), path)
    return targets
