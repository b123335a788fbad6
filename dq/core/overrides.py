"""Loader for the manually curated overrides file."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from dq.core.errors import ConfigError
from dq.core.models import DuplicateResolution, Overrides

logger = logging.getLogger(__name__)

_MAP_KEYS = ("names", "descriptions", "categories")


def _string_map(payload: Dict[str, Any], key: str) -> Dict[str, str]:
    value = payload.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"overrides.{key} must be an object of id -> string")
    result: Dict[str, str] = {}
    for location_id, text in value.items():
        if not isinstance(text, str):
            raise ConfigError(f"overrides.{key}[{location_id!r}] must be a string")
        result[str(location_id)] = text
    return result


def _duplicates(payload: Dict[str, Any]) -> List[DuplicateResolution]:
    entries = payload.get("duplicates") or []
    if not isinstance(entries, list):
        raise ConfigError("overrides.duplicates must be a list")

    resolutions: List[DuplicateResolution] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict) or not isinstance(entry.get("keep"), str):
            raise ConfigError(f"overrides.duplicates[{index}] needs a string 'keep'")
        delete = entry.get("delete") or []
        if not isinstance(delete, list) or not all(isinstance(item, str) for item in delete):
            raise ConfigError(f"overrides.duplicates[{index}].delete must be a list of ids")
        resolutions.append(DuplicateResolution(keep=entry["keep"], delete=list(delete), reason=entry.get("reason")))
    return resolutions


def parse_overrides(payload: Dict[str, Any]) -> Overrides:
    """Validate a decoded overrides document; missing keys default to empty."""
    if not isinstance(payload, dict):
        raise ConfigError("overrides document must be a JSON object")

    maps = {key: _string_map(payload, key) for key in _MAP_KEYS}
    duplicates = _duplicates(payload)

    skip = payload.get("skip") or []
    if not isinstance(skip, list):
        raise ConfigError("overrides.skip must be a list of ids")

    kept = {entry.keep for entry in duplicates}
    for entry in duplicates:
        for location_id in entry.delete:
            if location_id in kept:
                logger.warning("Override marks %s as both keep and delete; keeping it", location_id)

    version = payload.get("version")
    return Overrides(
        names=maps["names"],
        descriptions=maps["descriptions"],
        categories=maps["categories"],
        duplicates=duplicates,
        skip=frozenset(str(item) for item in skip),
        version=str(version) if version is not None else None,
    )


def load_overrides(path: Union[str, Path]) -> Overrides:
    """Read the overrides file once for a run."""
    override_path = Path(path)
    if not override_path.exists():
        logger.warning("Overrides file %s not found; continuing without overrides", override_path)
        return Overrides()

    try:
        with override_path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"overrides file {override_path} is not valid JSON: {exc}") from exc

    overrides = parse_overrides(payload)
    logger.info(
        "Loaded overrides v%s: %d names, %d descriptions, %d categories, %d duplicate entries, %d skipped",
        overrides.version or "?",
        len(overrides.names),
        len(overrides.descriptions),
        len(overrides.categories),
        len(overrides.duplicates),
        len(overrides.skip),
    )
    return overrides
