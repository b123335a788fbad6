"""Check an overrides file before committing it.

    python scripts/validate_overrides.py [path]

Exits non-zero when the file is malformed or references ids that are not in
the catalog (only checked when DATABASE_URL is set).
"""

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dq.core.config import get_settings  # noqa: E402
from dq.core.db import LocationStore, init_pool  # noqa: E402
from dq.core.errors import ConfigError  # noqa: E402
from dq.core.overrides import load_overrides  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
logger = logging.getLogger("validate_overrides")

settings = get_settings()
path = sys.argv[1] if len(sys.argv) > 1 else settings.overrides_path

try:
    overrides = load_overrides(path)
except ConfigError as exc:
    logger.error("Invalid overrides: %s", exc)
    raise SystemExit(1)

ids = set(overrides.names) | set(overrides.descriptions) | set(overrides.categories) | set(overrides.skip)
for entry in overrides.duplicates:
    ids.add(entry.keep)
    ids.update(entry.delete)

if not settings.database_url:
    logger.info("%d ids referenced; DATABASE_URL not set, skipping existence check", len(ids))
    raise SystemExit(0)

init_pool()
store = LocationStore()
missing = sorted(location_id for location_id in ids if not store.exists(location_id))
for location_id in missing:
    logger.warning("Override references unknown location %s", location_id)
logger.info("%d ids referenced, %d missing", len(ids), len(missing))
raise SystemExit(1 if missing else 0)
