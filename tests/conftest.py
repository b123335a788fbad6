import sys
from dataclasses import asdict
from pathlib import Path

import pytest

# Ensure the `dq` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dq.core.errors import NotFoundError, StoreError  # noqa: E402
from dq.core.models import Location  # noqa: E402


def make_location(location_id="loc-1", name="Kinkaku-ji", **fields):
    defaults = dict(
        city="Kyoto",
        region="Kansai",
        category="temple",
        description="A Zen temple covered in gold leaf, famous for its reflection in the pond.",
        latitude=35.039370,
        longitude=135.729243,
    )
    defaults.update(fields)
    return Location(id=location_id, name=name, **defaults)


def to_row(location):
    row = asdict(location)
    row["lat"] = row.pop("latitude")
    row["lng"] = row.pop("longitude")
    return row


class FakeStore:
    """In-memory record source with the same surface as ``LocationStore``.

    ``fail_on`` maps an operation key to an error message; the matching call
    raises ``StoreError``. Keys: ``insert``, ``update:<id>``, ``delete:<id>``,
    ``repoint:<table>``, ``array:<table>``.
    """

    def __init__(self, locations=(), tables=None):
        self.rows = {loc.id: to_row(loc) for loc in locations}
        self.tables = tables or {}
        self.fail_on = {}
        self.writes = []

    def _maybe_fail(self, key):
        if key in self.fail_on:
            raise StoreError(self.fail_on[key])

    def scan(self, city=None, region=None, category=None, limit=None):
        rows = sorted(self.rows.values(), key=lambda row: (row["name"], row["id"]))
        if city:
            rows = [row for row in rows if row["city"].lower() == city.lower()]
        if region:
            rows = [row for row in rows if row["region"].lower() == region.lower()]
        if category:
            rows = [row for row in rows if row["category"] == category]
        if limit is not None:
            rows = rows[:limit]
        return [Location.from_row(row) for row in rows]

    def get(self, location_id):
        row = self.rows.get(location_id)
        return Location.from_row(row) if row else None

    def exists(self, location_id):
        return location_id in self.rows

    def update(self, location_id, fields):
        self._maybe_fail(f"update:{location_id}")
        if location_id not in self.rows:
            raise NotFoundError(f"location {location_id} not found")
        self.writes.append(("update", location_id, dict(fields)))
        self.rows[location_id].update(fields)

    def delete(self, location_id):
        self._maybe_fail(f"delete:{location_id}")
        self.writes.append(("delete", location_id))
        return self.rows.pop(location_id, None) is not None

    def fetch_row(self, location_id):
        row = self.rows.get(location_id)
        return dict(row) if row else None

    def insert_row(self, row):
        self._maybe_fail("insert")
        self.writes.append(("insert", row["id"]))
        self.rows[row["id"]] = dict(row)

    def repoint(self, table, column, old_id, new_id):
        self._maybe_fail(f"repoint:{table}")
        self.writes.append(("repoint", table, old_id, new_id))
        count = 0
        for record in self.tables.get(table, []):
            if record.get(column) == old_id:
                record[column] = new_id
                count += 1
        return count

    def replace_in_array(self, table, column, old_id, new_id):
        self._maybe_fail(f"array:{table}")
        self.writes.append(("array", table, old_id, new_id))
        count = 0
        for record in self.tables.get(table, []):
            values = record.get(column) or []
            if old_id in values:
                record[column] = [new_id if value == old_id else value for value in values]
                count += 1
        return count


@pytest.fixture
def location_factory():
    return make_location


@pytest.fixture
def store():
    return FakeStore()
