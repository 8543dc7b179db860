from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from transit_replay.app.ports.output import IGtfsRepository
from transit_replay.domain.exceptions import GtfsLoadError
from transit_replay.domain.models.gtfs import GtfsTables, Row

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("routes.txt", "trips.txt", "stop_times.txt", "stops.txt")
OPTIONAL_TABLES = ("shapes.txt",)


@dataclass(slots=True)
class LocalGtfsRepository(IGtfsRepository):
    """Loads GTFS tables from a directory of .txt files.

    Env vars:
      - GTFS_PATH: path to directory containing routes.txt, trips.txt,
        stop_times.txt, stops.txt and optionally shapes.txt
    """

    base_path: str | Path | None = None

    def _base(self) -> Path:
        value = self.base_path or os.getenv("GTFS_PATH") or "data/gtfs"
        return Path(value)

    def load_tables(self) -> GtfsTables:
        base = self._base()
        if not base.is_dir():
            raise GtfsLoadError(str(base), "GTFS directory not found")

        routes, trips, stop_times, stops = (
            self._read_required(base / name) for name in REQUIRED_TABLES
        )

        shapes: tuple[Row, ...] = ()
        shapes_path = base / "shapes.txt"
        if shapes_path.exists():
            try:
                shapes = _read_csv(shapes_path)
            except (OSError, csv.Error, UnicodeDecodeError, GtfsLoadError) as exc:
                logger.warning(
                    "Ignoring unreadable optional table %s: %s", shapes_path, exc
                )

        return GtfsTables(
            routes=routes,
            trips=trips,
            stop_times=stop_times,
            stops=stops,
            shapes=shapes,
        )

    def _read_required(self, path: Path) -> tuple[Row, ...]:
        if not path.exists():
            raise GtfsLoadError(path.name, f"file not found in {path.parent}")
        try:
            rows = _read_csv(path)
        except (OSError, csv.Error, UnicodeDecodeError) as exc:
            raise GtfsLoadError(path.name, str(exc)) from exc
        logger.info("Loaded %s: %d rows", path.name, len(rows))
        return rows


def _read_csv(path: Path) -> tuple[Row, ...]:
    # utf-8-sig: many published feeds start with a BOM.
    with path.open("r", encoding="utf-8-sig", newline="") as fp:
        reader = csv.DictReader(fp)
        if not reader.fieldnames:
            raise GtfsLoadError(path.name, "missing header row")
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
        return tuple(dict(row) for row in reader)
