from __future__ import annotations

from abc import ABC, abstractmethod

from transit_replay.domain.models.gtfs import GtfsTables


class IGtfsRepository(ABC):
    """Port for reading the static GTFS tables."""

    @abstractmethod
    def load_tables(self) -> GtfsTables:
        """Return the raw rows; raises GtfsLoadError if a required table fails."""

        raise NotImplementedError
