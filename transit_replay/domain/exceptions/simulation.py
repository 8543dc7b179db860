class SimulationError(Exception):
    """Base exception for the timetable simulation."""


class InvalidConfiguration(SimulationError, ValueError):
    """Raised when a caller supplies an invalid clock or startup parameter."""


class GtfsLoadError(SimulationError, RuntimeError):
    """Raised when a required static table cannot be read or parsed."""

    def __init__(self, table: str, reason: str) -> None:
        super().__init__(f"Failed to load {table}: {reason}")
        self.table = table
        self.reason = reason
