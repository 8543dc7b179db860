from .simulation import (
    GtfsLoadError,
    InvalidConfiguration,
    SimulationError,
)

__all__ = [
    "GtfsLoadError",
    "InvalidConfiguration",
    "SimulationError",
]
