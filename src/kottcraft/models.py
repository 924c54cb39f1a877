"""Data models for the Kottcraft subway route planner."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class RouteMode(Enum):
    """Cost policy used when ranking routes."""
    HOPS = "hops"  # Unit weight per connection
    DISTANCE = "distance"  # Euclidean weight from station coordinates


@dataclass(frozen=True)
class Station:
    """Represents a station on the map."""
    name: str
    x: float
    y: float


@dataclass(frozen=True)
class Connection:
    """Represents one direct link between two stations on a line."""
    from_station: str
    to_station: str
    line: str


@dataclass(frozen=True)
class NeighborEdge:
    """Outgoing edge in the adjacency map."""
    station: str
    line: str


@dataclass(frozen=True)
class RouteStep:
    """One traversed connection, in the direction actually travelled."""
    from_station: str
    to_station: str
    line: str


@dataclass(frozen=True)
class RouteResult:
    """Planned route between two stations."""
    steps: List[RouteStep] = field(default_factory=list)
    distance: int = 0  # Hop count, independent of the ranking mode


@dataclass
class DataSet:
    """Stations and connections loaded from a workbook."""
    stations: List[Station]
    connections: List[Connection]
