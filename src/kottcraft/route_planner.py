"""Main route planner class."""

import logging
from typing import Dict, List, Optional, Tuple, Union

from .models import RouteMode, RouteResult, Station
from .excel_loader import ExcelLoader
from .routing import DEFAULT_TRANSFER_PENALTY, Adjacency, build_adjacency, count_transfers, find_route

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
DEFAULT_INITIAL_STATION_HINT = "centralplan"


class SubwayRoutePlanner:
    """
    Plans routes across a subway network loaded from a workbook.

    This class provides methods to:
    - Look up and search stations by name
    - Plan routes by fewest stops or shortest distance
    - Render a route as a readable itinerary
    """

    def __init__(self, data_path: Optional[str] = None, transfer_penalty: float = DEFAULT_TRANSFER_PENALTY):
        """
        Initialize the planner.

        Args:
            data_path: Workbook path or http(s) URL to load on init. If None, call
                      load_data() or populate excel_loader manually.
            transfer_penalty: Cost added for each line change while planning.
        """
        self.excel_loader = ExcelLoader()
        self.transfer_penalty = transfer_penalty
        self._adjacency: Optional[Adjacency] = None
        self._adjacency_key: Optional[Tuple] = None

        if data_path:
            self.load_data(data_path)

    def load_data(self, data_path: str) -> None:
        """
        Load stations and connections from a workbook.

        Args:
            data_path: Local path or http(s) URL of the workbook.
        """
        if data_path.startswith(("http://", "https://")):
            self.excel_loader.load_from_url(data_path)
        else:
            self.excel_loader.load_from_file(data_path)
        self._adjacency = None
        self._adjacency_key = None

    @property
    def stations(self) -> List[Station]:
        return list(self.excel_loader.stations.values())

    def get_adjacency(self) -> Adjacency:
        """
        Return the adjacency map for the current connections.

        The map is cached and rebuilt whenever the connection set changes.
        """
        key = tuple(self.excel_loader.connections)
        if self._adjacency is None or key != self._adjacency_key:
            logger.debug("Rebuilding adjacency cache")
            self._adjacency = build_adjacency(key)
            self._adjacency_key = key
        return self._adjacency

    def get_station(self, name: str) -> Station:
        """
        Get a station by exact name.

        Raises:
            ValueError: If station not found.
        """
        return self.excel_loader.get_station(name)

    def search_stations(self, term: str, limit: int = SEARCH_LIMIT) -> List[Tuple[Station, List[str]]]:
        """
        Find stations whose name contains term, with the lines serving each.

        Args:
            term: Search text (case-insensitive). Blank text matches nothing.
            limit: Maximum number of results.

        Returns:
            List of (Station, sorted line labels) tuples.
        """
        if not term.strip():
            return []

        matches = self.excel_loader.find_stations_by_name(term)[:limit]
        return [(station, sorted(self.excel_loader.station_lines(station.name))) for station in matches]

    def resolve_initial_station(
        self,
        query: Optional[str] = None,
        default_hint: str = DEFAULT_INITIAL_STATION_HINT,
    ) -> Optional[Station]:
        """
        Pick the station to focus on at startup.

        Tries an exact case-insensitive name match for query, then a partial
        match, then the first station whose name contains default_hint.
        """
        stations = self.stations

        if query:
            target = query.lower()
            for station in stations:
                if station.name.lower() == target:
                    return station
            for station in stations:
                if target in station.name.lower():
                    return station
            logger.warning(f"No station matching '{query}', falling back to '{default_hint}'")

        hint = default_hint.lower()
        for station in stations:
            if hint in station.name.lower():
                return station
        return None

    def plan_route(self, start: str, goal: str, mode: Union[RouteMode, str] = RouteMode.HOPS) -> Optional[RouteResult]:
        """
        Plan a route between two stations.

        Args:
            start: Start station name.
            goal: Destination station name.
            mode: "hops" (fewest stops) or "distance" (shortest distance).

        Returns:
            RouteResult, or None if either station is unknown or unreachable.
        """
        start = start.strip()
        goal = goal.strip()

        result = find_route(
            start,
            goal,
            self.excel_loader.connections,
            self.stations,
            mode=mode,
            transfer_penalty=self.transfer_penalty,
            adjacency=self.get_adjacency(),
        )

        if result is None:
            logger.warning(f"No route found from '{start}' to '{goal}'")
        else:
            logger.info(
                f"Planned route {start} -> {goal}: {result.distance} stops, {count_transfers(result)} transfers"
            )
        return result

    @staticmethod
    def describe_route(result: RouteResult) -> List[str]:
        """
        Render a route as itinerary lines, e.g. "A → B (Red)".
        """
        if not result.steps:
            return ["Start and destination are the same."]
        return [f"{step.from_station} → {step.to_station} ({step.line})" for step in result.steps]

    def summary(self) -> Dict[str, int]:
        """Counts of loaded stations, connections and lines."""
        return {
            "stations": len(self.excel_loader.stations),
            "connections": len(self.excel_loader.connections),
            "lines": len(self.excel_loader.lines()),
        }
