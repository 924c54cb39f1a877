"""Excel workbook loader for subway map data."""

import io
import logging
import math
from typing import Dict, List, Optional, Set

import pandas as pd
import requests

from .models import Connection, DataSet, Station

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "subway_data.xlsx"
STATIONS_SHEET = "Stations"
CONNECTIONS_SHEET = "Connections"

# Accepted column headers after normalization, first match wins
STATION_NAME_HEADERS = ["name of the station", "station", "name"]
STATION_X_HEADERS = ["x coordinate", "x"]
STATION_Y_HEADERS = ["y coordinate", "z coordinate", "y", "z"]
CONNECTION_FROM_HEADERS = ["from", "source", "start"]
CONNECTION_TO_HEADERS = ["towards", "to", "target"]
CONNECTION_LINE_HEADERS = ["line", "route"]


def normalize_header(header) -> str:
    """Lower-case a header, trim it and collapse inner whitespace."""
    return " ".join(str(header).lower().split())


def _find_column(columns, candidates: List[str]) -> Optional[str]:
    """Return the original column whose normalized header matches a candidate."""
    header_map = {normalize_header(col): col for col in columns}
    for candidate in candidates:
        if candidate in header_map:
            return header_map[candidate]
    return None


def _cell_text(value) -> str:
    """Stringify a cell value. Empty cells become ''."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    # Excel hands back whole numbers as floats (e.g. station "12" -> 12.0)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _cell_number(value) -> Optional[float]:
    """Parse a coordinate cell. Returns None for empty or non-finite values."""
    if _cell_text(value) == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class ExcelLoader:
    """Loads and indexes stations and connections from an Excel workbook."""

    def __init__(self):
        """Initialize the loader."""
        self.stations: Dict[str, Station] = {}  # name -> Station
        self.connections: List[Connection] = []
        self.lines_by_station: Dict[str, Set[str]] = {}  # name -> {line}

    def load_from_file(self, path: str) -> None:
        """Load a workbook from a local file."""
        logger.info(f"Loading subway data from {path}")
        try:
            sheets = pd.read_excel(path, sheet_name=None)
        except Exception as e:
            logger.error(f"Failed to read workbook {path}: {e}")
            raise
        self._load_workbook(sheets)

    def load_from_url(self, url: str, timeout: float = 30) -> None:
        """Download a workbook over HTTP and load it."""
        logger.info(f"Downloading subway data from {url}")
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            sheets = pd.read_excel(io.BytesIO(response.content), sheet_name=None)
        except Exception as e:
            logger.error(f"Failed to load workbook from {url}: {e}")
            raise
        self._load_workbook(sheets)

    def load_from_frames(self, stations_df: pd.DataFrame, connections_df: pd.DataFrame) -> None:
        """
        Load stations and connections from already-read DataFrames.

        Raises:
            ValueError: If either frame yields no usable rows.
        """
        stations = self._load_stations(stations_df)
        connections = self._load_connections(connections_df)

        if not stations or not connections:
            raise ValueError("Could not parse stations and connections data")

        self.clear()
        for station in stations:
            self.stations[station.name] = station
        self.connections = connections
        for conn in connections:
            for name in (conn.from_station, conn.to_station):
                if name not in self.lines_by_station:
                    self.lines_by_station[name] = set()
                self.lines_by_station[name].add(conn.line)

        logger.info(f"Loaded {len(self.stations)} stations and {len(self.connections)} connections")

    def _load_workbook(self, sheets: Dict[str, pd.DataFrame]) -> None:
        """Pick the stations and connections sheets, by name or by position."""
        frames = list(sheets.values())
        stations_df = sheets.get(STATIONS_SHEET)
        if stations_df is None and len(frames) > 0:
            stations_df = frames[0]
        connections_df = sheets.get(CONNECTIONS_SHEET)
        if connections_df is None and len(frames) > 1:
            connections_df = frames[1]

        if stations_df is None or connections_df is None:
            raise ValueError(
                f"Excel file must contain '{STATIONS_SHEET}' and '{CONNECTIONS_SHEET}' sheets"
            )

        self.load_from_frames(stations_df, connections_df)

    def _load_stations(self, df: pd.DataFrame) -> List[Station]:
        """Parse station rows. Rows without a name or finite coordinates are dropped."""
        name_col = _find_column(df.columns, STATION_NAME_HEADERS)
        x_col = _find_column(df.columns, STATION_X_HEADERS)
        y_col = _find_column(df.columns, STATION_Y_HEADERS)

        if name_col is None or x_col is None or y_col is None:
            logger.warning(f"Stations sheet is missing required columns: {list(df.columns)}")
            return []

        stations = []
        skipped = 0
        for row in df.to_dict("records"):
            name = _cell_text(row[name_col])
            x = _cell_number(row[x_col])
            y = _cell_number(row[y_col])
            if not name or x is None or y is None:
                skipped += 1
                continue
            stations.append(Station(name=name, x=x, y=y))

        if skipped:
            logger.warning(f"Skipped {skipped} incomplete station rows")
        return stations

    def _load_connections(self, df: pd.DataFrame) -> List[Connection]:
        """Parse connection rows. Rows with an empty endpoint or line are dropped."""
        from_col = _find_column(df.columns, CONNECTION_FROM_HEADERS)
        to_col = _find_column(df.columns, CONNECTION_TO_HEADERS)
        line_col = _find_column(df.columns, CONNECTION_LINE_HEADERS)

        if from_col is None or to_col is None or line_col is None:
            logger.warning(f"Connections sheet is missing required columns: {list(df.columns)}")
            return []

        connections = []
        skipped = 0
        for row in df.to_dict("records"):
            from_station = _cell_text(row[from_col])
            to_station = _cell_text(row[to_col])
            line = _cell_text(row[line_col])
            if not from_station or not to_station or not line:
                skipped += 1
                continue
            connections.append(Connection(from_station=from_station, to_station=to_station, line=line))

        if skipped:
            logger.warning(f"Skipped {skipped} incomplete connection rows")
        return connections

    def get_station(self, name: str) -> Station:
        """Get station by exact name."""
        if name not in self.stations:
            raise ValueError(f"Station {name} not found")
        return self.stations[name]

    def find_stations_by_name(self, term: str) -> List[Station]:
        """Find stations by name (case-insensitive partial match)."""
        term_lower = term.lower()
        return [station for name, station in self.stations.items() if term_lower in name.lower()]

    def station_lines(self, name: str) -> Set[str]:
        """Lines with at least one connection touching the station."""
        return set(self.lines_by_station.get(name, set()))

    def lines(self) -> List[str]:
        """All distinct line labels, sorted."""
        return sorted({conn.line for conn in self.connections})

    def to_dataset(self) -> DataSet:
        """Snapshot of the loaded data."""
        return DataSet(stations=list(self.stations.values()), connections=list(self.connections))

    def clear(self) -> None:
        """Clear all loaded data."""
        self.stations.clear()
        self.connections = []
        self.lines_by_station.clear()
        logger.debug("Cleared subway data")
