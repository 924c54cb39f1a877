"""Kottcraft - Subway map data loading and route planning."""

__version__ = "0.1.0"

from .models import Station, Connection, NeighborEdge, RouteStep, RouteResult, RouteMode, DataSet
from .routing import build_adjacency, edge_cost, find_route, reconstruct_route, count_transfers
from .excel_loader import ExcelLoader, normalize_header
from .route_planner import SubwayRoutePlanner

__all__ = [
    "SubwayRoutePlanner",
    "ExcelLoader",
    "Station",
    "Connection",
    "NeighborEdge",
    "RouteStep",
    "RouteResult",
    "RouteMode",
    "DataSet",
    "build_adjacency",
    "edge_cost",
    "find_route",
    "reconstruct_route",
    "count_transfers",
    "normalize_header",
]
