"""Shortest-path route planning over the subway network."""

import heapq
import itertools
import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .models import Connection, NeighborEdge, RouteMode, RouteResult, RouteStep, Station

logger = logging.getLogger(__name__)

# Added to an edge cost whenever the line changes after the first hop
DEFAULT_TRANSFER_PENALTY = 0.2

# (station name, line used to arrive there); the line is None at the start station
SearchState = Tuple[str, Optional[str]]

Adjacency = Dict[str, List[NeighborEdge]]


def build_adjacency(connections: Iterable[Connection]) -> Adjacency:
    """
    Build a bidirectional adjacency map from connection records.

    Every connection contributes a forward edge and a mirrored reverse edge,
    both labelled with its line. Parallel connections are kept as distinct edges.

    Args:
        connections: Connection records from the loader.

    Returns:
        Mapping of station name to its outgoing neighbor edges. Stations without
        connections do not appear.
    """
    adjacency: Adjacency = {}
    for conn in connections:
        if conn.from_station not in adjacency:
            adjacency[conn.from_station] = []
        if conn.to_station not in adjacency:
            adjacency[conn.to_station] = []
        adjacency[conn.from_station].append(NeighborEdge(station=conn.to_station, line=conn.line))
        adjacency[conn.to_station].append(NeighborEdge(station=conn.from_station, line=conn.line))

    logger.debug(f"Built adjacency for {len(adjacency)} stations")
    return adjacency


def index_stations(stations: Iterable[Station]) -> Dict[str, Station]:
    """Index stations by name. Later duplicates win."""
    return {station.name: station for station in stations}


def edge_cost(
    current: str,
    neighbor: str,
    line: str,
    arrived_line: Optional[str],
    mode: Union[RouteMode, str],
    station_index: Mapping[str, Station],
    transfer_penalty: float = DEFAULT_TRANSFER_PENALTY,
) -> Optional[float]:
    """
    Cost of travelling from current to neighbor on the given line.

    Args:
        current: Station the edge leaves from.
        neighbor: Station the edge leads to.
        line: Line of the edge.
        arrived_line: Line used to reach current, or None at the start station.
        mode: "hops" for unit weights, "distance" for Euclidean weights.
        station_index: Stations by name, used for coordinates.
        transfer_penalty: Added when line differs from arrived_line.

    Returns:
        Non-negative cost, or None if the edge cannot be costed and must be skipped.
    """
    mode = RouteMode(mode)

    if mode is RouteMode.HOPS:
        cost = 1.0
    else:
        a = station_index.get(current)
        b = station_index.get(neighbor)
        if a is None or b is None:
            return None
        cost = math.hypot(b.x - a.x, b.y - a.y)
        if not math.isfinite(cost):
            return None

    if arrived_line is not None and line != arrived_line:
        cost += transfer_penalty

    return cost


def reconstruct_route(
    predecessors: Mapping[SearchState, SearchState],
    start: str,
    goal_state: SearchState,
) -> RouteResult:
    """
    Walk the predecessor trail back from goal_state and emit forward steps.

    The walk stops at the start station, at a state with no predecessor, or
    when a state repeats.
    """
    steps: List[RouteStep] = []
    seen = set()
    state = goal_state

    while state[0] != start and state in predecessors and state not in seen:
        seen.add(state)
        previous = predecessors[state]
        steps.append(RouteStep(from_station=previous[0], to_station=state[0], line=state[1]))
        state = previous

    steps.reverse()
    return RouteResult(steps=steps, distance=len(steps))


def find_route(
    start: str,
    goal: str,
    connections: Iterable[Connection],
    stations: Iterable[Station],
    mode: Union[RouteMode, str] = RouteMode.HOPS,
    transfer_penalty: float = DEFAULT_TRANSFER_PENALTY,
    adjacency: Optional[Adjacency] = None,
) -> Optional[RouteResult]:
    """
    Find the cheapest route from start to goal.

    Runs Dijkstra over (station, arrival line) states so that the transfer
    penalty is always charged against the line that actually reached a station.

    Args:
        start: Start station name.
        goal: Destination station name.
        connections: Connection records. Ignored when adjacency is given.
        stations: Station records, used for coordinates in distance mode.
        mode: RouteMode or its string value.
        transfer_penalty: Cost added for each line change.
        adjacency: Prebuilt adjacency map (see build_adjacency).

    Returns:
        RouteResult with empty steps when start equals goal, None when either
        station is unknown or no path exists.

    Raises:
        ValueError: If mode is not a valid RouteMode.
    """
    mode = RouteMode(mode)

    if start == goal:
        return RouteResult(steps=[], distance=0)

    if adjacency is None:
        adjacency = build_adjacency(connections)

    if start not in adjacency or goal not in adjacency:
        logger.debug(f"No route: '{start}' or '{goal}' is not in the network")
        return None

    station_index = index_stations(stations)

    start_state: SearchState = (start, None)
    best: Dict[SearchState, float] = {start_state: 0.0}
    predecessors: Dict[SearchState, SearchState] = {}
    settled = set()

    # Counter keeps pops deterministic on equal costs and avoids comparing states
    counter = itertools.count()
    frontier = [(0.0, next(counter), start_state)]

    while frontier:
        cost, _, state = heapq.heappop(frontier)
        if state in settled:
            continue
        settled.add(state)

        station, arrived_line = state
        if station == goal:
            result = reconstruct_route(predecessors, start, state)
            logger.debug(
                f"Route {start} -> {goal} ({mode.value}): {result.distance} steps, cost {cost:.2f}"
            )
            return result

        for edge in adjacency.get(station, []):
            next_state: SearchState = (edge.station, edge.line)
            if next_state in settled:
                continue

            step_cost = edge_cost(
                station, edge.station, edge.line, arrived_line, mode, station_index, transfer_penalty
            )
            if step_cost is None:
                continue

            new_cost = cost + step_cost
            if new_cost < best.get(next_state, math.inf):
                best[next_state] = new_cost
                predecessors[next_state] = state
                heapq.heappush(frontier, (new_cost, next(counter), next_state))

    logger.debug(f"No route: '{goal}' is unreachable from '{start}'")
    return None


def count_transfers(result: RouteResult) -> int:
    """Number of line changes along a route."""
    return sum(
        1 for prev, step in zip(result.steps, result.steps[1:]) if step.line != prev.line
    )
