"""Example usage of SubwayRoutePlanner."""

import logging
import os
import sys
from pathlib import Path

# Add src to path so we can import kottcraft
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kottcraft.excel_loader import DEFAULT_DATA_FILE
from kottcraft.route_planner import SubwayRoutePlanner

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

DATA_FILE = os.environ.get("KOTTCRAFT_DATA_FILE", DEFAULT_DATA_FILE)


def print_route(planner: SubwayRoutePlanner, start: str, goal: str, mode: str):
    """
    Plan and display a route between two stations.

    Args:
        planner: Loaded planner.
        start: Start station name.
        goal: Destination station name.
        mode: "hops" or "distance".
    """
    print(f"\n{'='*70}")
    print(f"Route: {start} → {goal} ({mode})")
    print(f"{'='*70}\n")

    route = planner.plan_route(start, goal, mode)
    if route is None:
        print("  No route found")
        for name in (start, goal):
            matching = planner.search_stations(name, limit=5)
            if matching and all(station.name != name for station, _ in matching):
                print(f"\nDid you mean (for '{name}'):")
                for station, lines in matching:
                    print(f"  - {station.name} [{', '.join(lines)}]")
        return

    for i, line in enumerate(planner.describe_route(route), 1):
        print(f"  {i:2d}. {line}")
    print(f"\nStops: {route.distance}")
    print("\n" + "=" * 70 + "\n")


def interactive_mode(planner: SubwayRoutePlanner):
    """
    Run in interactive mode, allowing the user to plan multiple routes.
    """
    print("Kottcraft Route Planner - Interactive Mode")
    print("Enter 'start > goal' to plan a route, or a name to search stations")
    print("Prefix with 'distance:' for shortest distance (default: fewest stops)")
    print("(Type 'quit' to exit)\n")

    while True:
        try:
            user_input = input("Query (or 'quit'): ").strip()

            if user_input.lower() in ["quit", "q", "exit"]:
                print("Goodbye!")
                break

            if not user_input:
                continue

            mode = "hops"
            if user_input.lower().startswith("distance:"):
                mode = "distance"
                user_input = user_input[len("distance:"):].strip()

            if ">" in user_input:
                start, goal = (part.strip() for part in user_input.split(">", 1))
                print_route(planner, start, goal, mode)
                continue

            results = planner.search_stations(user_input)
            if not results:
                print("No stations found")
            for station, lines in results:
                print(f"  {station.name} ({station.x:g}, {station.y:g}) - lines: {', '.join(lines)}")

        except KeyboardInterrupt:
            print("\n\nGoodbye!")
            break


def main():
    try:
        planner = SubwayRoutePlanner(DATA_FILE)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load subway data: {e}")
        print(f"Error: {e}")
        print("Required workbook structure:")
        print("  Stations sheet: Name, X, Y columns")
        print("  Connections sheet: From, To, Line columns")
        sys.exit(1)

    if len(sys.argv) >= 3:
        # Command line mode: start goal [mode]
        mode = sys.argv[3] if len(sys.argv) > 3 else "hops"
        if mode not in ("hops", "distance"):
            print(f"Error: unknown mode '{mode}' (use 'hops' or 'distance')")
            sys.exit(1)
        print_route(planner, sys.argv[1], sys.argv[2], mode)
    else:
        interactive_mode(planner)


if __name__ == "__main__":
    main()
