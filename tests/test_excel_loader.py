"""Tests for ExcelLoader."""

import io
import os
import tempfile
import unittest
from unittest.mock import patch, MagicMock
import sys
from pathlib import Path

import pandas as pd
import requests

# Add src to path so we can import kottcraft
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from kottcraft.models import Connection, Station
from kottcraft.excel_loader import ExcelLoader, normalize_header


def stations_frame():
    return pd.DataFrame({
        "Name of the Station": ["Centralplan", "Harbour", "Old Mill"],
        " X  Coordinate ": [0, 120.5, -40],
        "Z Coordinate": [0, 30, 75],
    })


def connections_frame():
    return pd.DataFrame({
        "From": ["Centralplan", "Harbour"],
        "Towards": ["Harbour", "Old Mill"],
        "Line": ["Red", "Blue"],
    })


def workbook_bytes(sheets):
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


class TestNormalizeHeader(unittest.TestCase):

    def test_lowercases_and_collapses_whitespace(self):
        self.assertEqual(normalize_header(" X  Coordinate "), "x coordinate")

    def test_trims(self):
        self.assertEqual(normalize_header("  Name  "), "name")


class TestExcelLoader(unittest.TestCase):
    """Test workbook parsing."""

    def test_load_from_frames(self):
        loader = ExcelLoader()
        loader.load_from_frames(stations_frame(), connections_frame())

        self.assertEqual(len(loader.stations), 3)
        self.assertEqual(loader.stations["Harbour"], Station(name="Harbour", x=120.5, y=30.0))
        self.assertEqual(
            loader.connections,
            [
                Connection(from_station="Centralplan", to_station="Harbour", line="Red"),
                Connection(from_station="Harbour", to_station="Old Mill", line="Blue"),
            ],
        )

    def test_alternative_headers(self):
        loader = ExcelLoader()
        stations = pd.DataFrame({"Station": ["A", "B"], "x": [1, 2], "y": [3, 4]})
        connections = pd.DataFrame({"Source": ["A"], "Target": ["B"], "Route": ["Red"]})
        loader.load_from_frames(stations, connections)

        self.assertEqual(loader.stations["A"], Station(name="A", x=1.0, y=3.0))
        self.assertEqual(loader.connections[0].line, "Red")

    def test_incomplete_rows_are_dropped(self):
        loader = ExcelLoader()
        stations = pd.DataFrame({
            "Name": ["A", "", None, "D", "E"],
            "X": [1, 2, 3, None, "abc"],
            "Y": [1, 2, 3, 4, 5],
        })
        connections = pd.DataFrame({
            "From": ["A", "A", None],
            "To": ["D", "", "A"],
            "Line": ["Red", "Red", "Red"],
        })
        loader.load_from_frames(stations, connections)

        self.assertEqual(list(loader.stations), ["A"])
        self.assertEqual(len(loader.connections), 1)

    def test_values_are_trimmed_and_whole_numbers_kept_integral(self):
        loader = ExcelLoader()
        stations = pd.DataFrame({"Name": ["  A  ", 12.0], "X": [0, 1], "Y": [0, 1]})
        connections = pd.DataFrame({"From": [" A"], "To": [12.0], "Line": [" Red "]})
        loader.load_from_frames(stations, connections)

        self.assertIn("A", loader.stations)
        self.assertIn("12", loader.stations)
        self.assertEqual(
            loader.connections[0], Connection(from_station="A", to_station="12", line="Red")
        )

    def test_missing_columns_raise(self):
        loader = ExcelLoader()
        stations = pd.DataFrame({"Label": ["A"], "X": [0], "Y": [0]})
        with self.assertRaises(ValueError):
            loader.load_from_frames(stations, connections_frame())

    def test_empty_connections_raise(self):
        loader = ExcelLoader()
        with self.assertRaises(ValueError):
            loader.load_from_frames(stations_frame(), pd.DataFrame({"From": [], "To": [], "Line": []}))

    def test_failed_load_keeps_previous_data(self):
        loader = ExcelLoader()
        loader.load_from_frames(stations_frame(), connections_frame())
        with self.assertRaises(ValueError):
            loader.load_from_frames(pd.DataFrame(), pd.DataFrame())
        self.assertEqual(len(loader.stations), 3)

    def test_station_lines(self):
        loader = ExcelLoader()
        loader.load_from_frames(stations_frame(), connections_frame())

        self.assertEqual(loader.station_lines("Harbour"), {"Red", "Blue"})
        self.assertEqual(loader.station_lines("Old Mill"), {"Blue"})
        self.assertEqual(loader.station_lines("Nowhere"), set())
        self.assertEqual(loader.lines(), ["Blue", "Red"])

    def test_find_stations_by_name(self):
        loader = ExcelLoader()
        loader.load_from_frames(stations_frame(), connections_frame())

        results = loader.find_stations_by_name("har")
        self.assertEqual([s.name for s in results], ["Harbour"])
        self.assertEqual(len(loader.find_stations_by_name("L")), 2)

    def test_get_station_not_found(self):
        loader = ExcelLoader()
        with self.assertRaises(ValueError):
            loader.get_station("NONEXISTENT")

    def test_clear(self):
        loader = ExcelLoader()
        loader.load_from_frames(stations_frame(), connections_frame())
        loader.clear()
        self.assertEqual(loader.stations, {})
        self.assertEqual(loader.connections, [])
        self.assertEqual(loader.to_dataset().stations, [])


class TestWorkbookSources(unittest.TestCase):
    """Test loading whole workbooks from disk and HTTP."""

    def test_load_from_file_named_sheets(self):
        data = workbook_bytes({
            "Notes": pd.DataFrame({"text": ["ignore me"]}),
            "Connections": connections_frame(),
            "Stations": stations_frame(),
        })
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "subway_data.xlsx")
            with open(path, "wb") as f:
                f.write(data)

            loader = ExcelLoader()
            loader.load_from_file(path)

        self.assertEqual(len(loader.stations), 3)
        self.assertEqual(len(loader.connections), 2)

    def test_load_from_file_positional_sheets(self):
        data = workbook_bytes({"Sheet1": stations_frame(), "Sheet2": connections_frame()})
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "network.xlsx")
            with open(path, "wb") as f:
                f.write(data)

            loader = ExcelLoader()
            loader.load_from_file(path)

        self.assertIn("Old Mill", loader.stations)

    def test_single_sheet_raises(self):
        data = workbook_bytes({"Stations": stations_frame()})
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "broken.xlsx")
            with open(path, "wb") as f:
                f.write(data)

            loader = ExcelLoader()
            with self.assertRaises(ValueError):
                loader.load_from_file(path)

    def test_missing_file_raises(self):
        loader = ExcelLoader()
        with self.assertRaises(FileNotFoundError):
            loader.load_from_file("/nonexistent/subway_data.xlsx")

    @patch("kottcraft.excel_loader.requests.get")
    def test_load_from_url(self, mock_get):
        mock_response = MagicMock()
        mock_response.content = workbook_bytes({
            "Stations": stations_frame(),
            "Connections": connections_frame(),
        })
        mock_get.return_value = mock_response

        loader = ExcelLoader()
        loader.load_from_url("http://example.test/subway_data.xlsx")

        mock_get.assert_called_once_with("http://example.test/subway_data.xlsx", timeout=30)
        mock_response.raise_for_status.assert_called_once()
        self.assertEqual(len(loader.stations), 3)

    @patch("kottcraft.excel_loader.requests.get")
    def test_load_from_url_http_error(self, mock_get):
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")
        mock_get.return_value = mock_response

        loader = ExcelLoader()
        with self.assertRaises(requests.HTTPError):
            loader.load_from_url("http://example.test/missing.xlsx")


if __name__ == "__main__":
    unittest.main()
