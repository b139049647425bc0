"""Tests for DatasetLoader (CSV/XLSX import)."""

from __future__ import annotations

import math

import pandas as pd
import pytest

from roster_qa.core.dataset import (
    DatasetLoader,
    infer_scalar,
    load_dataset,
    load_rows,
    rows_from_frame,
    to_camel_case,
)


class TestHeaders:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Client ID", "clientId"),
            ("hourlyRate", "hourlyRate"),
            ("Due Date", "dueDate"),
            ("priority_level", "priorityLevel"),
            ("AttributesJSON", "attributesJson"),
            ("  Skills  ", "skills"),
            ("", ""),
        ],
    )
    def test_to_camel_case(self, raw, expected):
        assert to_camel_case(raw) == expected


class TestScalars:
    @pytest.mark.parametrize(
        "text, expected",
        [("42", 42), ("-3", -3), ("2.5", 2.5), ("TRUE", True), ("false", False), ("  ", None), ("C1", "C1")],
    )
    def test_infer_scalar(self, text, expected):
        result = infer_scalar(text)
        assert result == expected
        assert type(result) is type(expected)

    def test_rows_from_frame(self):
        df = pd.DataFrame({"a": [1.0, math.nan], "b": ["x", None], "c": [pd.Timestamp("2024-05-01"), pd.NaT]})
        rows = rows_from_frame(df)
        assert rows[0] == {"a": 1, "b": "x", "c": "2024-05-01T00:00:00"}
        assert rows[1] == {"a": None, "b": None, "c": None}
        assert type(rows[0]["a"]) is int


class TestCSV:
    def test_comma_csv(self, tmp_path):
        path = tmp_path / "clients.csv"
        path.write_text(
            "Client ID,Client Name,Email,Priority Level\n"
            "C1,Acme,ops@acme.com,3\n"
            "C2,Globex,sales@globex.com,5\n",
            encoding="utf-8",
        )
        rows = load_rows(path)
        assert rows == [
            {"clientId": "C1", "clientName": "Acme", "email": "ops@acme.com", "priorityLevel": 3},
            {"clientId": "C2", "clientName": "Globex", "email": "sales@globex.com", "priorityLevel": 5},
        ]

    def test_semicolon_csv_and_meta(self, tmp_path):
        path = tmp_path / "workers.csv"
        path.write_text(
            "Worker ID;Skills;Hourly Rate\nW1;python;25.5\nW2;;30\n",
            encoding="utf-8",
        )
        df, meta = DatasetLoader().load(path)
        assert meta.delimiter == ";"
        assert meta.column_order == ["workerId", "skills", "hourlyRate"]
        assert meta.source_columns == ["Worker ID", "Skills", "Hourly Rate"]
        assert meta.original_shape == (2, 3)
        rows = rows_from_frame(df, infer_types=True)
        assert rows[1] == {"workerId": "W2", "skills": None, "hourlyRate": 30}

    def test_load_dataset_returns_meta(self, tmp_path):
        path = tmp_path / "clients.csv"
        path.write_text("Client ID,Priority Level\nC1,3\n", encoding="utf-8")
        rows, meta = load_dataset(path)
        assert rows == [{"clientId": "C1", "priorityLevel": 3}]
        info = meta.to_dict()
        assert info["columns"] == ["clientId", "priorityLevel"]
        assert info["sourceColumns"] == ["Client ID", "Priority Level"]
        assert (info["rowCount"], info["columnCount"]) == (1, 2)
        assert info["sheetName"] is None
        assert len(info["fingerprint"]) == 64

    def test_latin1_csv(self, tmp_path):
        path = tmp_path / "tasks.csv"
        path.write_bytes("Task ID,Task Name\nT1,Réunion équipe été\nT2,Clôture\n".encode("latin-1"))
        rows = load_rows(path)
        assert [r["taskId"] for r in rows] == ["T1", "T2"]

    def test_blank_lines_dropped(self, tmp_path):
        path = tmp_path / "tasks.csv"
        path.write_text("taskId,duration\nT1,2\n\n,\nT2,3\n", encoding="utf-8")
        assert [r["taskId"] for r in load_rows(path)] == ["T1", "T2"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_bytes(b"")
        assert load_rows(path) == []

    def test_header_only(self, tmp_path):
        path = tmp_path / "header.csv"
        path.write_text("clientId,email\n", encoding="utf-8")
        assert load_rows(path) == []

    def test_duplicate_headers_deduplicated(self, tmp_path):
        path = tmp_path / "dups.csv"
        path.write_text("Email,email,\na@b.com,c@d.com,x\n", encoding="utf-8")
        df, meta = DatasetLoader().load(path)
        assert meta.column_order == ["email", "email1", "column3"]


class TestXLSX:
    def test_native_types_kept(self, tmp_path):
        openpyxl = pytest.importorskip("openpyxl")
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Workers"
        ws.append(["Worker ID", "Skills", "Hourly Rate", "Available"])
        ws.append(["W1", "python", 25, True])
        ws.append(["W2", None, 30.5, False])
        path = tmp_path / "workers.xlsx"
        wb.save(path)

        df, meta = DatasetLoader().load(path)
        assert meta.sheet_name == "Workers"
        assert meta.delimiter is None
        rows = load_rows(path)
        assert rows == [
            {"workerId": "W1", "skills": "python", "hourlyRate": 25, "available": True},
            {"workerId": "W2", "skills": None, "hourlyRate": 30.5, "available": False},
        ]
