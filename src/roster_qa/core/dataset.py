"""DatasetLoader: import CSV and XLSX files into rows.

Handles:
- Encoding detection via chardet (first 32 KB)
- Delimiter detection via csv.Sniffer (fallback: most frequent of , ; tab |)
- Header row selection (0-based index; rows above it are skipped)
- Header normalization to camelCase ("Client ID" -> "clientId")
- Scalar inference for CSV text cells (numbers, true/false)
"""

from __future__ import annotations

import codecs
import csv
import hashlib
import logging
import math
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

import chardet
import numpy as np
import pandas as pd

from roster_qa.core.models import DatasetMeta, Row
from roster_qa.core.values import is_blank, parse_bool_literal, parse_number

_log = logging.getLogger(__name__)

_XLSX_SUFFIXES = {".xlsx", ".xlsm"}
_LOWER_UPPER_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z])([A-Z][a-z])")
_NON_WORD_RE = re.compile(r"[^a-zA-Z0-9\s]")


def to_camel_case(header: Any) -> str:
    """Normalize a header: ``"Client ID"`` -> ``clientId``, ``hourlyRate`` unchanged."""
    if header is None or (isinstance(header, float) and math.isnan(header)):
        return ""
    text = _LOWER_UPPER_RE.sub(r"\1 \2", str(header))
    text = _ACRONYM_RE.sub(r"\1 \2", text)
    parts = _NON_WORD_RE.sub(" ", text).split()
    if not parts:
        return ""
    return parts[0].lower() + "".join(p[:1].upper() + p[1:].lower() for p in parts[1:])


def infer_scalar(text: str) -> Any:
    """Read a CSV text cell: blank -> None, numeric -> int/float, true/false -> bool."""
    if text.strip() == "":
        return None
    flag = parse_bool_literal(text)
    if flag is not None:
        return flag
    number = parse_number(text)
    if number is not None:
        return int(number) if text.strip().lstrip("+-").isdigit() else number
    return text


def _python_scalar(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
    return value


def rows_from_frame(df: pd.DataFrame, infer_types: bool = False) -> list[Row]:
    """Convert a DataFrame to a list of plain-Python rows.

    NaN/NaT become None, numpy scalars become Python scalars, timestamps
    become ISO strings and integral floats become ints. With *infer_types*
    string cells are read through :func:`infer_scalar`.
    """
    rows: list[Row] = []
    columns = [str(c) for c in df.columns]
    for values in df.itertuples(index=False, name=None):
        row: Row = {}
        for column, value in zip(columns, values):
            if infer_types and isinstance(value, str):
                row[column] = infer_scalar(value)
            else:
                row[column] = _python_scalar(value)
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class DatasetLoader:
    """Load CSV or XLSX files into a DataFrame with camelCase headers."""

    def load(
        self,
        path: str | Path,
        header_row: int = 0,
        sheet_name: str | int | None = 0,
        encoding_hint: str | None = None,
        delimiter_hint: str | None = None,
    ) -> tuple[pd.DataFrame, DatasetMeta]:
        """Load a file and return (DataFrame, DatasetMeta).

        Args:
            path: Path to the CSV or XLSX file.
            header_row: 0-based index of the row to use as column headers.
                        Rows before it are skipped entirely.
            sheet_name: For XLSX: sheet name or 0-based integer index.
            encoding_hint: Override encoding detection.
            delimiter_hint: Override delimiter detection (CSV only).

        CSV cells come back as strings; XLSX cells keep their native types.
        """
        path = Path(path)
        raw_bytes = path.read_bytes()
        fingerprint = hashlib.sha256(raw_bytes[:65536]).hexdigest()

        if path.suffix.lower() in _XLSX_SUFFIXES:
            df_raw, encoding, delimiter, sheet = self._read_xlsx(path, sheet_name)
        else:
            encoding = encoding_hint or self._detect_encoding(raw_bytes)
            delimiter = delimiter_hint or self._detect_delimiter(raw_bytes, encoding)
            df_raw, sheet = self._read_csv(path, delimiter, encoding), None

        source_columns, df = self._apply_header_row(df_raw, header_row)
        meta = DatasetMeta(
            file_path=str(path.resolve()),
            encoding=encoding,
            delimiter=delimiter,
            sheet_name=sheet,
            header_row=header_row,
            original_shape=(len(df), len(df.columns)),
            column_order=[str(c) for c in df.columns],
            source_columns=source_columns,
            fingerprint=fingerprint,
        )
        _log.debug("Loaded %s: %d rows, columns %s", path.name, len(df), meta.column_order)
        return df, meta

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    @staticmethod
    def _read_xlsx(path: Path, sheet_name: str | int | None) -> tuple[pd.DataFrame, str, None, str]:
        with pd.ExcelFile(path, engine="openpyxl") as xf:
            all_sheets = xf.sheet_names
            if isinstance(sheet_name, str):
                resolved_sheet = sheet_name
            else:
                idx = sheet_name if isinstance(sheet_name, int) else 0
                resolved_sheet = all_sheets[idx] if all_sheets else "Sheet1"
            df_raw = xf.parse(resolved_sheet, header=None, dtype=object)
        return df_raw, "utf-8", None, resolved_sheet

    @staticmethod
    def _read_csv(path: Path, delimiter: str, encoding: str) -> pd.DataFrame:
        # csv.reader directly so ragged rows are padded instead of dropped
        rows: list[list[str]] = []
        with path.open(newline="", encoding=encoding, errors="replace") as f:
            for row in csv.reader(f, delimiter=delimiter):
                rows.append([cell if cell is not None else "" for cell in row])
        if not rows:
            return pd.DataFrame(dtype=object)
        max_cols = max(len(r) for r in rows)
        padded = [r + [""] * (max_cols - len(r)) for r in rows]
        return pd.DataFrame(padded, dtype=object)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_header_row(df_raw: pd.DataFrame, header_row: int) -> tuple[list[str], pd.DataFrame]:
        """Use the row at *header_row* as camelCase column names; drop blank rows."""
        if df_raw.empty:
            return [], pd.DataFrame()
        if header_row >= len(df_raw):
            raise ValueError(
                f"header_row={header_row} is beyond the file length ({len(df_raw)} rows)"
            )

        source: list[str] = []
        names: list[str] = []
        seen: dict[str, int] = {}
        for val in df_raw.iloc[header_row].tolist():
            original = "" if is_blank(val) else str(val)
            name = to_camel_case(original) or f"column{len(names) + 1}"
            if name in seen:
                seen[name] += 1
                name = f"{name}{seen[name]}"
            else:
                seen[name] = 0
            source.append(original)
            names.append(name)

        df = df_raw.iloc[header_row + 1 :].copy()
        df.columns = names
        if len(df):
            blank = df.apply(lambda row: all(is_blank(v) for v in row), axis=1)
            df = df[~blank]
        return source, df.reset_index(drop=True)

    @staticmethod
    def _detect_encoding(raw_bytes: bytes) -> str:
        result = chardet.detect(raw_bytes[:32768])
        encoding = result.get("encoding") or "utf-8"
        if (result.get("confidence") or 0.0) < 0.7:
            encoding = "utf-8"
        normalized = encoding.lower().replace("-", "").replace("_", "")
        alias_map = {
            "utf8": "utf-8",
            "utf8bom": "utf-8-sig",
            "ascii": "utf-8",
            "latin1": "latin-1",
            "iso88591": "latin-1",
            "windows1252": "cp1252",
        }
        candidate = alias_map.get(normalized, encoding)
        try:
            candidate = codecs.lookup(candidate).name
        except LookupError:
            candidate = "utf-8"
        if raw_bytes.startswith(codecs.BOM_UTF8):
            candidate = "utf-8-sig"
        return candidate

    @staticmethod
    def _detect_delimiter(raw_bytes: bytes, encoding: str) -> str:
        sample = raw_bytes[:32768].decode(encoding, errors="replace")
        try:
            return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            counts = {d: sample.count(d) for d in [",", ";", "\t", "|"]}
            best = max(counts, key=lambda k: counts[k])
            return best if counts[best] > 0 else ","


def load_dataset(
    path: str | Path, header_row: int = 0, sheet_name: str | int | None = 0
) -> tuple[list[Row], DatasetMeta]:
    """Load a file into rows with inferred scalar types, plus its metadata."""
    df, meta = DatasetLoader().load(path, header_row=header_row, sheet_name=sheet_name)
    return rows_from_frame(df, infer_types=meta.delimiter is not None), meta


def load_rows(path: str | Path, header_row: int = 0, sheet_name: str | int | None = 0) -> list[Row]:
    return load_dataset(path, header_row=header_row, sheet_name=sheet_name)[0]
