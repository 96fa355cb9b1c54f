# Copyright (c) Syntropy Systems
"""Tests for reading uploaded tables."""

import io

import pandas as pd
import pytest

from survboard.errors import UnsupportedFormat
from survboard.parsing import coerce_value, parse_csv_line, parse_delimited, read_path, read_upload


class TestParseCsvLine:
    """Tests for splitting a single line."""

    def test_plain_fields(self):
        """Test simple comma separated fields."""
        assert parse_csv_line("a,b,c") == ["a", "b", "c"]

    def test_quoted_delimiter(self):
        """Test that a quoted comma stays inside its field."""
        assert parse_csv_line('a,"b,c",d') == ["a", "b,c", "d"]

    def test_fields_are_trimmed(self):
        """Test whitespace around fields is removed."""
        assert parse_csv_line("  a , b  ,c ") == ["a", "b", "c"]

    def test_unterminated_quote_runs_to_end(self):
        """Test an unterminated quote swallows the rest of the line."""
        assert parse_csv_line('a,"b,c,d') == ["a", "b,c,d"]

    def test_empty_fields(self):
        """Test consecutive delimiters produce empty fields."""
        assert parse_csv_line("a,,c,") == ["a", "", "c", ""]

    def test_custom_delimiter(self):
        """Test tab separated input."""
        assert parse_csv_line("a\tb,c\td", delimiter="\t") == ["a", "b,c", "d"]


class TestCoerceValue:
    """Tests for typing raw fields."""

    @pytest.mark.parametrize("text", ["", "NA", "NaN", "   "])
    def test_null_tokens(self, text):
        """Test null tokens become None."""
        assert coerce_value(text) is None

    def test_integer(self):
        """Test integer text stays an int."""
        value = coerce_value("42")
        assert value == 42
        assert isinstance(value, int)

    def test_float(self):
        """Test decimal and exponent text become floats."""
        assert coerce_value("3.5") == 3.5
        assert coerce_value("-.5") == -0.5
        assert coerce_value("1e3") == 1000.0

    def test_text(self):
        """Test non-numeric text is kept."""
        assert coerce_value("Stage II") == "Stage II"
        assert coerce_value("12abc") == "12abc"

    def test_na_is_case_sensitive(self):
        """Test only the exact null spellings are nulls."""
        assert coerce_value("na") == "na"


class TestParseDelimited:
    """Tests for whole-table parsing."""

    def test_sample_table(self, sample_csv):
        """Test the sample table parses into typed records."""
        dataset = parse_delimited(sample_csv)

        assert dataset.columns == ["Patient_ID", "age", "stage", "tumor_size", "EGFR_pTPM"]
        assert len(dataset) == 3
        assert dataset.id_column == "Patient_ID"
        assert dataset.records[0] == {
            "Patient_ID": "P1",
            "age": 61,
            "stage": "Stage II",
            "tumor_size": 2.5,
            "EGFR_pTPM": 12.0,
        }
        assert dataset.records[1]["EGFR_pTPM"] is None
        assert dataset.records[2]["tumor_size"] is None
        assert dataset.issues == []

    def test_short_row_padded(self):
        """Test missing trailing fields become None and are reported."""
        dataset = parse_delimited("id,age,stage\nP1,60\n")

        assert dataset.records == [{"id": "P1", "age": 60, "stage": None}]
        assert dataset.issues == ["line 2: expected 3 fields, found 2"]

    def test_long_row_truncated(self):
        """Test extra fields are dropped."""
        dataset = parse_delimited("id,age\nP1,60,extra,more\n")

        assert dataset.records == [{"id": "P1", "age": 60}]
        assert dataset.issues == ["line 2: expected 2 fields, found 4"]

    def test_leading_and_trailing_blank_lines_skipped(self):
        """Test blank lines before the header and after the last row are ignored."""
        dataset = parse_delimited("\n\nid,age\nP1,60\nP2,70\n\n   \n")

        assert dataset.columns == ["id", "age"]
        assert [r["id"] for r in dataset.records] == ["P1", "P2"]

    def test_inner_blank_line_is_null_row(self):
        """Test a blank line between rows is kept as an all-null row."""
        dataset = parse_delimited("id,age\nP1,60\n   \nP2,70\n")

        assert dataset.records == [
            {"id": "P1", "age": 60},
            {"id": None, "age": None},
            {"id": "P2", "age": 70},
        ]
        assert dataset.issues == []

    def test_crlf_line_endings(self):
        """Test Windows line endings."""
        dataset = parse_delimited("id,age\r\nP1,60\r\nP2,70\r\n")

        assert len(dataset) == 2
        assert dataset.records[1]["age"] == 70

    def test_header_only(self):
        """Test a header with no rows gives an empty dataset."""
        dataset = parse_delimited("id,age\n")

        assert dataset.columns == ["id", "age"]
        assert dataset.is_empty

    def test_empty_text(self):
        """Test empty input gives no columns and no rows."""
        dataset = parse_delimited("")

        assert dataset.columns == []
        assert dataset.is_empty
        assert dataset.id_column is None


class TestReadUpload:
    """Tests for suffix dispatch."""

    def test_unsupported_suffix(self):
        """Test an unknown suffix is rejected with the accepted list."""
        with pytest.raises(UnsupportedFormat) as exc_info:
            read_upload("notes.txt", b"id\n1\n")

        assert ".csv, .xlsx, .xls" in str(exc_info.value)
        assert exc_info.value.filename == "notes.txt"

    def test_uppercase_suffix(self, sample_csv):
        """Test suffix matching ignores case."""
        dataset = read_upload("PATIENTS.CSV", sample_csv.encode())

        assert len(dataset) == 3
        assert dataset.source == "PATIENTS.CSV"

    def test_byte_order_mark_stripped(self):
        """Test a UTF-8 BOM does not leak into the first column name."""
        dataset = read_upload("bom.csv", "\ufeffSample,age\nS1,50\n".encode())

        assert dataset.columns == ["Sample", "age"]
        assert dataset.id_column == "Sample"

    def test_xlsx(self):
        """Test the first sheet of a workbook is read."""
        frame = pd.DataFrame(
            {
                "Patient_ID": ["P1", "P2"],
                "age": [61, 48],
                "stage": ["Stage II", "Stage IV"],
                "tumor_size": [2.5, None],
            }
        )
        buffer = io.BytesIO()
        frame.to_excel(buffer, index=False, engine="openpyxl")

        dataset = read_upload("patients.xlsx", buffer.getvalue())

        assert dataset.columns == ["Patient_ID", "age", "stage", "tumor_size"]
        assert dataset.id_column == "Patient_ID"
        assert dataset.records[0] == {
            "Patient_ID": "P1",
            "age": 61,
            "stage": "Stage II",
            "tumor_size": 2.5,
        }
        assert dataset.records[1]["tumor_size"] is None

    def test_corrupt_workbook(self):
        """Test unreadable spreadsheet bytes raise ValueError."""
        with pytest.raises(ValueError, match="Could not read spreadsheet"):
            read_upload("broken.xlsx", b"this is not a workbook")

    def test_read_path(self, sample_csv_path):
        """Test reading a table from disk."""
        dataset = read_path(sample_csv_path)

        assert dataset.source == "patients.csv"
        assert len(dataset) == 3
