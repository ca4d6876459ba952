import io

import pytest

from stock_api.csv_reader import (
    REQUIRED_COLUMNS,
    CsvFormatError,
    MissingColumnsError,
    check_header,
    read_stock_csv,
)

from conftest import TCS_ROW, make_csv, make_row


def _bytes_stream(text: str) -> io.BytesIO:
    return io.BytesIO(text.encode("utf-8"))


class TestHeader:
    def test_header_available_before_rows(self):
        rows = read_stock_csv(_bytes_stream(make_csv([TCS_ROW])))
        assert rows.header == list(REQUIRED_COLUMNS)

    def test_header_read_consumes_only_first_line(self):
        text = make_csv([TCS_ROW, TCS_ROW])
        stream = _bytes_stream(text)
        read_stock_csv(stream)
        assert stream.tell() == len(text.splitlines()[0]) + 1

    def test_utf8_bom_is_stripped(self):
        stream = io.BytesIO(b"\xef\xbb\xbf" + make_csv([TCS_ROW]).encode("utf-8"))
        rows = read_stock_csv(stream)
        assert rows.header[0] == "Date"
        check_header(rows.header)

    def test_column_names_are_trimmed(self):
        text = ", ".join(REQUIRED_COLUMNS) + "\n"
        rows = read_stock_csv(_bytes_stream(text))
        assert rows.header == list(REQUIRED_COLUMNS)

    def test_empty_stream_has_no_header(self):
        rows = read_stock_csv(io.BytesIO(b""))
        assert rows.header == []
        assert list(rows) == []

    def test_invalid_utf8_header(self):
        with pytest.raises(CsvFormatError):
            read_stock_csv(io.BytesIO(b"Date,\xff\xfeSymbol\n"))


class TestCheckHeader:
    def test_complete_header_passes(self):
        check_header(list(REQUIRED_COLUMNS))

    def test_extra_columns_are_allowed(self):
        check_header(list(REQUIRED_COLUMNS) + ["Notes"])

    def test_missing_vwap(self):
        header = [c for c in REQUIRED_COLUMNS if c != "VWAP"]
        with pytest.raises(MissingColumnsError) as exc_info:
            check_header(header)
        assert exc_info.value.missing == ["VWAP"]

    def test_missing_columns_in_canonical_order(self):
        header = [c for c in REQUIRED_COLUMNS if c not in ("%Deliverable", "Date", "Trades")]
        with pytest.raises(MissingColumnsError) as exc_info:
            check_header(header)
        assert exc_info.value.missing == ["Date", "Trades", "%Deliverable"]

    def test_empty_header_misses_everything(self):
        with pytest.raises(MissingColumnsError) as exc_info:
            check_header([])
        assert exc_info.value.missing == list(REQUIRED_COLUMNS)

    def test_names_are_case_sensitive(self):
        header = ["vwap" if c == "VWAP" else c for c in REQUIRED_COLUMNS]
        with pytest.raises(MissingColumnsError):
            check_header(header)


class TestRows:
    def test_rows_are_raw_strings(self):
        rows = list(read_stock_csv(_bytes_stream(make_csv([TCS_ROW]))))
        assert rows == [TCS_ROW]
        assert all(isinstance(v, str) for v in rows[0].values())

    def test_header_only_yields_no_rows(self):
        rows = read_stock_csv(_bytes_stream(make_csv([])))
        check_header(rows.header)
        assert list(rows) == []

    def test_rows_span_chunks(self):
        data = [make_row(Symbol=f"SYM{i}") for i in range(7)]
        rows = list(read_stock_csv(_bytes_stream(make_csv(data)), chunk_rows=3))
        assert [r["Symbol"] for r in rows] == [f"SYM{i}" for i in range(7)]

    def test_text_stream(self):
        rows = list(read_stock_csv(io.StringIO(make_csv([TCS_ROW]))))
        assert rows == [TCS_ROW]

    def test_short_row_is_padded_with_empty_strings(self):
        text = ",".join(REQUIRED_COLUMNS) + "\n2015-01-01,TCS,EQ\n"
        rows = list(read_stock_csv(_bytes_stream(text)))
        assert len(rows) == 1
        assert rows[0]["Symbol"] == "TCS"
        assert rows[0]["Close"] == ""
        assert rows[0]["%Deliverable"] == ""

    def test_extra_cells_are_dropped(self):
        line = ",".join(TCS_ROW[c] for c in REQUIRED_COLUMNS) + ",surplus"
        text = ",".join(REQUIRED_COLUMNS) + "\n" + line + "\n"
        rows = list(read_stock_csv(_bytes_stream(text)))
        assert rows == [TCS_ROW]

    def test_quoted_values_keep_commas(self):
        text = make_csv([make_row(Close='"1,308.00"')])
        rows = list(read_stock_csv(_bytes_stream(text)))
        assert rows[0]["Close"] == "1,308.00"

    def test_blank_lines_are_skipped(self):
        text = make_csv([TCS_ROW]) + "\n\n"
        assert len(list(read_stock_csv(_bytes_stream(text)))) == 1

    def test_values_are_not_type_converted(self):
        rows = list(read_stock_csv(_bytes_stream(make_csv([make_row(Volume="00100")]))))
        assert rows[0]["Volume"] == "00100"

    def test_rows_can_only_be_iterated_once(self):
        rows = read_stock_csv(_bytes_stream(make_csv([TCS_ROW])))
        list(rows)
        with pytest.raises(RuntimeError):
            list(rows)

    def test_rows_are_read_lazily(self):
        data = [make_row(Symbol=f"S{i}") for i in range(5000)]
        payload = make_csv(data).encode("utf-8")
        stream = io.BytesIO(payload)
        rows = iter(read_stock_csv(stream, chunk_rows=10))
        first = next(rows)
        assert first["Symbol"] == "S0"
        assert stream.tell() < len(payload)
