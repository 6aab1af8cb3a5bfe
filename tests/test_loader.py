"Reading single and per-node CSV files."

import pytest

from analysis.errors import ParseError
from analysis.loader import BENCHMARK_COLUMNS, PROCESS_COLUMNS, read_csv, read_csvs

NODE_HEADER = ["unix_ts", "cpu", "memory_mb"]


def test_read_csv_keeps_raw_strings(write_csv):
    "Cells come back as the exact text of the file and the header line is ignored."
    path = write_csv("bench.csv", ["ts", "lat", "tps"], [[1001, "5.50", 110], [1000, "5.0", 100]])
    table = read_csv(BENCHMARK_COLUMNS, path)
    assert table.column_order == ["unix_ts", "avg_latency_ms", "throughput"]
    assert table.rows == [["1001", "5.50", "110"], ["1000", "5.0", "100"]]
    assert (table.min_ts, table.max_ts) == (1000, 1001)


def test_read_csv_without_header(write_csv):
    path = write_csv("bench.csv", None, [[1000, "5.0", 100]])
    table = read_csv(BENCHMARK_COLUMNS, path, header=False)
    assert table.rows == [["1000", "5.0", "100"]]


def test_read_csv_empty_file(write_csv):
    "A file holding only a header gives a table without rows or bounds."
    path = write_csv("bench.csv", ["unix_ts", "avg_latency_ms", "throughput"], [])
    table = read_csv(BENCHMARK_COLUMNS, path)
    assert table.rows == []
    assert table.min_ts is None


def test_read_csv_short_row(write_csv):
    path = write_csv("bench.csv", None, [[1000, "5.0", 100], [1001, "5.5"]])
    with pytest.raises(ParseError):
        read_csv(BENCHMARK_COLUMNS, path, header=False)


def test_read_csv_long_row(write_csv):
    path = write_csv("bench.csv", None, [[1000, "5.0", 100], [1001, "5.5", 110, "extra"]])
    with pytest.raises(ParseError):
        read_csv(BENCHMARK_COLUMNS, path, header=False)


def test_read_csv_wrong_width(write_csv):
    "Every row agreeing with each other is not enough; they must match the columns."
    path = write_csv("bench.csv", None, [[1000, "5.0"], [1001, "5.5"]])
    with pytest.raises(ParseError):
        read_csv(BENCHMARK_COLUMNS, path, header=False)


def test_read_csv_bad_timestamp(write_csv):
    path = write_csv("bench.csv", None, [["soon", "5.0", 100]])
    with pytest.raises(ParseError):
        read_csv(BENCHMARK_COLUMNS, path, header=False)


def test_read_csv_without_key_accepts_any_text(write_csv):
    path = write_csv("bench.csv", None, [["soon", "5.0", 100]])
    table = read_csv(BENCHMARK_COLUMNS, path, header=False, key_index=None)
    assert table.rows == [["soon", "5.0", "100"]]


def test_read_csv_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_csv(BENCHMARK_COLUMNS, tmp_path / "nope.csv")


def test_read_csvs_merges_by_position(write_csv):
    "Three nodes give one key column plus two suffixed columns per node."
    paths = [
        write_csv(f"server-{n}.csv", NODE_HEADER, [[1000, 10 * n, 100 * n], [1001, 10 * n + 2, 100 * n + 1]])
        for n in (1, 2, 3)
    ]
    table = read_csvs(PROCESS_COLUMNS, *paths)

    assert table.column_order == [
        "unix_ts",
        "cpu_1",
        "memory_mb_1",
        "cpu_2",
        "memory_mb_2",
        "cpu_3",
        "memory_mb_3",
    ]
    assert len(table.rows) == 2
    assert all(len(row) == 3 * 3 - 2 for row in table.rows)
    assert table.rows[1] == ["1001", "12", "101", "22", "201", "32", "301"]
    assert (table.min_ts, table.max_ts) == (1000, 1001)
    for name, index in table.columns.items():
        assert table.column_order[index] == name


def test_read_csvs_single_file(write_csv):
    path = write_csv("server-1.csv", NODE_HEADER, [[1000, 1, 2]])
    table = read_csvs(PROCESS_COLUMNS, path)
    assert table.column_order == ["unix_ts", "cpu_1", "memory_mb_1"]
    assert table.rows == [["1000", "1", "2"]]


def test_read_csvs_row_count_mismatch(write_csv):
    first = write_csv("server-1.csv", NODE_HEADER, [[1000, 1, 2], [1001, 1, 2]])
    second = write_csv("server-2.csv", NODE_HEADER, [[1000, 1, 2]])
    with pytest.raises(ParseError):
        read_csvs(PROCESS_COLUMNS, first, second)


def test_read_csvs_needs_paths():
    with pytest.raises(ValueError):
        read_csvs(PROCESS_COLUMNS)


def test_read_csv_short_row_after_header(tmp_path):
    "A row missing its last field is refused instead of being padded with an empty cell."
    path = tmp_path / "bench.csv"
    path.write_text("h,h,h\n1000,5.0,100\n1001,5.5\n")
    with pytest.raises(ParseError, match="line 3"):
        read_csv(BENCHMARK_COLUMNS, path)


def test_read_csvs_short_node_row(write_csv):
    "One node missing a field fails the merge rather than shifting its columns."
    first = write_csv("server-1.csv", NODE_HEADER, [[1000, 10, 100], [1001, 12, 110]])
    second = write_csv("server-2.csv", NODE_HEADER, [[1000, 20, 200], [1001, 22]])
    with pytest.raises(ParseError):
        read_csvs(PROCESS_COLUMNS, first, second)


def test_read_csv_blank_line_between_rows(tmp_path):
    path = tmp_path / "bench.csv"
    path.write_text("unix_ts,avg_latency_ms,throughput\n1000,5.0,100\n\n1001,5.5,110\n")
    with pytest.raises(ParseError, match="blank line"):
        read_csv(BENCHMARK_COLUMNS, path)


def test_read_csv_trailing_blank_lines(tmp_path):
    "Blank lines after the last row are not data."
    path = tmp_path / "bench.csv"
    path.write_text("unix_ts,avg_latency_ms,throughput\n1000,5.0,100\n1001,5.5,110\n\n\n")
    table = read_csv(BENCHMARK_COLUMNS, path)
    assert table.rows == [["1000", "5.0", "100"], ["1001", "5.5", "110"]]
