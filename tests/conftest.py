from pathlib import Path

import pytest


def write_lines(path: Path, lines):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(line + "\n" for line in lines))
    return path


@pytest.fixture
def write_csv(tmp_path):
    "Write a CSV file under tmp_path from a header and rows."

    def write(name, header, rows):
        lines = [",".join(header)] if header else []
        lines += [",".join(str(cell) for cell in row) for row in rows]
        return write_lines(tmp_path / name, lines)

    return write


@pytest.fixture
def system_files(write_csv):
    "Benchmark and three node files for one system, resources starting one second early."

    def make(prefix, bench_rows, cpu, memory, start=1000, lead=1):
        write_csv(f"{prefix}timeseries.csv", ["unix_ts", "avg_latency_ms", "throughput"], bench_rows)
        for node in range(3):
            rows = []
            for step in range(-lead, len(bench_rows)):
                idx = max(step, 0)
                rows.append([start + step, cpu[idx][node], memory[idx][node]])
            write_csv(f"{prefix}server-{node + 1}.csv", ["unix_ts", "cpu", "memory_mb"], rows)

    return make
