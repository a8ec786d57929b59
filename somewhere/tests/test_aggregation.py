"""
Tests for per-time aggregation of strategy records.
"""

import math

from somewhere.aggregation import aggregate_rows, read_rows, row_columns, summarize, write_rows
from somewhere.constants import STRATEGY_NAMES
from somewhere.data_types import StrategyRecord
from somewhere.device import Device


def make_device(uid, value, error, msg_size, triggered=False):
    device = Device(uid=uid, position=[0.0, 0.0], local_trigger=triggered)
    for name in STRATEGY_NAMES:
        device.storage[name] = StrategyRecord(value=value, error=error, msg_size=msg_size)
    return device


def test_aggregate_means():
    devices = [make_device(0, True, False, 10, triggered=True), make_device(1, False, True, 30)]
    row = aggregate_rows(devices, 5.0)

    assert list(row) == row_columns()
    assert row['time'] == 5.0
    assert row['triggered'] == 0.5
    for name in STRATEGY_NAMES:
        assert row[f"{name}_value"] == 0.5
        assert row[f"{name}_error"] == 0.5
        assert row[f"{name}_msg_size"] == 20.0


def test_devices_without_records_are_skipped():
    devices = [make_device(0, True, False, 10), Device(uid=1, position=[0.0, 0.0])]
    row = aggregate_rows(devices, 1.0)
    assert row['baseline_value'] == 1.0

    empty = aggregate_rows([Device(uid=0, position=[0.0, 0.0])], 0.0)
    assert math.isnan(empty['fastest_msg_size'])


def test_summarize_after_switch():
    rows = []
    for t in range(4):
        row = {c: 0.0 for c in row_columns()}
        row['time'] = float(t)
        row['baseline_error'] = 1.0 if t < 2 else 0.5
        row['baseline_msg_size'] = 10.0 * t
        rows.append(row)

    summary = summarize(rows, after=2)
    assert summary['baseline']['error'] == 0.5
    assert summary['baseline']['msg_size'] == 25.0
    assert math.isnan(summarize(rows, after=10)['oracle']['error'])


def test_write_rows_header(tmp_path):
    rows = [aggregate_rows([make_device(0, True, False, 8)], float(t)) for t in range(3)]
    path = tmp_path / "out" / "rows.txt"
    write_rows(path, rows, header=["scenario = test"])

    lines = path.read_text().splitlines()
    assert lines[0] == "# scenario = test"
    assert lines[1] == "# " + " ".join(row_columns())
    assert len(lines) == 5
    assert [row['time'] for row in read_rows(path)] == [0.0, 1.0, 2.0]
