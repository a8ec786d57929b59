"""
Network-wide aggregation of strategy records.

Every logged time produces one row: the fraction of triggered devices,
then mean value, mean error and mean msg_size across devices for each
strategy in STRATEGY_NAMES order. Devices that have not run a round yet
are left out of the means; a column with no contributing device is NaN.
"""

import numpy as np
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .constants import STRATEGY_NAMES
from .device import Device


RECORD_FIELDS = ('value', 'error', 'msg_size')


def row_columns(strategies: Sequence[str] = STRATEGY_NAMES) -> List[str]:
    """Column names of a logged row"""
    columns = ['time', 'triggered']
    for name in strategies:
        columns.extend(f"{name}_{field}" for field in RECORD_FIELDS)
    return columns


def aggregate_rows(devices: Iterable[Device], time: float,
                   strategies: Sequence[str] = STRATEGY_NAMES) -> Dict[str, float]:
    """
    Mean of every record field across devices at `time`.

    Args:
        devices: Devices to aggregate
        time: Log time (stored in the 'time' column)
        strategies: Strategy names to include

    Returns:
        Dict column name -> value (see row_columns)
    """
    devices = list(devices)
    row = {'time': float(time)}
    triggered = np.array([d.local_trigger for d in devices], dtype=np.float64)
    row['triggered'] = float(triggered.mean()) if len(triggered) else float('nan')

    for name in strategies:
        records = [d.record(name) for d in devices]
        records = [r for r in records if r is not None]
        if not records:
            for field in RECORD_FIELDS:
                row[f"{name}_{field}"] = float('nan')
            continue
        values = np.array([[r.value, r.error, r.msg_size] for r in records], dtype=np.float64)
        means = values.mean(axis=0)
        for field, mean in zip(RECORD_FIELDS, means):
            row[f"{name}_{field}"] = float(mean)
    return row


def write_rows(path: Path, rows: Sequence[Dict[str, float]], header: Optional[Sequence[str]] = None,
               columns: Optional[Sequence[str]] = None):
    """
    Write rows as a whitespace separated text file.

    Header lines and the column names are written as '#' comments.

    Args:
        path: Output file (parent directories are created)
        rows: Rows as produced by aggregate_rows
        header: Optional free-text lines written before the column names
        columns: Column order (default: row_columns())
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    columns = list(columns) if columns is not None else row_columns()

    lines = list(header or [])
    lines.append(" ".join(columns))
    table = np.array([[row.get(c, np.nan) for c in columns] for row in rows], dtype=np.float64)
    table = table.reshape(len(rows), len(columns))
    np.savetxt(path, table, fmt='%.6g', header="\n".join(lines), comments='# ')


def read_rows(path: Path) -> List[Dict[str, float]]:
    """Read a file written by write_rows back into rows"""
    path = Path(path)
    columns = None
    with open(path, 'r') as f:
        for line in f:
            if line.startswith('# '):
                columns = line[2:].split()
            else:
                break
    if columns is None:
        raise ValueError(f"No column header in {path}")
    table = np.loadtxt(path, comments='#', ndmin=2)
    return [dict(zip(columns, map(float, values))) for values in table]


def summarize(rows: Sequence[Dict[str, float]], after: float,
              strategies: Sequence[str] = STRATEGY_NAMES) -> Dict[str, Dict[str, float]]:
    """
    Per-strategy mean error and msg_size over rows logged at time >= after.

    Returns:
        Dict strategy -> {'error': ..., 'msg_size': ...} (NaN if no row qualifies)
    """
    selected = [row for row in rows if row['time'] >= after]
    summary = {}
    for name in strategies:
        summary[name] = {}
        for field in ('error', 'msg_size'):
            values = np.array([row[f"{name}_{field}"] for row in selected], dtype=np.float64)
            values = values[~np.isnan(values)]
            summary[name][field] = float(values.mean()) if len(values) else float('nan')
    return summary
