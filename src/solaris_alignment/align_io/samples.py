"""
Reader for pole-axis sample files.

A sample file lists sky positions measured while the declination axis is held
fixed and the mount is stepped in hour angle. Every three consecutive rows
form one pole-axis estimate.

Format
------
Delimited text (tab preferred; comma, semicolon or whitespace are
auto-detected). Lines starting with '#' are comments. Required columns:

    ha_deg    hour angle in degrees   (or ``ha_hours``, converted x15)
    dec_deg   declination in degrees

Example:
    # three samples at dec +40
    ha_deg	dec_deg
    330.0	40.0
    0.0	40.0
    30.0	40.0
"""

from __future__ import annotations

from typing import Iterable, List, Tuple

import pandas as pd

from solaris_alignment.align_core.model import SkyPoint

HOURS_TO_DEG = 15.0


def read_samples_tsv(path: str) -> List[SkyPoint]:
    """Read a sample file into a list of ``SkyPoint`` (degrees).

    Raises
    ------
    ValueError
        If the hour-angle or declination column is missing, or a value is
        not numeric.
    """
    # Strict TSV first; a single parsed column means another delimiter.
    try:
        df = pd.read_csv(path, sep="\t", comment="#")
    except pd.errors.ParserError:
        df = None
    if df is None or len(df.columns) < 2:
        df = pd.read_csv(path, sep=None, engine="python", comment="#")

    df.columns = [str(c).strip() for c in df.columns]

    if "ha_deg" in df.columns:
        ha = pd.to_numeric(df["ha_deg"], errors="coerce")
    elif "ha_hours" in df.columns:
        ha = pd.to_numeric(df["ha_hours"], errors="coerce") * HOURS_TO_DEG
    else:
        raise ValueError(
            f"Missing hour angle column ('ha_deg' or 'ha_hours') in '{path}'. "
            f"Found columns: {list(df.columns)}"
        )
    if "dec_deg" not in df.columns:
        raise ValueError(
            f"Missing required column 'dec_deg' in '{path}'. "
            f"Found columns: {list(df.columns)}"
        )
    dec = pd.to_numeric(df["dec_deg"], errors="coerce")

    bad = ha.isna() | dec.isna()
    if bad.any():
        rows = [int(i) for i in df.index[bad]]
        raise ValueError(f"Non-numeric sample values in '{path}' at rows {rows}")

    return [SkyPoint(float(h), float(d)) for h, d in zip(ha, dec)]


def sample_triples(
    points: Iterable[SkyPoint],
) -> List[Tuple[SkyPoint, SkyPoint, SkyPoint]]:
    """Group consecutive samples into triples (one pole estimate each)."""
    pts = list(points)
    if not pts or len(pts) % 3 != 0:
        raise ValueError(
            f"Expected a non-zero multiple of 3 samples, got {len(pts)}"
        )
    return [(pts[i], pts[i + 1], pts[i + 2]) for i in range(0, len(pts), 3)]


__all__ = ["read_samples_tsv", "sample_triples", "HOURS_TO_DEG"]
