# features/holdout.py
from __future__ import annotations

from pathlib import Path
from typing import List, NamedTuple, Optional, Tuple, Union

import numpy as np
import pandas as pd
from tqdm import tqdm

from features.pixels import NEG_NAME, POS_NAME
from utils.environment import rng
from utils.errors import DataUnavailable, FileParseError

"""
Hold-out pixel files.

Each file is a text export of a region of interest: a fixed block of header
lines, then one pixel per line with whitespace-separated fields

    ID  X  Y  Map_X  Map_Y  Lat  Lon  B1  B2  B3  [extra...]

Up to 13 fields are split per line; only the first 10 are consumed, with the
three bands mapped to Red / Green / Blue. A file whose widest row has fewer
than 10 fields is rejected as a whole. Rows with a missing or unparseable
field are dropped.

The files carry no ground-truth label. `assign_holdout_labels` supplies one,
either synthetic (random, a placeholder only) or inferred from the file name.
"""

HOLDOUT_SCHEMA: List[Tuple[str, type]] = [
    ("ID", str),
    ("X", float), ("Y", float),
    ("Map_X", float), ("Map_Y", float),
    ("Lat", float), ("Lon", float),
    ("Red", float), ("Green", float), ("Blue", float),
]
HOLDOUT_COLUMNS = [name for name, _ in HOLDOUT_SCHEMA]

HEADER_LINES = 6
MAX_FIELDS = 13
MIN_FIELDS = len(HOLDOUT_SCHEMA)

LABEL_MODES = ("random", "filename")


class HoldoutBatch(NamedTuple):
    records: pd.DataFrame
    skipped: List[Tuple[str, str]]  # (file, reason)


def _empty_records() -> pd.DataFrame:
    df = pd.DataFrame({name: pd.Series(dtype=("object" if t is str else "float64"))
                       for name, t in HOLDOUT_SCHEMA})
    df["source_file"] = pd.Series(dtype="object")
    return df


def _coerce(raw: pd.DataFrame) -> pd.DataFrame:
    out = pd.DataFrame(index=raw.index)
    for name, typ in HOLDOUT_SCHEMA:
        col = raw[name]
        if typ is str:
            out[name] = col.where(col.notna(), None)
        else:
            out[name] = pd.to_numeric(col, errors="coerce")
    # inf / -inf parse as numbers but are not usable pixel values
    return out.replace([np.inf, -np.inf], np.nan)


def parse_holdout_file(path: Union[str, Path],
                       header_lines: int = HEADER_LINES,
                       max_fields: int = MAX_FIELDS,
                       min_fields: int = MIN_FIELDS) -> pd.DataFrame:
    """
    Parse one hold-out file into the Hold-Out Record schema.

    Raises FileParseError when the file cannot be read or has fewer than
    `min_fields` columns. Otherwise returns the rows that coerce cleanly,
    in file order (possibly none).
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileParseError(path, f"unreadable: {e}") from e

    lines = text.splitlines()[header_lines:]
    rows = [ln.split(None, max_fields - 1) for ln in lines if ln.strip()]
    width = max((len(r) for r in rows), default=0)
    if width < min_fields:
        raise FileParseError(path, f"{width} column(s) after header, need {min_fields}")

    raw = pd.DataFrame([r[:min_fields] + [None] * (min_fields - len(r)) for r in rows],
                       columns=HOLDOUT_COLUMNS)
    df = _coerce(raw).dropna(how="any").reset_index(drop=True)
    dropped = len(raw) - len(df)
    if dropped:
        print(f"[holdout] {path.name}: dropped {dropped}/{len(raw)} malformed row(s)")
    df["source_file"] = path.name
    return df


def parse_holdout_dir(directory: Union[str, Path],
                      pattern: str = "*.txt",
                      header_lines: int = HEADER_LINES) -> HoldoutBatch:
    """
    Parse every file matching `pattern` in `directory` (sorted by name).

    Bad files are skipped with a diagnostic and listed in `skipped`; they
    never abort the batch. An empty directory yields an empty table.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise DataUnavailable(f"hold-out directory not found: {directory}")

    files = sorted(p for p in directory.glob(pattern) if p.is_file())
    frames: List[pd.DataFrame] = []
    skipped: List[Tuple[str, str]] = []
    for p in tqdm(files, desc="holdout", leave=False):
        try:
            frames.append(parse_holdout_file(p, header_lines=header_lines))
        except FileParseError as e:
            print(f"[holdout] skipping {p.name}: {e.reason}")
            skipped.append((p.name, e.reason))

    records = pd.concat(frames, ignore_index=True) if frames else _empty_records()
    print(f"[holdout] {len(files)} file(s), {len(skipped)} skipped, {len(records)} row(s)")
    return HoldoutBatch(records, skipped)


def label_from_filename(name: str) -> Optional[str]:
    """'..._Blue_Tarps.txt' -> BlueTarp, '..._NON_Blue_Tarps.txt' -> NonBlueTarp."""
    key = name.lower().replace("-", "_")
    if "blue_tarp" not in key:
        return None
    if "non_blue" in key or "not_blue" in key:
        return NEG_NAME
    return POS_NAME


def assign_holdout_labels(records: pd.DataFrame,
                          mode: str = "random",
                          seed: Optional[int] = None,
                          pos_rate: float = 0.5) -> pd.DataFrame:
    """
    Attach y / y_name to hold-out records.

    mode="random":   synthetic labels drawn with probability `pos_rate`. These
                     carry no information; metrics computed on them are a
                     placeholder, and `attrs["labels_synthetic"]` is set.
    mode="filename": label inferred per file by `label_from_filename`; rows
                     from files that name neither class are dropped.
    """
    if mode not in LABEL_MODES:
        raise ValueError(f"label mode must be one of {LABEL_MODES}, got {mode!r}")

    if mode == "random":
        y = (rng(seed).random(len(records)) < pos_rate).astype(int)
        out = records.assign(y=y, y_name=np.where(y == 1, POS_NAME, NEG_NAME))
        out.attrs["labels_synthetic"] = True
        print(f"[holdout] WARNING using {len(out)} synthetic random label(s)")
        return out

    names = records["source_file"].map(label_from_filename)
    unknown = sorted(records.loc[names.isna(), "source_file"].unique().tolist())
    if unknown:
        print(f"[holdout] no class in file name, dropping rows from: {unknown}")
    out = records.loc[names.notna()].reset_index(drop=True)
    y_name = names.dropna().reset_index(drop=True)
    out = out.assign(y=(y_name == POS_NAME).astype(int), y_name=y_name)
    out.attrs["labels_synthetic"] = False
    return out
