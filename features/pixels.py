# features/pixels.py
import io
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np
import pandas as pd
import requests

from utils.errors import DataUnavailable

"""
Training pixel table: loading and binary labeling.

The source is a CSV of pre-extracted pixels, one row per sample:

    Class, Red, Green, Blue

`Class` is a land-cover label (e.g. "Vegetation", "Soil", "Rooftop",
"Various Non-Tarp", "Blue Tarp"). For the tarp detector it is collapsed to a
binary target:

    y = 1, y_name = "BlueTarp"     if Class == "Blue Tarp"
    y = 0, y_name = "NonBlueTarp"  otherwise
"""

CHANNELS: List[str] = ["Red", "Green", "Blue"]
PIXEL_SCHEMA: List[Tuple[str, type]] = [
    ("Red", float), ("Green", float), ("Blue", float), ("Class", str),
]

TARGET_CLASS = "Blue Tarp"
POS_NAME = "BlueTarp"
NEG_NAME = "NonBlueTarp"


def _is_url(source) -> bool:
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def _read_remote(url: str, timeout: float) -> pd.DataFrame:
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.Timeout as e:
        raise DataUnavailable(f"timed out after {timeout}s fetching {url}") from e
    except requests.RequestException as e:
        raise DataUnavailable(f"could not fetch {url}: {e}") from e
    return pd.read_csv(io.StringIO(resp.text))


def load_pixel_table(source: Union[str, Path], timeout: float = 30.0) -> pd.DataFrame:
    """
    Load the training pixel table from a local path or an http(s) URL.

    One fetch attempt, bounded by `timeout` seconds. Any failure to obtain a
    table with numeric Red/Green/Blue and a Class column raises
    DataUnavailable.
    """
    try:
        if _is_url(source):
            df = _read_remote(str(source), timeout)
        else:
            df = pd.read_csv(source)
    except DataUnavailable:
        raise
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise DataUnavailable(f"could not read {source}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    missing = [name for name, _ in PIXEL_SCHEMA if name not in df.columns]
    if missing:
        raise DataUnavailable(f"{source} is missing column(s): {missing}")
    if df.empty:
        raise DataUnavailable(f"{source} has no data rows")

    df = df.copy()
    for col in CHANNELS:
        vals = pd.to_numeric(df[col], errors="coerce")
        bad_mask = vals.isna() | ~np.isfinite(vals.fillna(0.0))
        if bad_mask.any():
            bad = df.loc[bad_mask, col].head(5).tolist()
            raise DataUnavailable(f"non-numeric or non-finite values in '{col}': {bad}")
        df[col] = vals.astype(float)
    df["Class"] = df["Class"].astype(str)

    print(f"[pixels] loaded {source} shape={df.shape}")
    print("[pixels] class counts:", df["Class"].value_counts().to_dict())
    return df


def binarize_labels(df: pd.DataFrame,
                    label_col: str = "Class",
                    target: str = TARGET_CLASS) -> pd.DataFrame:
    """Collapse `label_col` to BlueTarp / NonBlueTarp. No row is dropped."""
    if label_col not in df.columns:
        raise ValueError(f"table must contain '{label_col}'")
    is_target = df[label_col].astype(str).str.strip() == target
    y = is_target.astype(int)
    y_name = is_target.map({True: POS_NAME, False: NEG_NAME})
    return df.assign(y=y, y_name=y_name)
