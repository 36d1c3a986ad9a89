# features/scaling.py
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from features.pixels import CHANNELS
from utils.errors import DegenerateFeature

"""
Channel standardization: (value - mean) / std per color channel.

Parameters are fitted once on the training table and stored on the scaler.
Scoring new data (the hold-out set) should reuse them so training and
inference share one feature space.
"""

SCALING_MODES = ("train", "refit")


class ChannelScaler:
    def __init__(self, columns: Optional[List[str]] = None, allow_degenerate: bool = False):
        self.columns = list(columns or CHANNELS)
        self.allow_degenerate = allow_degenerate
        self._sc: Optional[StandardScaler] = None

    @property
    def is_fitted(self) -> bool:
        return self._sc is not None

    @property
    def params(self) -> Dict[str, Tuple[float, float]]:
        """{channel: (mean, std)} as fitted."""
        self._check_fitted()
        return {c: (float(m), float(s))
                for c, m, s in zip(self.columns, self._sc.mean_, self._sc.scale_)}

    def fit(self, df: pd.DataFrame) -> "ChannelScaler":
        values = df[self.columns].to_numpy(dtype=float)
        sc = StandardScaler().fit(values)
        flat = [c for c, span in zip(self.columns, np.ptp(values, axis=0)) if span == 0.0]
        if flat:
            if not self.allow_degenerate:
                raise DegenerateFeature(flat)
            # StandardScaler leaves zero-variance columns at unit scale
            print(f"[scaler] WARNING zero-variance channel(s) {flat}: centered only")
        self._sc = sc
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        self._check_fitted()
        out = df.copy()
        out[self.columns] = self._sc.transform(df[self.columns].to_numpy(dtype=float))
        return out

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)

    def inverse_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        self._check_fitted()
        out = df.copy()
        out[self.columns] = self._sc.inverse_transform(df[self.columns].to_numpy(dtype=float))
        return out

    def _check_fitted(self):
        if self._sc is None:
            raise RuntimeError("ChannelScaler is not fitted")

    def __repr__(self):
        if not self.is_fitted:
            return f"ChannelScaler(columns={self.columns}, unfitted)"
        p = ", ".join(f"{c}={m:.2f}±{s:.2f}" for c, (m, s) in self.params.items())
        return f"ChannelScaler({p})"


def scale_for_scoring(scaler: ChannelScaler, df: pd.DataFrame, mode: str = "train") -> pd.DataFrame:
    """
    Scale rows that are scored by an already-trained model.

    mode="train": reuse the training mean/std stored on `scaler`.
    mode="refit": fit fresh mean/std on `df` itself. Reproduces earlier hold-out
                  results; the features then live in a different space than
                  the training ones.
    """
    if mode not in SCALING_MODES:
        raise ValueError(f"scaling mode must be one of {SCALING_MODES}, got {mode!r}")
    if mode == "train":
        return scaler.transform(df)
    print("[scaler] WARNING refitting scaling on scoring data; "
          "features no longer share the training mean/std")
    fresh = ChannelScaler(scaler.columns, allow_degenerate=scaler.allow_degenerate)
    return fresh.fit_transform(df)


def as_matrix(df: pd.DataFrame, columns: Optional[List[str]] = None) -> np.ndarray:
    return df[list(columns or CHANNELS)].to_numpy(dtype=float)
