# classify/eval_cls.py
from __future__ import annotations

import argparse
import os
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Tuple

import joblib
import numpy as np
import pandas as pd

from features.pixels import CHANNELS, binarize_labels, load_pixel_table
from features.scaling import as_matrix, scale_for_scoring
from training.cv_trainer import positive_proba
from training.metrics import pr_auc, roc_auc, threshold_metrics
from utils.errors import UndefinedMetric

"""
Evaluate trained tarp classifiers on labeled rows.

Scores P(BlueTarp) per row, thresholds it (0.5 by default), and derives the
confusion-matrix metrics plus ROC-AUC and PR-AUC. When a metric has no
defined value for the sample (e.g. AUC when the labels contain a single
class) it is stored as None and named in `MetricsRecord.undefined`, so the
report can print "undefined" rather than a misleading number.

CLI:
    python -m classify.eval_cls --bundle runs/tarp/model.joblib --feats pixels.csv --out runs/tarp_eval
"""


@dataclass(frozen=True)
class MetricsRecord:
    model: str
    n: int
    threshold: float
    accuracy: float
    auc: Optional[float]
    pr_auc: Optional[float]
    f1: float
    sensitivity: float
    specificity: float
    precision: float
    recall: float
    tn: int
    fp: int
    fn: int
    tp: int
    undefined: Tuple[str, ...] = field(default_factory=tuple)

    def as_row(self) -> dict:
        row = asdict(self)
        row["undefined"] = ",".join(self.undefined)
        return row


def evaluate_model(name: str, model, X, y_true, threshold: float = 0.5) -> Tuple[MetricsRecord, pd.DataFrame]:
    """
    Evaluate `model` on rows `X` with true labels `y_true` (1 = BlueTarp),
    matched one-to-one by position.
    """
    X = np.asarray(X, dtype=float)
    y_true = np.asarray(y_true).astype(int)
    if len(X) != len(y_true):
        raise ValueError(f"{len(X)} feature rows but {len(y_true)} labels")

    proba = positive_proba(model, X)
    m = threshold_metrics(y_true, proba, threshold)

    undefined: List[str] = []
    scores = {}
    for key, fn in (("auc", roc_auc), ("pr_auc", pr_auc)):
        try:
            scores[key] = fn(y_true, proba)
        except UndefinedMetric as e:
            print(f"[eval] {name}: {e}")
            scores[key] = None
            undefined.append(key)

    rec = MetricsRecord(model=name, n=len(y_true), threshold=float(threshold),
                        auc=scores["auc"], pr_auc=scores["pr_auc"],
                        undefined=tuple(undefined), **m)
    preds = pd.DataFrame({
        "model": name,
        "y": y_true,
        "proba": proba,
        "pred": (proba >= threshold).astype(int),
    })
    return rec, preds


def metrics_table(records: List[MetricsRecord]) -> pd.DataFrame:
    cols = ["model", "n", "accuracy", "auc", "pr_auc", "f1", "sensitivity", "specificity",
            "precision", "recall", "tn", "fp", "fn", "tp", "threshold", "undefined"]
    return pd.DataFrame([r.as_row() for r in records], columns=cols)


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('--bundle', required=True, help="model.joblib written by training.feature_clf")
    ap.add_argument('--feats', required=True, help="CSV with Red, Green, Blue, Class")
    ap.add_argument('--out', required=True)
    ap.add_argument('--scaling', default="train", choices=["train", "refit"])
    args = ap.parse_args()

    job = joblib.load(args.bundle)
    df = binarize_labels(load_pixel_table(args.feats), target=job.get("target_class", "Blue Tarp"))
    X = as_matrix(scale_for_scoring(job["scaler"], df, args.scaling), job.get("features", CHANNELS))

    records, preds = [], []
    for name, model in job["models"].items():
        rec, p = evaluate_model(name, model, X, df["y"].values, job.get("threshold", 0.5))
        records.append(rec)
        preds.append(p)

    table = metrics_table(records)
    print(table.to_string(index=False))
    os.makedirs(args.out, exist_ok=True)
    table.to_csv(os.path.join(args.out, 'metrics.csv'), index=False)
    pd.concat(preds, ignore_index=True).to_csv(os.path.join(args.out, 'predictions.csv'), index=False)

if __name__ == '__main__':
    main()
