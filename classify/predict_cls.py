# classify/predict_cls.py

import argparse
import os

import joblib
import numpy as np
import pandas as pd

from features.holdout import parse_holdout_dir
from features.pixels import CHANNELS, NEG_NAME, POS_NAME
from features.scaling import as_matrix, scale_for_scoring
from training.cv_trainer import positive_proba


def predict_holdout(job: dict, records: pd.DataFrame, scaling: str = "train") -> pd.DataFrame:
    """Score parsed hold-out records with every model in a saved bundle."""
    out = records.copy()
    if out.empty:
        return out
    X = as_matrix(scale_for_scoring(job["scaler"], records, scaling), job.get("features", CHANNELS))
    thr = float(job.get("threshold", 0.5))
    for name, model in job["models"].items():
        p = positive_proba(model, X)
        out[f"proba_{name}"] = p
        out[f"pred_{name}"] = np.where(p >= thr, POS_NAME, NEG_NAME)
    return out


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('--bundle', required=True)
    ap.add_argument('--holdout_dir', required=True)
    ap.add_argument('--out', required=True)
    ap.add_argument('--pattern', default="*.txt")
    ap.add_argument('--header_lines', type=int, default=6)
    ap.add_argument('--scaling', default="train", choices=["train", "refit"])
    args = ap.parse_args()

    job = joblib.load(args.bundle)
    batch = parse_holdout_dir(args.holdout_dir, args.pattern, args.header_lines)
    preds = predict_holdout(job, batch.records, args.scaling)

    os.makedirs(args.out, exist_ok=True)
    preds.to_csv(os.path.join(args.out, 'holdout_predictions.csv'), index=False)
    pd.DataFrame(batch.skipped, columns=["file", "reason"]).to_csv(
        os.path.join(args.out, 'skipped_files.csv'), index=False)
    for name in job["models"]:
        col = f"pred_{name}"
        if col in preds.columns:
            print(f"[predict] {name}:", preds[col].value_counts().to_dict())
    print(f"Saved: {args.out} ({len(preds)} rows)")

if __name__ == '__main__':
    main()
