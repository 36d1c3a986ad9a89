# training/feature_clf.py
from __future__ import annotations
import argparse, copy
from pathlib import Path
from typing import Dict, Optional

import joblib
import numpy as np
import pandas as pd
import yaml

from classify.eval_cls import evaluate_model, metrics_table
from features.holdout import assign_holdout_labels, parse_holdout_dir
from features.pixels import CHANNELS, binarize_labels, load_pixel_table
from features.scaling import ChannelScaler, as_matrix, scale_for_scoring
from training.cv_trainer import DISPLAY_NAMES, CrossValTrainer, build_models
from utils.environment import resolve_n_jobs
from utils.paths import resolve_source, resolve_under_root_cfg
from utils.report import plot_roc_curves, write_metrics_table, write_summary
"""
All-in-one (load → label → scale → 10-fold CV of LR/LDA/QDA → hold-out → report):
python -m training.feature_clf --mode all --config configs/config_tarp.yaml --out_dir work_dir/runs/tarp


Train only (writes model.joblib, cv_metrics.csv, oof_predictions.csv, roc_cv.png):
python -m training.feature_clf --mode train --config configs/config_tarp.yaml --out_dir work_dir/runs/tarp \
  --source data/HaitiPixels.csv


Evaluate a trained bundle on a hold-out directory later:
python -m training.feature_clf \
  --mode eval \
  --config configs/config_tarp.yaml \
  --out_dir work_dir/runs/tarp \
  --holdout_dir data/holdout \
  --holdout_labels filename
"""

DEFAULT_CFG: Dict = {
    "work_root": ".",
    "data": {"source": "data/HaitiPixels.csv", "timeout": 30,
             "label_col": "Class", "target_class": "Blue Tarp"},
    "scaling": {"allow_degenerate": False, "holdout_mode": "train"},
    "train": {"k": 10, "seed": 42, "stratify": True, "n_jobs": 1,
              "threshold": 0.5, "models": "lr,lda,qda"},
    "models": {},
    "holdout": {"dir": "data/holdout", "pattern": "*.txt", "header_lines": 6,
                "labels": "random", "seed": 1},
}


def _merge(base: Dict, over: Dict) -> Dict:
    out = copy.deepcopy(base)
    for k, v in (over or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str]) -> Dict:
    if not path:
        return copy.deepcopy(DEFAULT_CFG)
    with open(path, "r") as f:
        return _merge(DEFAULT_CFG, yaml.safe_load(f) or {})


def train_stage(cfg: Dict, out_dir: Path) -> Dict:
    dcfg, tcfg = cfg["data"], cfg["train"]
    df = load_pixel_table(resolve_source(cfg, dcfg["source"]), timeout=float(dcfg["timeout"]))
    df = binarize_labels(df, label_col=dcfg["label_col"], target=dcfg["target_class"])
    print("[feature_clf] label counts:", df["y_name"].value_counts().to_dict())

    scaler = ChannelScaler(CHANNELS, allow_degenerate=bool(cfg["scaling"]["allow_degenerate"]))
    df_sc = scaler.fit_transform(df)
    print(f"[feature_clf] {scaler!r}")

    trainer = CrossValTrainer(k=tcfg["k"], seed=tcfg["seed"], stratify=tcfg["stratify"],
                              n_jobs=resolve_n_jobs(tcfg.get("n_jobs")), threshold=tcfg["threshold"])
    X, y = as_matrix(df_sc), df_sc["y"].to_numpy()
    run = trainer.fit(X, y, build_models(cfg.get("models"), tcfg["models"]))
    if not run.results:
        raise RuntimeError(f"every model failed to fit: {run.failures}")

    cv_table = pd.DataFrame([{"model": name, **res.summary} for name, res in run.results.items()])
    write_metrics_table(cv_table, out_dir / "cv_metrics.csv")

    oof = pd.DataFrame({"row": np.arange(len(y)), "fold": run.fold_ids, "y": y})
    for name, res in run.results.items():
        oof[f"proba_{name}"] = res.oof_proba
    oof.to_csv(out_dir / "oof_predictions.csv", index=False)

    plot_roc_curves({DISPLAY_NAMES[n]: (y, r.oof_proba) for n, r in run.results.items()},
                    out_dir / "roc_cv.png", f"{trainer.k}-fold CV ROC")

    job = {
        "models": {name: res.model for name, res in run.results.items()},
        "scaler": scaler,
        "features": CHANNELS,
        "threshold": float(tcfg["threshold"]),
        "target_class": dcfg["target_class"],
        "failures": run.failures,
    }
    job_path = out_dir / "model.joblib"
    joblib.dump(job, job_path)
    print(f"[feature_clf] saved {sorted(job['models'])} → {job_path}")
    return {"job": job, "cv_table": cv_table, "cv_run": run}


def eval_stage(cfg: Dict, out_dir: Path, job: Dict) -> Dict:
    hcfg = cfg["holdout"]
    batch = parse_holdout_dir(resolve_under_root_cfg(cfg, hcfg["dir"]),
                              pattern=hcfg["pattern"], header_lines=int(hcfg["header_lines"]))
    out = {"skipped": batch.skipped, "holdout_table": None, "labels_synthetic": hcfg["labels"] == "random"}
    if batch.records.empty:
        print("[feature_clf] no hold-out rows parsed; skipping hold-out evaluation")
        return out

    recs = assign_holdout_labels(batch.records, mode=hcfg["labels"], seed=hcfg.get("seed"))
    if recs.empty:
        print("[feature_clf] no labeled hold-out rows; skipping hold-out evaluation")
        return out

    mode = cfg["scaling"]["holdout_mode"]
    X = as_matrix(scale_for_scoring(job["scaler"], recs, mode), job["features"])
    y = recs["y"].to_numpy()

    records, preds = [], []
    for name, model in job["models"].items():
        rec, p = evaluate_model(name, model, X, y, job["threshold"])
        records.append(rec)
        preds.append(p.assign(ID=recs["ID"].values, source_file=recs["source_file"].values))
    table = metrics_table(records)
    print(table.to_string(index=False))

    write_metrics_table(table, out_dir / "holdout_metrics.csv")
    pd.concat(preds, ignore_index=True).to_csv(out_dir / "holdout_predictions.csv", index=False)
    plot_roc_curves({DISPLAY_NAMES.get(p["model"].iat[0], p["model"].iat[0]): (p["y"].values, p["proba"].values)
                     for p in preds},
                    out_dir / "roc_holdout.png", "Hold-out ROC")
    out.update(holdout_table=table, records=records)
    return out


def run_analysis(cfg: Dict, out_dir: Path, mode: str = "all") -> Dict:
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    result: Dict = {}

    if mode in ("train", "all"):
        result.update(train_stage(cfg, out_dir))
        job = result["job"]
    else:
        job_path = out_dir / "model.joblib"
        assert job_path.exists(), f"no trained bundle at {job_path}; run --mode train first"
        job = joblib.load(job_path)
        cv_csv = out_dir / "cv_metrics.csv"
        result["cv_table"] = pd.read_csv(cv_csv) if cv_csv.exists() else None

    if mode in ("eval", "all"):
        result.update(eval_stage(cfg, out_dir, job))

    report = write_summary(
        out_dir / "report.md",
        cv_table=result.get("cv_table"),
        holdout_table=result.get("holdout_table"),
        failures=job.get("failures"),
        skipped=result.get("skipped"),
        labels_synthetic=result.get("labels_synthetic", False),
        scaling_mode=cfg["scaling"]["holdout_mode"],
        scaler=job["scaler"],
    )
    print(f"[feature_clf] report → {report}")
    result["report"] = report
    return result


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--mode", default="all", choices=["train", "eval", "all"],
                    help="Run part of the pipeline or everything.")
    ap.add_argument("--config", help="YAML config")
    ap.add_argument("--out_dir", required=True)
    ap.add_argument("--source", help="Overrides cfg.data.source (path or URL).")
    ap.add_argument("--holdout_dir", help="Overrides cfg.holdout.dir.")
    ap.add_argument("--holdout_labels", choices=["random", "filename"],
                    help="Overrides cfg.holdout.labels.")
    ap.add_argument("--holdout_scaling", choices=["train", "refit"],
                    help="Overrides cfg.scaling.holdout_mode.")
    ap.add_argument("--models", help="subset of lr,lda,qda")
    ap.add_argument("--k", type=int)
    ap.add_argument("--n_jobs", type=int)
    args = ap.parse_args()
    print(f"[feature_clf] args: {args}")

    cfg = load_config(args.config)
    if args.source:
        cfg["data"]["source"] = args.source
    if args.holdout_dir:
        cfg["holdout"]["dir"] = args.holdout_dir
    if args.holdout_labels:
        cfg["holdout"]["labels"] = args.holdout_labels
    if args.holdout_scaling:
        cfg["scaling"]["holdout_mode"] = args.holdout_scaling
    if args.models:
        cfg["train"]["models"] = args.models
    if args.k:
        cfg["train"]["k"] = args.k
    if args.n_jobs is not None:
        cfg["train"]["n_jobs"] = args.n_jobs

    run_analysis(cfg, Path(args.out_dir), args.mode)

if __name__ == "__main__":
    main()
