# utils/report.py
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from training.metrics import roc_points
from utils.errors import UndefinedMetric

"""
Report artifacts for a tarp analysis run: metric tables (CSV), ROC plots
(PNG) and a markdown summary that lists undefined metrics, failed models
and skipped hold-out files.
"""

METRIC_COLS = ["accuracy", "auc", "pr_auc", "f1", "sensitivity", "specificity",
               "precision", "recall", "kappa", "balanced_accuracy", "log_loss"]


def write_metrics_table(df: pd.DataFrame, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def plot_roc_curves(curves: Dict[str, Tuple[np.ndarray, np.ndarray]], path: Path, title: str) -> Optional[Path]:
    """curves: {label: (y_true, scores)}. Curves with a single class are left out."""
    fig, ax = plt.subplots(figsize=(5, 5))
    drawn = 0
    for label, (y_true, scores) in curves.items():
        try:
            fpr, tpr = roc_points(y_true, scores)
        except UndefinedMetric as e:
            print(f"[report] {label}: {e}; no ROC curve")
            continue
        ax.plot(fpr, tpr, label=label)
        drawn += 1
    if not drawn:
        plt.close(fig)
        return None
    ax.plot([0, 1], [0, 1], linestyle="--", color="grey", linewidth=0.8)
    ax.set_xlabel("1 - specificity")
    ax.set_ylabel("sensitivity")
    ax.set_title(title)
    ax.legend(loc="lower right")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=120, bbox_inches="tight")
    plt.close(fig)
    return path


def _fmt(v) -> str:
    if v is None or (isinstance(v, float) and np.isnan(v)):
        return "undefined"
    if isinstance(v, float):
        return f"{v:.4f}"
    return str(v)


def _md_table(df: pd.DataFrame) -> List[str]:
    cols = ["model"] + [c for c in METRIC_COLS if c in df.columns]
    lines = ["| " + " | ".join(cols) + " |", "|" + "---|" * len(cols)]
    for _, r in df.iterrows():
        lines.append("| " + " | ".join(_fmt(r[c]) for c in cols) + " |")
    return lines


def write_summary(path: Path,
                  cv_table: Optional[pd.DataFrame] = None,
                  holdout_table: Optional[pd.DataFrame] = None,
                  failures: Optional[Dict[str, str]] = None,
                  skipped: Optional[List[Tuple[str, str]]] = None,
                  labels_synthetic: bool = False,
                  scaling_mode: str = "train",
                  scaler=None) -> Path:
    out = ["# Blue tarp classification report", ""]

    if scaler is not None:
        out += ["## Feature scaling", ""]
        for ch, (m, s) in scaler.params.items():
            out.append(f"- {ch}: mean={m:.3f}, std={s:.3f}")
        out.append("")

    if cv_table is not None:
        out += ["## Cross-validation", ""] + _md_table(cv_table) + [""]
    if failures:
        out += ["### Models that failed to fit", ""]
        out += [f"- {name}: {msg}" for name, msg in failures.items()] + [""]

    if holdout_table is not None:
        out += ["## Hold-out evaluation", ""]
        if labels_synthetic:
            out += ["**Hold-out labels are synthetic (random).** The numbers below are a "
                    "placeholder for the evaluation path, not a performance estimate.", ""]
        if scaling_mode == "refit":
            out += ["Hold-out features were scaled with their own mean/std instead of the "
                    "training parameters.", ""]
        out += _md_table(holdout_table) + [""]
        flagged = holdout_table[holdout_table["undefined"].astype(str) != ""]
        for _, r in flagged.iterrows():
            out.append(f"- {r['model']}: undefined {r['undefined']}")
        if len(flagged):
            out.append("")

    if skipped:
        out += ["## Skipped hold-out files", ""]
        out += [f"- {f}: {reason}" for f, reason in skipped] + [""]

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(out))
    return path
