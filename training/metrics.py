from typing import Dict, Optional, Tuple

import numpy as np
from sklearn.metrics import (accuracy_score, average_precision_score, balanced_accuracy_score,
                             cohen_kappa_score, confusion_matrix, log_loss, precision_score,
                             recall_score, roc_auc_score, roc_curve)

from utils.errors import UndefinedMetric

# binary target: 1 = BlueTarp, 0 = NonBlueTarp
LABELS = [0, 1]


def _require_both_classes(y_true, metric: str):
    present = np.unique(np.asarray(y_true))
    if present.size < 2:
        raise UndefinedMetric(metric, f"only one class present in labels ({present.tolist()})")


def confusion_counts(y_true, y_pred) -> Tuple[int, int, int, int]:
    """(tn, fp, fn, tp) with labels fixed to [0, 1]."""
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=LABELS).ravel()
    return int(tn), int(fp), int(fn), int(tp)


def f1_from(precision: float, recall: float) -> float:
    if precision + recall == 0:
        return 0.0
    return 2.0 * precision * recall / (precision + recall)


def roc_auc(y_true, scores) -> float:
    """Area under the ROC curve. Raises UndefinedMetric when y_true has one class."""
    _require_both_classes(y_true, "auc")
    return float(roc_auc_score(y_true, scores))


def pr_auc(y_true, scores) -> float:
    """Average precision (area under the precision/recall curve)."""
    _require_both_classes(y_true, "pr_auc")
    return float(average_precision_score(y_true, scores))


def roc_points(y_true, scores) -> Tuple[np.ndarray, np.ndarray]:
    """(false positive rate, true positive rate) over all achievable thresholds."""
    _require_both_classes(y_true, "roc")
    fpr, tpr, _ = roc_curve(y_true, scores)
    return fpr, tpr


def threshold_metrics(y_true, proba, threshold: float = 0.5) -> Dict[str, float]:
    """Confusion-matrix metrics for hard predictions `proba >= threshold`."""
    y_true = np.asarray(y_true).astype(int)
    y_pred = (np.asarray(proba) >= threshold).astype(int)
    tn, fp, fn, tp = confusion_counts(y_true, y_pred)
    precision = float(precision_score(y_true, y_pred, labels=LABELS, zero_division=0))
    recall = float(recall_score(y_true, y_pred, labels=LABELS, zero_division=0))
    specificity = tn / (tn + fp) if (tn + fp) else 0.0
    return {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "sensitivity": recall,
        "specificity": float(specificity),
        "precision": precision,
        "recall": recall,
        "f1": f1_from(precision, recall),
        "tn": tn, "fp": fp, "fn": fn, "tp": tp,
    }


def cv_summary(y_true, proba, fold_ids, threshold: float = 0.5) -> Dict[str, Optional[float]]:
    """
    Summary of out-of-fold predictions for one model:
    threshold metrics + log-loss, AUC, kappa, balanced accuracy,
    and mean/std of the per-fold accuracy.
    """
    y_true = np.asarray(y_true).astype(int)
    proba = np.asarray(proba, dtype=float)
    y_pred = (proba >= threshold).astype(int)

    out: Dict[str, Optional[float]] = dict(threshold_metrics(y_true, proba, threshold))
    out["log_loss"] = float(log_loss(y_true, np.clip(proba, 1e-15, 1 - 1e-15), labels=LABELS))
    out["kappa"] = float(cohen_kappa_score(y_true, y_pred, labels=LABELS))
    out["balanced_accuracy"] = float(balanced_accuracy_score(y_true, y_pred))
    try:
        out["auc"] = roc_auc(y_true, proba)
    except UndefinedMetric as e:
        print(f"[cv] {e}")
        out["auc"] = None

    fold_acc = [float(np.mean(y_pred[fold_ids == f] == y_true[fold_ids == f]))
                for f in np.unique(fold_ids)]
    out["fold_acc_mean"] = float(np.mean(fold_acc))
    out["fold_acc_std"] = float(np.std(fold_acc))
    return out
