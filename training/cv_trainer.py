# training/cv_trainer.py
from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
from joblib import Parallel, delayed
from sklearn.base import clone
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis, QuadraticDiscriminantAnalysis
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import KFold, StratifiedKFold
from tqdm import tqdm

from training.metrics import cv_summary

"""
k-fold cross-validation of the three tarp classifiers.

One fold partition is drawn per run and shared by every model, and all
models see the same scaled inputs, so their out-of-fold predictions are
directly comparable. Each model then gets a final fit on all rows.

Fold fits can fan out over a joblib worker pool (`n_jobs`). The pool only
lives inside `fit`; results are placed by fold index, never by arrival.
"""

MODEL_NAMES = ("lr", "lda", "qda")
DISPLAY_NAMES = {
    "lr": "Logistic Regression",
    "lda": "LDA",
    "qda": "QDA",
}


class CVResult(NamedTuple):
    name: str
    model: object              # final estimator fitted on all rows
    oof_proba: np.ndarray      # P(BlueTarp) for each row, from the fold it was held out in
    summary: Dict[str, Optional[float]]


class CVRun(NamedTuple):
    results: Dict[str, CVResult]
    failures: Dict[str, str]   # model name -> error message
    fold_ids: np.ndarray


def build_models(model_cfg: Optional[Dict] = None, which: str = "lr,lda,qda") -> List[Tuple[str, object]]:
    """Named, unfitted estimators for the requested subset of lr,lda,qda."""
    model_cfg = model_cfg or {}
    lr_cfg = model_cfg.get("lr", {})
    lda_cfg = model_cfg.get("lda", {})
    qda_cfg = model_cfg.get("qda", {})

    lr = LogisticRegression(max_iter=int(lr_cfg.get("max_iter", 2000)),
                            C=float(lr_cfg.get("C", 1.0)))
    shrinkage = lda_cfg.get("shrinkage", 0.01)
    if shrinkage is None:
        lda = LinearDiscriminantAnalysis(solver="svd")
    else:
        lda = LinearDiscriminantAnalysis(solver=lda_cfg.get("solver", "lsqr"), shrinkage=shrinkage)
    qda = QuadraticDiscriminantAnalysis(reg_param=float(qda_cfg.get("reg_param", 0.01)))

    models = [("lr", lr), ("lda", lda), ("qda", qda)]
    if which:
        keep = [w.strip() for w in which.split(",") if w.strip()]
        unknown = sorted(set(keep) - set(MODEL_NAMES))
        if unknown:
            raise ValueError(f"unknown model(s) {unknown}; choose from {list(MODEL_NAMES)}")
        models = [m for m in models if m[0] in keep]
    return models


def make_folds(y, k: int = 10, seed: int = 42, stratify: bool = True) -> np.ndarray:
    """Fold id (0..k-1) per row; each row is in exactly one validation fold."""
    y = np.asarray(y)
    if k < 2:
        raise ValueError(f"k must be >= 2, got {k}")
    if len(y) < k:
        raise ValueError(f"cannot split {len(y)} rows into {k} folds")
    splitter = (StratifiedKFold(n_splits=k, shuffle=True, random_state=seed) if stratify
                else KFold(n_splits=k, shuffle=True, random_state=seed))
    fold_ids = np.full(len(y), -1, dtype=int)
    for f, (_, te) in enumerate(splitter.split(np.zeros(len(y)), y)):
        fold_ids[te] = f
    return fold_ids


def positive_proba(model, X: np.ndarray) -> np.ndarray:
    classes = list(model.classes_)
    return model.predict_proba(X)[:, classes.index(1)]


def _fit_fold(estimator, X, y, fold_ids, fold):
    tr, te = fold_ids != fold, fold_ids == fold
    estimator.fit(X[tr], y[tr])
    return fold, positive_proba(estimator, X[te])


class CrossValTrainer:
    def __init__(self, k: int = 10, seed: int = 42, stratify: bool = True,
                 n_jobs: int = 1, threshold: float = 0.5):
        self.k = int(k)
        self.seed = int(seed)
        self.stratify = bool(stratify)
        self.n_jobs = int(n_jobs)
        self.threshold = float(threshold)

    def fit(self, X: np.ndarray, y: np.ndarray, models: List[Tuple[str, object]]) -> CVRun:
        X = np.asarray(X, dtype=float)
        y = np.asarray(y).astype(int)
        if np.unique(y).size < 2:
            counts = dict(zip(*np.unique(y, return_counts=True)))
            raise ValueError(f"training table has <2 classes. Class counts: {counts}")

        fold_ids = make_folds(y, self.k, self.seed, self.stratify)
        print(f"[cv] {self.k}-fold ({'stratified' if self.stratify else 'plain'}), "
              f"n={len(y)}, n_jobs={self.n_jobs}")

        results: Dict[str, CVResult] = {}
        failures: Dict[str, str] = {}
        with Parallel(n_jobs=self.n_jobs) as parallel:
            for name, estimator in tqdm(models, desc="cv", leave=False):
                try:
                    results[name] = self._cross_validate(parallel, name, estimator, X, y, fold_ids)
                except (ValueError, ArithmeticError) as e:
                    print(f"[cv] {name} FAILED: {e}")
                    failures[name] = str(e)
        return CVRun(results, failures, fold_ids)

    def _cross_validate(self, parallel, name, estimator, X, y, fold_ids) -> CVResult:
        parts = parallel(delayed(_fit_fold)(clone(estimator), X, y, fold_ids, f)
                         for f in range(self.k))
        oof = np.full(len(y), np.nan)
        for fold, proba in sorted(parts, key=lambda p: p[0]):
            oof[fold_ids == fold] = proba
        if np.isnan(oof).any():
            raise ValueError(f"{name}: non-finite out-of-fold probabilities")

        final = clone(estimator).fit(X, y)
        summary = cv_summary(y, oof, fold_ids, self.threshold)
        auc = summary["auc"]
        print(f"[cv] {name}: acc={summary['accuracy']:.4f} "
              f"auc={'undefined' if auc is None else f'{auc:.4f}'} f1={summary['f1']:.4f}")
        return CVResult(name, final, oof, summary)
