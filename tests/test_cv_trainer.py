# tests/test_cv_trainer.py
import numpy as np
import pytest
from sklearn.base import BaseEstimator, ClassifierMixin

from features.pixels import binarize_labels
from features.scaling import ChannelScaler, as_matrix
from training.cv_trainer import CrossValTrainer, build_models, make_folds


class _Broken(BaseEstimator, ClassifierMixin):
    def fit(self, X, y):
        raise ValueError("singular covariance")


def _Xy(df):
    df = ChannelScaler().fit_transform(binarize_labels(df))
    return as_matrix(df), df["y"].to_numpy()


def test_build_models_subset_and_unknown():
    assert [n for n, _ in build_models()] == ["lr", "lda", "qda"]
    assert [n for n, _ in build_models(which="qda, lr")] == ["lr", "qda"]
    with pytest.raises(ValueError):
        build_models(which="lr,svm")


def test_build_models_reads_hyperparameters():
    models = dict(build_models({"qda": {"reg_param": 0.2}, "lda": {"shrinkage": None}}))
    assert models["qda"].reg_param == 0.2
    assert models["lda"].solver == "svd"


def test_folds_cover_every_row_once(noisy_pixels):
    _, y = _Xy(noisy_pixels)
    folds = make_folds(y, k=10, seed=0)
    assert folds.shape == y.shape
    assert set(folds.tolist()) == set(range(10))
    counts = np.bincount(folds)
    assert counts.max() - counts.min() <= 1
    # stratified: every fold has tarps
    assert all(y[folds == f].sum() > 0 for f in range(10))


def test_folds_reject_bad_k():
    with pytest.raises(ValueError):
        make_folds(np.array([0, 1] * 5), k=1)
    with pytest.raises(ValueError):
        make_folds(np.array([0, 1, 0]), k=10)


def test_out_of_fold_predictions_cover_all_rows(noisy_pixels):
    X, y = _Xy(noisy_pixels)
    run = CrossValTrainer(k=10, seed=0).fit(X, y, build_models())
    assert set(run.results) == {"lr", "lda", "qda"}
    assert not run.failures
    for res in run.results.values():
        assert res.oof_proba.shape == y.shape
        assert np.isfinite(res.oof_proba).all()
        assert ((res.oof_proba >= 0) & (res.oof_proba <= 1)).all()
        assert res.summary["auc"] > 0.8
        for key in ("accuracy", "log_loss", "precision", "recall", "f1", "kappa",
                    "balanced_accuracy", "fold_acc_mean", "fold_acc_std"):
            assert key in res.summary
        assert hasattr(res.model, "classes_")


def test_single_fold_partition_shared_by_models(noisy_pixels):
    X, y = _Xy(noisy_pixels)
    run = CrossValTrainer(k=5, seed=7).fit(X, y, build_models())
    np.testing.assert_array_equal(run.fold_ids, make_folds(y, k=5, seed=7))


def test_failed_model_does_not_stop_others(noisy_pixels):
    X, y = _Xy(noisy_pixels)
    models = [("broken", _Broken())] + build_models(which="lr")
    run = CrossValTrainer(k=5).fit(X, y, models)
    assert "singular covariance" in run.failures["broken"]
    assert list(run.results) == ["lr"]


def test_parallel_matches_serial(noisy_pixels):
    X, y = _Xy(noisy_pixels)
    serial = CrossValTrainer(k=5, seed=3, n_jobs=1).fit(X, y, build_models())
    par = CrossValTrainer(k=5, seed=3, n_jobs=2).fit(X, y, build_models())
    for name in serial.results:
        np.testing.assert_allclose(par.results[name].oof_proba, serial.results[name].oof_proba)


def test_single_class_training_rejected(noisy_pixels):
    X, _ = _Xy(noisy_pixels)
    with pytest.raises(ValueError, match="<2 classes"):
        CrossValTrainer(k=5).fit(X, np.zeros(len(X), dtype=int), build_models())


def test_resolve_n_jobs(monkeypatch):
    from utils import environment
    monkeypatch.setattr(environment.os, "cpu_count", lambda: 4)
    assert environment.resolve_n_jobs(None) == 1
    assert environment.resolve_n_jobs(0) == 1
    assert environment.resolve_n_jobs(2) == 2
    assert environment.resolve_n_jobs(16) == 4
    assert environment.resolve_n_jobs(-1) == 4
    assert environment.resolve_n_jobs(-2) == 3
