"""
training: Cross-Validated Model Fitting
=======================================

Fits logistic regression, linear discriminant analysis and quadratic
discriminant analysis on the scaled pixel channels under one shared k-fold
partition.

Modules:
---------
- cv_trainer.py  : build_models, make_folds, CrossValTrainer.
- metrics.py     : confusion counts, ROC/PR AUC, CV summary.
- feature_clf.py : All-in-one pipeline (train / eval / all) and report.

Key Features:
--------------
- Identical folds and inputs for every model.
- Optional fold-level worker pool (joblib), order-independent results.
- A model that fails to fit is reported; the others still run.
"""
