"""
classify: Hold-Out Evaluation and Prediction
============================================

Applies trained tarp classifiers to new pixels.

Modules:
---------
- eval_cls.py    : evaluate_model → MetricsRecord; metrics_table.
- predict_cls.py : Scores a directory of hold-out files with a saved bundle.

Metrics:
---------
Accuracy, sensitivity/recall, specificity, precision, F1, ROC-AUC, PR-AUC
at a 0.5 probability threshold.
"""
