"""
tarp_detection: Blue Tarp Pixel Classification for Disaster Relief
===================================================================

A small, reproducible analysis package that detects blue tarps (temporary
shelters) from per-pixel RGB values of aerial imagery, to help locate
displaced people after a disaster.

Main Modules:
--------------
• features      – Training pixel table, binary labels, channel scaling, hold-out file parsing
• training      – 10-fold cross-validation of LR / LDA / QDA and the all-in-one pipeline
• classify      – Hold-out evaluation (confusion metrics, ROC-AUC) and batch prediction
• utils         – Paths, worker counts, error kinds and report artifacts
• tests         – Unit and end-to-end tests

Highlights:
-----------
- One fold partition shared by every model for a fair comparison
- Hold-out features scaled with the training mean/std (configurable)
- Malformed hold-out files skipped and listed, never fatal
- Undefined metrics reported as "undefined", not as zeros

References:
-----------
1. Pedregosa et al., *Scikit-learn: Machine Learning in Python*, JMLR 2011.
2. Hastie, Tibshirani, Friedman, *The Elements of Statistical Learning*, ch. 4 (LDA/QDA, logistic regression).

Usage:
------
To train, cross-validate and evaluate on the hold-out files:
    $ python -m training.feature_clf --config configs/config_tarp.yaml --out_dir work_dir/runs/tarp

To score or evaluate with a saved bundle:
    $ python -m classify.predict_cls --bundle work_dir/runs/tarp/model.joblib --holdout_dir data/holdout --out work_dir/pred
    $ python -m classify.eval_cls --bundle work_dir/runs/tarp/model.joblib --feats data/HaitiPixels.csv --out work_dir/eval
"""
