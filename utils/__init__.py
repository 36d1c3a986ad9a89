"""
utils: Shared Helpers
=====================

Modules:
---------
- errors.py      : DataUnavailable, FileParseError, DegenerateFeature, UndefinedMetric.
- paths.py       : Resolve config paths under work_root.
- environment.py : Worker count and random generator helpers.
- report.py      : Metric tables, ROC plots and the markdown summary.
"""
