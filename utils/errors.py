# utils/errors.py
"""
Error kinds raised across the analysis.

Only DataUnavailable is fatal for a run. The others are raised by a single
unit (one hold-out file, one channel, one metric) and are caught and
reported by the caller.
"""


class DataUnavailable(RuntimeError):
    """Training source could not be fetched or parsed as a pixel table."""


class FileParseError(ValueError):
    """A single hold-out file is unreadable or has too few columns."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class DegenerateFeature(ValueError):
    """A channel has zero variance, so it cannot be standardized."""

    def __init__(self, channels):
        self.channels = list(channels)
        super().__init__(f"zero-variance channel(s): {', '.join(self.channels)}")


class UndefinedMetric(ValueError):
    """A metric has no defined value for this sample (e.g. AUC with one class)."""

    def __init__(self, metric: str, reason: str):
        self.metric = metric
        self.reason = reason
        super().__init__(f"{metric} undefined: {reason}")
