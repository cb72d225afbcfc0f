"""Metric exports."""
from __future__ import annotations

from .base import RunningAverage, TensorSet, TrainingMetric
from .tracking import BestMetricTracker

__all__ = ["TrainingMetric", "RunningAverage", "TensorSet", "BestMetricTracker"]
