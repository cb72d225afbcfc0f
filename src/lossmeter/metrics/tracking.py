"""Best-value tracking and early stopping on running metrics."""
from __future__ import annotations

import logging
import math
from typing import Optional

from ..errors import InvalidConfigError

logger = logging.getLogger(__name__)

_MODES = ("min", "max")


class BestMetricTracker:
    """Track the best value of a metric across epochs.

    ``update`` treats NaN (the "no data yet" value of a running metric) as a
    non-improvement, so comparisons never see it.
    """

    def __init__(self, mode: str = "min", patience: int = 0, min_delta: float = 0.0) -> None:
        if mode not in _MODES:
            raise InvalidConfigError(f"mode must be one of {_MODES}, got '{mode}'")
        if patience < 0:
            raise InvalidConfigError("patience must be >= 0")
        if min_delta < 0:
            raise InvalidConfigError("min_delta must be >= 0")
        self.mode = mode
        self.patience = int(patience)
        self.min_delta = float(min_delta)
        self.best: Optional[float] = None
        self.epochs_since_improvement = 0

    def _improves(self, value: float) -> bool:
        if self.best is None:
            return True
        if self.mode == "min":
            return value < self.best - self.min_delta
        return value > self.best + self.min_delta

    def update(self, value: float) -> bool:
        value = float(value)
        if math.isnan(value):
            logger.warning("Ignoring NaN metric value; no data was accumulated for this epoch")
            improved = False
        else:
            improved = self._improves(value)

        if improved:
            self.best = value
            self.epochs_since_improvement = 0
        else:
            self.epochs_since_improvement += 1
        return improved

    @property
    def should_stop(self) -> bool:
        return self.patience > 0 and self.epochs_since_improvement >= self.patience

    def reset(self) -> None:
        self.best = None
        self.epochs_since_improvement = 0


__all__ = ["BestMetricTracker"]
