"""Training loss computation and running loss metrics on PyTorch tensors."""
from __future__ import annotations

from .config import MetricsConfig, build_losses, build_tracker, load_config, setup_logging
from .errors import InvalidConfigError, InvalidStateError, LossMeterError, ShapeMismatchError
from .evaluation import evaluate
from .losses import (
    LOSS_REGISTRY,
    Loss,
    LossConfig,
    LossConfigBuilder,
    LossKind,
    exclude_batch_axis,
    hinge_loss,
    l1_loss,
    l2_loss,
    sigmoid_binary_cross_entropy_loss,
    softmax_cross_entropy_loss,
)
from .metrics import BestMetricTracker, RunningAverage, TrainingMetric

__version__ = "0.1.0"

__all__ = [
    "MetricsConfig",
    "build_losses",
    "build_tracker",
    "load_config",
    "setup_logging",
    "LossMeterError",
    "InvalidConfigError",
    "InvalidStateError",
    "ShapeMismatchError",
    "evaluate",
    "LOSS_REGISTRY",
    "Loss",
    "LossConfig",
    "LossConfigBuilder",
    "LossKind",
    "exclude_batch_axis",
    "hinge_loss",
    "l1_loss",
    "l2_loss",
    "sigmoid_binary_cross_entropy_loss",
    "softmax_cross_entropy_loss",
    "BestMetricTracker",
    "RunningAverage",
    "TrainingMetric",
]
