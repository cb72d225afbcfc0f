"""Loss exports."""
from __future__ import annotations

from .base import LOSS_REGISTRY, exclude_batch_axis, reduce_except_batch
from .config import LossConfig, LossConfigBuilder, LossKind
from .functional import compute_loss
from .loss import (
    Loss,
    hinge_loss,
    l1_loss,
    l2_loss,
    sigmoid_binary_cross_entropy_loss,
    softmax_cross_entropy_loss,
)

__all__ = [
    "LOSS_REGISTRY",
    "exclude_batch_axis",
    "reduce_except_batch",
    "LossConfig",
    "LossConfigBuilder",
    "LossKind",
    "compute_loss",
    "Loss",
    "l1_loss",
    "l2_loss",
    "sigmoid_binary_cross_entropy_loss",
    "softmax_cross_entropy_loss",
    "hinge_loss",
]
