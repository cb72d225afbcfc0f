"""Per-kind loss computations.

Every function maps ``(label, prediction, config)`` to a weighted elementwise
loss tensor. :func:`compute_loss` picks the function for ``config.kind`` and
averages the result over all non-batch axes.
"""
from __future__ import annotations

from typing import Callable, Dict

import torch
from torch import Tensor
from torch.nn import functional as F

from ..errors import ShapeMismatchError
from .base import broadcast_pair, normalize_axis, reduce_except_batch
from .config import LossConfig, LossKind

LossFn = Callable[[Tensor, Tensor, LossConfig], Tensor]

# Lower bound for probabilities inside log() when predictions already went through a sigmoid.
PROB_EPS = 1e-12

_LOSS_FUNCTIONS: Dict[LossKind, LossFn] = {}


def _loss_fn(kind: LossKind) -> Callable[[LossFn], LossFn]:
    def decorator(fn: LossFn) -> LossFn:
        _LOSS_FUNCTIONS[kind] = fn
        return fn

    return decorator


@_loss_fn(LossKind.L1)
def l1(label: Tensor, prediction: Tensor, config: LossConfig) -> Tensor:
    label, prediction = broadcast_pair(label, prediction)
    return (label - prediction).abs() * config.weight


@_loss_fn(LossKind.L2)
def l2(label: Tensor, prediction: Tensor, config: LossConfig) -> Tensor:
    label, prediction = broadcast_pair(label, prediction)
    return (label - prediction).square() * (config.weight / 2)


@_loss_fn(LossKind.SIGMOID_BCE)
def sigmoid_binary_cross_entropy(label: Tensor, prediction: Tensor, config: LossConfig) -> Tensor:
    label, prediction = broadcast_pair(label, prediction)
    label = label.to(prediction.dtype)
    if not config.from_sigmoid:
        loss = F.binary_cross_entropy_with_logits(prediction, label, reduction="none")
    else:
        log_p = torch.log(prediction.clamp_min(PROB_EPS))
        log_not_p = torch.log((1 - prediction).clamp_min(PROB_EPS))
        loss = -(label * log_p + (1 - label) * log_not_p)
    return loss * config.weight


@_loss_fn(LossKind.SOFTMAX_CE)
def softmax_cross_entropy(label: Tensor, prediction: Tensor, config: LossConfig) -> Tensor:
    rank = prediction.dim()
    class_axis = normalize_axis(config.class_axis, rank, "class_axis")
    log_prob = F.log_softmax(prediction, dim=class_axis) if config.from_logit else prediction

    if config.sparse_label:
        index = _sparse_index(label, log_prob, class_axis)
        loss = -log_prob.gather(class_axis, index)
    else:
        label, log_prob = broadcast_pair(label.to(log_prob.dtype), log_prob)
        loss = -(label * log_prob).sum(dim=class_axis, keepdim=True)
    return loss * config.weight


@_loss_fn(LossKind.HINGE)
def hinge(label: Tensor, prediction: Tensor, config: LossConfig) -> Tensor:
    label, prediction = broadcast_pair(label, prediction)
    return torch.relu(config.margin - label * prediction) * config.weight


def _sparse_index(label: Tensor, log_prob: Tensor, class_axis: int) -> Tensor:
    """Shape sparse class indices so they can ``gather`` along ``class_axis``."""

    if label.dim() == log_prob.dim() - 1:
        label = label.unsqueeze(class_axis)
    expected = list(log_prob.shape)
    expected[class_axis] = 1
    if list(label.shape) != expected:
        raise ShapeMismatchError(
            f"sparse label shape {tuple(label.shape)} does not match prediction shape "
            f"{tuple(log_prob.shape)} without class axis {class_axis}"
        )

    if label.is_floating_point() and not torch.equal(label, label.round()):
        raise ShapeMismatchError("sparse labels must hold integral class indices")
    index = label.long()
    num_classes = log_prob.size(class_axis)
    if index.numel() and (int(index.min()) < 0 or int(index.max()) >= num_classes):
        raise ShapeMismatchError(
            f"sparse label index out of range for class axis of size {num_classes}"
        )
    return index


def compute_loss(config: LossConfig, label: Tensor, prediction: Tensor) -> Tensor:
    """Weighted loss with every axis but ``config.batch_axis`` averaged away."""

    try:
        fn = _LOSS_FUNCTIONS[config.kind]
    except KeyError as exc:
        raise ValueError(f"No loss function registered for kind '{config.kind}'") from exc
    return reduce_except_batch(fn(label, prediction, config), config.batch_axis)


__all__ = [
    "LossFn",
    "compute_loss",
    "l1",
    "l2",
    "sigmoid_binary_cross_entropy",
    "softmax_cross_entropy",
    "hinge",
]
