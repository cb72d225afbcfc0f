"""Loss registry and shared reduction helpers."""
from __future__ import annotations

from typing import List, Sequence, Tuple

import torch
from torch import Tensor

from ..errors import ShapeMismatchError
from ..registry import get_registry

LOSS_REGISTRY = get_registry("loss")


def exclude_batch_axis(rank: int, batch_axis: int) -> List[int]:
    """Return every axis of a ``rank``-dimensional tensor except ``batch_axis``.

    Losses reduce over these axes so that one value per batch element remains.
    """

    if rank < 0:
        raise ShapeMismatchError(f"rank must be >= 0, got {rank}")
    if not 0 <= batch_axis < rank:
        raise ShapeMismatchError(
            f"batch_axis {batch_axis} is out of range for a tensor of rank {rank}"
        )
    return [axis for axis in range(rank) if axis != batch_axis]


def reduce_except_batch(loss: Tensor, batch_axis: int) -> Tensor:
    axes = exclude_batch_axis(loss.dim(), batch_axis)
    if not axes:
        # torch treats an empty ``dim`` as "reduce everything"
        return loss
    return loss.mean(dim=axes)


def normalize_axis(axis: int, rank: int, what: str = "axis") -> int:
    if not -rank <= axis < rank:
        raise ShapeMismatchError(f"{what} {axis} is out of range for a tensor of rank {rank}")
    return axis % rank


def broadcast_pair(label: Tensor, prediction: Tensor) -> Tuple[Tensor, Tensor]:
    try:
        torch.broadcast_shapes(label.shape, prediction.shape)
    except RuntimeError as exc:
        raise ShapeMismatchError(
            f"label shape {tuple(label.shape)} is not broadcast-compatible with "
            f"prediction shape {tuple(prediction.shape)}"
        ) from exc
    dtype = torch.promote_types(label.dtype, prediction.dtype)
    if not dtype.is_floating_point:
        # mean() and the log/exp paths need a floating dtype
        dtype = torch.promote_types(dtype, torch.get_default_dtype())
    label, prediction = torch.broadcast_tensors(label.to(dtype), prediction.to(dtype))
    return label, prediction


def head(values: Sequence[Tensor] | Tensor, what: str) -> Tuple[Tensor, int]:
    """Return the first tensor of a label/prediction set and how many were ignored."""

    if isinstance(values, Tensor):
        return values, 0
    if len(values) == 0:
        raise ValueError(f"{what} must contain at least one tensor")
    first = values[0]
    if not isinstance(first, Tensor):
        raise TypeError(f"{what} must hold torch.Tensor values, got {type(first).__name__}")
    return first, len(values) - 1


__all__ = [
    "LOSS_REGISTRY",
    "exclude_batch_axis",
    "reduce_except_batch",
    "normalize_axis",
    "broadcast_pair",
    "head",
]
