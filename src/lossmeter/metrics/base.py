"""Running metrics shared by every loss."""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Dict, Sequence, Union

import torch
from torch import Tensor

TensorSet = Union[Tensor, Sequence[Tensor]]


class TrainingMetric(ABC):
    """Base metric interface.

    A metric carries a fixed display ``name`` and folds batches into an
    epoch-scoped value until ``reset`` is called.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def update(self, labels: TensorSet, predictions: TensorSet) -> None:
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_value(self) -> float:
        raise NotImplementedError

    def compute(self) -> Dict[str, float]:
        return {self.name: self.get_value()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, value={self.get_value():.6g})"


class RunningAverage:
    """Weighted running mean over every element folded in since the last reset."""

    def __init__(self) -> None:
        self.total = 0.0
        self.count = 0

    def update(self, values: Tensor) -> None:
        if not isinstance(values, Tensor):
            raise TypeError(f"RunningAverage expects a torch.Tensor, got {type(values).__name__}")
        detached = values.detach()
        batch_total = float(detached.to(torch.float64).sum().item())
        batch_count = int(detached.numel())
        self.total += batch_total
        self.count += batch_count

    def reset(self) -> None:
        self.total = 0.0
        self.count = 0

    def compute(self) -> float:
        if self.count == 0:
            return math.nan
        return self.total / self.count


__all__ = ["TrainingMetric", "RunningAverage", "TensorSet"]
