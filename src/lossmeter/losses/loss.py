"""Loss metric: per-batch loss computation plus a running average."""
from __future__ import annotations

import logging
from typing import Any, Optional

from torch import Tensor

from ..errors import InvalidStateError
from ..metrics.base import RunningAverage, TensorSet, TrainingMetric
from .base import LOSS_REGISTRY, head
from .config import LossConfig, LossConfigBuilder, LossKind
from .functional import compute_loss

logger = logging.getLogger(__name__)

DEFAULT_NAME = "Loss"


class Loss(TrainingMetric):
    """Evaluate predictions against labels and average the result over an epoch.

    Use it in two steps per batch: :meth:`calculate_loss` returns the
    per-sample loss (keep it for ``backward()``) and caches it, then
    :meth:`update` folds the cached value into the running average. Only the
    first tensor of each label/prediction set is read.
    """

    def __init__(self, config: LossConfig, name: str = DEFAULT_NAME) -> None:
        super().__init__(name)
        self.config = config
        self._running = RunningAverage()
        self._last_computed: Optional[Tensor] = None

    @property
    def last_computed(self) -> Optional[Tensor]:
        return self._last_computed

    @property
    def total_loss(self) -> float:
        return self._running.total

    @property
    def total_instances(self) -> int:
        return self._running.count

    def elementwise_loss(self, label: Tensor, prediction: Tensor) -> Tensor:
        return compute_loss(self.config, label, prediction)

    def calculate_loss(self, labels: TensorSet, predictions: TensorSet) -> Tensor:
        label, extra_labels = head(labels, "labels")
        prediction, extra_predictions = head(predictions, "predictions")
        if extra_labels or extra_predictions:
            logger.debug(
                "%s reads only the first output; ignoring %d extra labels and %d extra predictions",
                self.name,
                extra_labels,
                extra_predictions,
            )
        loss = self.elementwise_loss(label, prediction)
        self._last_computed = loss
        return loss

    def update(self, labels: TensorSet, predictions: TensorSet) -> None:
        # Only the value cached by calculate_loss is folded; the arguments are not re-read.
        if self._last_computed is None:
            raise InvalidStateError(
                f"{self.name}: call calculate_loss(labels, predictions) before update()"
            )
        self._running.update(self._last_computed)
        logger.debug(
            "%s folded %d values; running value %.6g",
            self.name,
            self._last_computed.numel(),
            self._running.compute(),
        )

    def reset(self) -> None:
        self._running.reset()

    def get_value(self) -> float:
        return self._running.compute()

    def duplicate(self) -> "Loss":
        return type(self)(self.config, name=self.name)

    def __call__(self, labels: TensorSet, predictions: TensorSet) -> Tensor:
        return self.calculate_loss(labels, predictions)

    def __repr__(self) -> str:
        params = ", ".join(f"{key}={value}" for key, value in self.config.as_dict().items())
        return f"Loss(name={self.name!r}, kind={self.config.kind.value}, {params})"


def _build(kind: LossKind, name: str, **params: Any) -> Loss:
    config = LossConfigBuilder().set_kind(kind).update(**params).build()
    return Loss(config, name=name)


@LOSS_REGISTRY.register(LossKind.L1.value)
def l1_loss(weight: float = 1.0, batch_axis: int = 0, name: str = DEFAULT_NAME) -> Loss:
    return _build(LossKind.L1, name, weight=weight, batch_axis=batch_axis)


@LOSS_REGISTRY.register(LossKind.L2.value)
def l2_loss(weight: float = 1.0, batch_axis: int = 0, name: str = DEFAULT_NAME) -> Loss:
    return _build(LossKind.L2, name, weight=weight, batch_axis=batch_axis)


@LOSS_REGISTRY.register(LossKind.SIGMOID_BCE.value)
def sigmoid_binary_cross_entropy_loss(
    weight: float = 1.0,
    batch_axis: int = 0,
    from_sigmoid: bool = False,
    name: str = DEFAULT_NAME,
) -> Loss:
    return _build(
        LossKind.SIGMOID_BCE,
        name,
        weight=weight,
        batch_axis=batch_axis,
        from_sigmoid=from_sigmoid,
    )


@LOSS_REGISTRY.register(LossKind.SOFTMAX_CE.value)
def softmax_cross_entropy_loss(
    weight: float = 1.0,
    batch_axis: int = 0,
    class_axis: int = -1,
    sparse_label: bool = True,
    from_logit: bool = True,
    name: str = DEFAULT_NAME,
) -> Loss:
    return _build(
        LossKind.SOFTMAX_CE,
        name,
        weight=weight,
        batch_axis=batch_axis,
        class_axis=class_axis,
        sparse_label=sparse_label,
        from_logit=from_logit,
    )


@LOSS_REGISTRY.register(LossKind.HINGE.value)
def hinge_loss(
    margin: float = 1.0,
    weight: float = 1.0,
    batch_axis: int = 0,
    name: str = DEFAULT_NAME,
) -> Loss:
    return _build(LossKind.HINGE, name, margin=margin, weight=weight, batch_axis=batch_axis)


__all__ = [
    "Loss",
    "l1_loss",
    "l2_loss",
    "sigmoid_binary_cross_entropy_loss",
    "softmax_cross_entropy_loss",
    "hinge_loss",
]
