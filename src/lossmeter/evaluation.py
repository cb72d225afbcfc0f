"""Run a model over batches and fold every loss metric."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import torch
from torch import Tensor, nn
from tqdm import tqdm

from .losses import Loss

Batch = Tuple[Any, Union[Tensor, Sequence[Tensor]]]
Model = Union[nn.Module, Callable[[Any], Any]]


def _as_tensor_list(outputs: Any) -> List[Tensor]:
    if isinstance(outputs, Tensor):
        return [outputs]
    if isinstance(outputs, (list, tuple)):
        return list(outputs)
    raise TypeError(f"Model outputs must be a Tensor or a sequence of Tensors, got {type(outputs).__name__}")


@torch.no_grad()
def evaluate(
    model: Model,
    batches: Iterable[Batch],
    losses: Mapping[str, Loss],
    *,
    epoch: int,
    phase: str,
    logger: Optional[logging.Logger] = None,
    writer: Any = None,
    progress: bool = True,
) -> Dict[str, float]:
    """Return ``{name: running value}`` for every loss after one pass over ``batches``.

    Each loss is reset first, so the values cover this pass only. ``writer`` is
    anything with a TensorBoard-style ``add_scalar(tag, value, step)``.
    """

    if not losses:
        raise ValueError("At least one loss is required for evaluation")
    logger = logger or logging.getLogger(__name__)

    was_training = getattr(model, "training", None)
    if isinstance(model, nn.Module):
        model.eval()
    for loss in losses.values():
        loss.reset()

    first_name = next(iter(losses))
    iterator = tqdm(batches, desc=f"{phase.capitalize()} Epoch {epoch}", leave=False, disable=not progress)
    batch_count = 0
    try:
        for inputs, labels in iterator:
            predictions = _as_tensor_list(model(inputs))
            labels = _as_tensor_list(labels)
            for loss in losses.values():
                loss.calculate_loss(labels, predictions)
                loss.update(labels, predictions)
            batch_count += 1
            iterator.set_postfix({first_name: f"{losses[first_name].get_value():.4f}"})
    finally:
        if was_training and isinstance(model, nn.Module):
            model.train()

    values = {name: loss.get_value() for name, loss in losses.items()}
    if batch_count == 0:
        logger.warning("epoch=%d phase=%s received no batches", epoch, phase)

    value_str = ", ".join(f"{name}: {value:.6f}" for name, value in values.items())
    logger.info("epoch=%d phase=%s %s", epoch, phase, value_str)

    if writer is not None:
        for name, value in values.items():
            writer.add_scalar(f"{phase}/{name}", value, epoch)

    return values


__all__ = ["evaluate", "Batch", "Model"]
