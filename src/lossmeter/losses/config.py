"""Immutable loss configuration and its builder."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

from ..errors import InvalidConfigError


class LossKind(str, Enum):
    L1 = "l1"
    L2 = "l2"
    SIGMOID_BCE = "sigmoid_bce"
    SOFTMAX_CE = "softmax_ce"
    HINGE = "hinge"


# Options beyond weight/batch_axis that each kind reads.
KIND_OPTIONS: Dict[LossKind, Set[str]] = {
    LossKind.L1: set(),
    LossKind.L2: set(),
    LossKind.SIGMOID_BCE: {"from_sigmoid"},
    LossKind.SOFTMAX_CE: {"class_axis", "sparse_label", "from_logit"},
    LossKind.HINGE: {"margin"},
}


@dataclass(frozen=True)
class LossConfig:
    kind: LossKind
    weight: float = 1.0
    batch_axis: int = 0
    class_axis: int = -1
    sparse_label: bool = True
    from_logit: bool = True
    from_sigmoid: bool = False
    margin: float = 1.0

    def as_dict(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {"weight": self.weight, "batch_axis": self.batch_axis}
        for option in sorted(KIND_OPTIONS[self.kind]):
            params[option] = getattr(self, option)
        return params


class LossConfigBuilder:
    """Fluent builder for :class:`LossConfig`.

    ``set_*`` methods fill required fields and ``opt_*`` methods override
    defaults. Nothing is checked until :meth:`build`.
    """

    def __init__(self) -> None:
        self._kind: Optional[LossKind] = None
        self._values: Dict[str, Any] = {}

    def set_kind(self, kind: Union[LossKind, str]) -> "LossConfigBuilder":
        try:
            self._kind = LossKind(kind.lower() if isinstance(kind, str) else kind)
        except ValueError as exc:
            choices = [member.value for member in LossKind]
            raise InvalidConfigError(f"Unknown loss kind '{kind}'. Available: {choices}") from exc
        return self

    def opt_weight(self, weight: float) -> "LossConfigBuilder":
        self._values["weight"] = weight
        return self

    def opt_batch_axis(self, batch_axis: int) -> "LossConfigBuilder":
        self._values["batch_axis"] = batch_axis
        return self

    def opt_class_axis(self, class_axis: int) -> "LossConfigBuilder":
        self._values["class_axis"] = class_axis
        return self

    def opt_sparse_label(self, sparse_label: bool) -> "LossConfigBuilder":
        self._values["sparse_label"] = sparse_label
        return self

    def opt_from_logit(self, from_logit: bool) -> "LossConfigBuilder":
        self._values["from_logit"] = from_logit
        return self

    def opt_from_sigmoid(self, from_sigmoid: bool) -> "LossConfigBuilder":
        self._values["from_sigmoid"] = from_sigmoid
        return self

    def opt_margin(self, margin: float) -> "LossConfigBuilder":
        self._values["margin"] = margin
        return self

    def update(self, **params: Any) -> "LossConfigBuilder":
        """Apply ``opt_<name>(value)`` for every keyword, as read from YAML ``params``."""

        for name, value in params.items():
            setter = getattr(self, f"opt_{name}", None)
            if setter is None:
                raise InvalidConfigError(f"Unknown loss option '{name}'")
            setter(value)
        return self

    def build(self) -> LossConfig:
        if self._kind is None:
            raise InvalidConfigError("Loss kind is required; call set_kind() before build()")
        kind = self._kind

        allowed = {"weight", "batch_axis"} | KIND_OPTIONS[kind]
        unused = sorted(set(self._values) - allowed)
        if unused:
            raise InvalidConfigError(f"Options {unused} do not apply to loss kind '{kind.value}'")

        values = dict(self._values)
        if "weight" in values:
            values["weight"] = _finite_float(values["weight"], "weight")
        if "margin" in values:
            values["margin"] = _finite_float(values["margin"], "margin")
        for name in ("batch_axis", "class_axis"):
            if name in values:
                values[name] = _integer(values[name], name)
        if values.get("batch_axis", 0) < 0:
            raise InvalidConfigError("batch_axis must be >= 0")
        for name in ("sparse_label", "from_logit", "from_sigmoid"):
            if name in values and not isinstance(values[name], bool):
                raise InvalidConfigError(f"{name} must be a boolean")

        return LossConfig(kind=kind, **values)


def _finite_float(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise InvalidConfigError(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigError(f"{name} must be a number") from exc
    if not math.isfinite(number):
        raise InvalidConfigError(f"{name} must be finite")
    return number


def _integer(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigError(f"{name} must be an integer")
    return value


__all__ = ["LossKind", "LossConfig", "LossConfigBuilder", "KIND_OPTIONS"]
