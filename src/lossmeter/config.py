"""Configuration dataclasses and YAML loader for loss metrics."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import InvalidConfigError
from .losses import LOSS_REGISTRY, Loss
from .metrics import BestMetricTracker
from .utils import configure_logging


@dataclass
class ComponentConfig:
    """Registry name plus keyword parameters."""

    name: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EarlyStoppingConfig:
    monitor: str
    mode: str = "min"
    patience: int = 0
    min_delta: float = 0.0


@dataclass
class MetricsConfig:
    losses: Dict[str, ComponentConfig] = field(default_factory=dict)
    log_dir: str = "outputs"
    log_level: str = "INFO"
    early_stopping: Optional[EarlyStoppingConfig] = None


def _component_from_dict(key: str, value: Any) -> ComponentConfig:
    if not isinstance(value, dict):
        raise InvalidConfigError(f"Loss '{key}' must be specified as a mapping")
    if "name" not in value:
        raise InvalidConfigError(f"Loss '{key}' requires a 'name' field")
    params = value.get("params", {}) or {}
    if not isinstance(params, dict):
        raise InvalidConfigError(f"Loss '{key}' 'params' must be a mapping")
    return ComponentConfig(name=str(value["name"]), params=params)


def _early_stopping_from_dict(value: Any) -> Optional[EarlyStoppingConfig]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise InvalidConfigError("'early_stopping' must be a mapping when provided")
    if "monitor" not in value:
        raise InvalidConfigError("early_stopping requires a 'monitor' metric name")
    try:
        patience = int(value.get("patience", 0) or 0)
        min_delta = float(value.get("min_delta", 0.0) or 0.0)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigError("early_stopping.patience and min_delta must be numbers") from exc
    return EarlyStoppingConfig(
        monitor=str(value["monitor"]),
        mode=str(value.get("mode", "min")),
        patience=patience,
        min_delta=min_delta,
    )


def parse_config(raw: Any) -> MetricsConfig:
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidConfigError("Metrics YAML must define a mapping at the top level")

    losses_cfg = raw.get("losses", {}) or {}
    if not isinstance(losses_cfg, dict):
        raise InvalidConfigError("'losses' must be a mapping of metric names to definitions")
    losses = {str(key): _component_from_dict(key, value) for key, value in losses_cfg.items()}

    early_stopping = _early_stopping_from_dict(raw.get("early_stopping"))
    if early_stopping is not None and early_stopping.monitor not in losses:
        raise InvalidConfigError(
            f"early_stopping.monitor '{early_stopping.monitor}' is not a configured loss: {list(losses)}"
        )

    cfg = MetricsConfig(
        losses=losses,
        log_dir=str(raw.get("log_dir", "outputs")),
        log_level=str(raw.get("log_level", "INFO")),
        early_stopping=early_stopping,
    )
    build_tracker(cfg)
    return cfg


def load_config(path: str | Path) -> MetricsConfig:
    """Load a metrics configuration from YAML."""

    with Path(path).open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle)
    return parse_config(raw)


def build_losses(cfg: MetricsConfig) -> Dict[str, Loss]:
    """Instantiate every configured loss, named after its mapping key."""

    losses: Dict[str, Loss] = {}
    for metric_name, component in cfg.losses.items():
        try:
            losses[metric_name] = LOSS_REGISTRY.create(
                component.name, name=metric_name, **component.params
            )
        except KeyError as exc:
            raise InvalidConfigError(str(exc.args[0])) from exc
        except TypeError as exc:
            raise InvalidConfigError(f"Invalid params for loss '{metric_name}': {exc}") from exc
    return losses


def build_tracker(cfg: MetricsConfig) -> Optional[BestMetricTracker]:
    """Early-stopping tracker for ``cfg.early_stopping``, or None when not configured."""

    early_stopping = cfg.early_stopping
    if early_stopping is None:
        return None
    return BestMetricTracker(
        mode=early_stopping.mode,
        patience=early_stopping.patience,
        min_delta=early_stopping.min_delta,
    )


def setup_logging(cfg: MetricsConfig) -> Path:
    try:
        return configure_logging(cfg.log_dir, level=cfg.log_level)
    except ValueError as exc:
        raise InvalidConfigError(f"Invalid log_level '{cfg.log_level}'") from exc


__all__ = [
    "ComponentConfig",
    "EarlyStoppingConfig",
    "MetricsConfig",
    "parse_config",
    "load_config",
    "build_losses",
    "build_tracker",
    "setup_logging",
]
