# Loss configuration, YAML loading and registry tests.

import dataclasses
import logging
import tempfile
import unittest
from pathlib import Path

from lossmeter.config import (
    build_losses,
    build_tracker,
    load_config,
    parse_config,
    setup_logging,
)
from lossmeter.errors import InvalidConfigError
from lossmeter.losses import LOSS_REGISTRY, Loss, LossConfig, LossConfigBuilder, LossKind
from lossmeter.metrics import BestMetricTracker
from lossmeter.registry import ModuleRegistry, get_registry


class LossConfigBuilderTest(unittest.TestCase):
    def test_defaults(self):
        config = LossConfigBuilder().set_kind("softmax_ce").build()
        self.assertEqual(
            config,
            LossConfig(kind=LossKind.SOFTMAX_CE, class_axis=-1, sparse_label=True, from_logit=True),
        )

    def test_fluent_chain(self):
        config = (
            LossConfigBuilder()
            .set_kind(LossKind.HINGE)
            .opt_margin(2)
            .opt_weight(0.5)
            .opt_batch_axis(1)
            .build()
        )
        self.assertEqual(config.margin, 2.0)
        self.assertEqual(config.weight, 0.5)
        self.assertEqual(config.batch_axis, 1)

    def test_kind_is_required(self):
        with self.assertRaises(InvalidConfigError):
            LossConfigBuilder().opt_weight(1.0).build()

    def test_unknown_kind(self):
        with self.assertRaises(InvalidConfigError):
            LossConfigBuilder().set_kind("focal")

    def test_option_for_other_kind(self):
        with self.assertRaises(InvalidConfigError):
            LossConfigBuilder().set_kind("l1").opt_margin(1.0).build()

    def test_invalid_values(self):
        cases = [
            lambda b: b.opt_batch_axis(-1),
            lambda b: b.opt_batch_axis(1.5),
            lambda b: b.opt_weight(float("nan")),
            lambda b: b.opt_weight("heavy"),
            lambda b: b.opt_sparse_label("yes"),
        ]
        for apply in cases:
            builder = LossConfigBuilder().set_kind("softmax_ce")
            apply(builder)
            with self.assertRaises(InvalidConfigError):
                builder.build()

    def test_update_unknown_option(self):
        with self.assertRaises(InvalidConfigError):
            LossConfigBuilder().set_kind("l2").update(reduction="sum")

    def test_config_is_immutable(self):
        config = LossConfigBuilder().set_kind("l1").build()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            config.weight = 3.0

    def test_as_dict_lists_kind_options(self):
        config = LossConfigBuilder().set_kind("sigmoid_bce").opt_from_sigmoid(True).build()
        self.assertEqual(config.as_dict(), {"weight": 1.0, "batch_axis": 0, "from_sigmoid": True})


class RegistryTest(unittest.TestCase):
    def test_register_and_create(self):
        registry = ModuleRegistry("widgets")

        @registry.register("Box")
        def build_box(size=1):
            return ("box", size)

        self.assertIn("box", registry)
        self.assertEqual(registry.create("BOX", size=3), ("box", 3))
        self.assertEqual(registry.names(), ["box"])

    def test_duplicate_registration(self):
        registry = ModuleRegistry()
        registry.register("a")(lambda: None)
        with self.assertRaises(KeyError):
            registry.register("a")

    def test_create_forwards_name_keyword(self):
        registry = ModuleRegistry()

        @registry.register("meter")
        def build_meter(name="default", scale=1):
            return name, scale

        self.assertEqual(registry.create("meter", name="val_loss", scale=2), ("val_loss", 2))

    def test_unknown_name(self):
        with self.assertRaises(KeyError):
            ModuleRegistry().get("missing")

    def test_namespaces_are_shared(self):
        self.assertIs(get_registry("loss"), LOSS_REGISTRY)
        self.assertEqual(get_registry("loss").namespace, "loss")

    def test_every_kind_is_registered(self):
        for kind in LossKind:
            self.assertIn(kind.value, LOSS_REGISTRY)


class LoadConfigTest(unittest.TestCase):
    YAML = """
log_dir: runs/exp1
log_level: DEBUG
losses:
  train_loss:
    name: softmax_ce
    params:
      sparse_label: true
      weight: 2.0
  val_hinge:
    name: hinge
    params: {margin: 0.5}
early_stopping:
  monitor: train_loss
  patience: 2
"""

    def test_load_and_build(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "metrics.yaml"
            path.write_text(self.YAML, encoding="utf-8")
            cfg = load_config(path)

        self.assertEqual(cfg.log_dir, "runs/exp1")
        self.assertEqual(cfg.log_level, "DEBUG")
        self.assertEqual(cfg.early_stopping.monitor, "train_loss")
        self.assertEqual(cfg.early_stopping.patience, 2)
        self.assertEqual(cfg.early_stopping.mode, "min")

        losses = build_losses(cfg)
        self.assertEqual(list(losses), ["train_loss", "val_hinge"])
        self.assertIsInstance(losses["train_loss"], Loss)
        self.assertEqual(losses["train_loss"].name, "train_loss")
        self.assertEqual(losses["train_loss"].config.weight, 2.0)
        self.assertEqual(losses["val_hinge"].config.kind, LossKind.HINGE)
        self.assertEqual(losses["val_hinge"].config.margin, 0.5)

    def test_empty_document(self):
        cfg = parse_config(None)
        self.assertEqual(cfg.losses, {})
        self.assertIsNone(cfg.early_stopping)

    def test_malformed_sections(self):
        bad = [
            [],
            {"losses": ["l1"]},
            {"losses": {"a": "l1"}},
            {"losses": {"a": {"params": {}}}},
            {"losses": {"a": {"name": "l1", "params": [1]}}},
            {"losses": {"a": {"name": "l1"}}, "early_stopping": {"monitor": "b"}},
            {"losses": {"a": {"name": "l1"}}, "early_stopping": {"patience": 1}},
        ]
        for raw in bad:
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidConfigError):
                    parse_config(raw)

    def test_unknown_loss_name(self):
        cfg = parse_config({"losses": {"a": {"name": "focal"}}})
        with self.assertRaises(InvalidConfigError):
            build_losses(cfg)

    def test_params_for_other_kind(self):
        cfg = parse_config({"losses": {"a": {"name": "l1", "params": {"margin": 1.0}}}})
        with self.assertRaises(InvalidConfigError):
            build_losses(cfg)

    def test_invalid_early_stopping_values(self):
        losses = {"a": {"name": "l1"}}
        bad = [
            {"monitor": "a", "mode": "sideways"},
            {"monitor": "a", "patience": -4},
            {"monitor": "a", "min_delta": -0.1},
        ]
        for early_stopping in bad:
            with self.subTest(early_stopping=early_stopping):
                with self.assertRaises(InvalidConfigError):
                    parse_config({"losses": losses, "early_stopping": early_stopping})

    def test_invalid_mode_in_yaml(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "metrics.yaml"
            path.write_text(self.YAML.replace("patience: 2", "mode: sideways"), encoding="utf-8")
            with self.assertRaises(InvalidConfigError):
                load_config(path)

    def test_build_tracker(self):
        cfg = parse_config(
            {
                "losses": {"a": {"name": "l1"}},
                "early_stopping": {"monitor": "a", "mode": "max", "patience": 3, "min_delta": 0.5},
            }
        )
        tracker = build_tracker(cfg)
        self.assertIsInstance(tracker, BestMetricTracker)
        self.assertEqual(tracker.mode, "max")
        self.assertEqual(tracker.patience, 3)
        self.assertEqual(tracker.min_delta, 0.5)
        self.assertIsNone(tracker.best)

    def test_build_tracker_without_early_stopping(self):
        self.assertIsNone(build_tracker(parse_config({"losses": {"a": {"name": "l1"}}})))


class SetupLoggingTest(unittest.TestCase):
    def tearDown(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)

    def test_uses_configured_dir_and_level(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = parse_config({"log_dir": str(Path(tmp) / "run"), "log_level": "DEBUG"})
            log_file = setup_logging(cfg)
            logging.getLogger("lossmeter.test").debug("step=%d", 7)
            for handler in logging.getLogger().handlers:
                handler.flush()
            self.assertEqual(log_file, Path(tmp) / "run" / "metrics.log")
            self.assertEqual(logging.getLogger().level, logging.DEBUG)
            self.assertIn("step=7", log_file.read_text(encoding="utf-8"))
            self.tearDown()

    def test_invalid_level(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = parse_config({"log_dir": tmp, "log_level": "loud"})
            with self.assertRaises(InvalidConfigError):
                setup_logging(cfg)


if __name__ == "__main__":
    unittest.main()
