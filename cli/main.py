"""Command line entry point for NeuroStudio training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

from neurostudio.core.activations import REGISTRY as ACTIVATIONS
from neurostudio.data import available_datasets
from neurostudio.log import configure_logging
from neurostudio.training import pipelines


def _format_result(result) -> str:
    payload = {
        "steps": result.steps,
        "final_loss": result.final_loss,
        result.metric_name: result.metric_value,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
    }
    if result.cancelled:
        payload["cancelled"] = True
    return json.dumps(payload, sort_keys=True)


def _hidden(value: str) -> list[int]:
    try:
        return [int(item) for item in value.split(",") if item.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"hidden must be comma separated integers, got {value!r}") from exc


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="moons-tanh",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument(
        "--dataset",
        choices=sorted(available_datasets()),
        help="Override the dataset used by the run",
    )
    parser.add_argument("--count", type=int, help="Points per class (classification) or total (regression)")
    parser.add_argument("--noise", type=float, help="Dataset noise level")
    parser.add_argument("--data-seed", type=int, help="Seed for the dataset generator")
    parser.add_argument("--hidden", type=_hidden, help="Hidden layer widths, e.g. 6,6")
    parser.add_argument("--activation", choices=sorted(ACTIVATIONS.names()), help="Hidden activation")
    parser.add_argument("--lr", type=float, help="Learning rate")
    parser.add_argument("--steps", type=int, help="Number of full-batch steps")
    parser.add_argument("--seed", type=int, help="Seed for weight initialisation and noise")
    parser.add_argument("--run-dir", type=Path, help="Directory for metrics and artifacts")
    parser.add_argument("--enable-plots", action="store_true", help="Write loss, field and network PNGs")
    parser.add_argument("--list-presets", action="store_true", help="List available presets and exit")
    parser.add_argument("--list-datasets", action="store_true", help="List dataset generators and exit")
    parser.add_argument("--dump-config", type=Path, help="Dump the resolved config to a JSON file")
    parser.add_argument("--log-level", help="Log level (defaults to $NEUROSTUDIO_LOG_LEVEL or INFO)")
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        import yaml

        return yaml.safe_load(text) or {}
    return json.loads(text)


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    if args.list_datasets:
        for name in available_datasets():
            print(name)
        raise SystemExit(0)

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = _load_override(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = _merge(config, override)

    data_cfg = config.setdefault("data", {})
    if args.dataset and args.dataset != data_cfg.get("name"):
        data_cfg["name"] = args.dataset
        data_cfg["options"] = {}
    opts = data_cfg.setdefault("options", {})
    if args.count is not None:
        opts["count"] = int(args.count)
    if args.noise is not None:
        opts["noise"] = float(args.noise)
    if args.data_seed is not None:
        opts["seed"] = int(args.data_seed)

    model_cfg = config.setdefault("model", {})
    if args.hidden is not None:
        model_cfg["hidden"] = args.hidden
    if args.activation:
        model_cfg["activation"] = args.activation

    train_cfg = config.setdefault("train", {})
    if args.lr is not None:
        train_cfg["lr"] = float(args.lr)
    if args.steps is not None:
        train_cfg["steps"] = int(args.steps)
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train_cfg["enable_plots"] = True

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)

    if isinstance(result, list):
        for item in result:
            print(_format_result(item))
    else:
        print(_format_result(result))


if __name__ == "__main__":
    main()
