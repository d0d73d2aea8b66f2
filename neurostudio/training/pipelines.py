"""Pipeline assembly: presets, config resolution and single runs."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Sequence

import structlog

from ..core.network import Network, layer_sizes
from ..core.rng import seed_global
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter, render_decision_field, render_network
from .metrics import default_metric
from .trainer import Trainer

logger = structlog.get_logger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "moons-tanh": {
        "data": {"name": "moons", "options": {"count": 120, "noise": 0.15, "seed": 7}},
        "model": {"hidden": [6, 6], "activation": "tanh"},
        "train": {
            "steps": 300,
            "lr": 0.2,
            "seed": 0,
            "run_dir": "runs/moons-tanh",
            "enable_plots": False,
        },
    },
    "circles-tanh": {
        "data": {"name": "circles", "options": {"count": 120, "noise": 0.1}},
        "model": {"hidden": [6, 6], "activation": "tanh"},
        "train": {
            "steps": 400,
            "lr": 0.3,
            "seed": 0,
            "run_dir": "runs/circles-tanh",
            "enable_plots": False,
        },
    },
    "xor-deep": {
        "data": {"name": "xor", "options": {"count": 200, "noise": 0.1, "seed": 7}},
        "model": {"hidden": [8, 8], "activation": "tanh"},
        "train": {
            "steps": 2000,
            "lr": 0.3,
            "seed": 0,
            "run_dir": "runs/xor-deep",
            "enable_plots": False,
        },
    },
    "spirals-wide": {
        "data": {"name": "spirals", "options": {"count": 200, "noise": 0.05}},
        "model": {"hidden": [16, 16, 16], "activation": "tanh"},
        "train": {
            "steps": 3000,
            "lr": 0.3,
            "seed": 0,
            "run_dir": "runs/spirals-wide",
            "enable_plots": False,
        },
    },
    "plane-linear": {
        "data": {"name": "plane", "options": {"count": 240, "noise": 0.0, "seed": 7}},
        "model": {"hidden": [6], "activation": "tanh"},
        "train": {
            "steps": 500,
            "lr": 0.2,
            "seed": 0,
            "run_dir": "runs/plane-linear",
            "enable_plots": False,
        },
    },
    "sinc-relu": {
        "data": {"name": "sinc", "options": {"count": 600, "noise": 0.05, "seed": 7}},
        "model": {"hidden": [16, 16], "activation": "relu"},
        "train": {
            "steps": 1500,
            "lr": 0.1,
            "seed": 0,
            "run_dir": "runs/sinc-relu",
            "enable_plots": False,
        },
    },
    "activation-depth-sweep": {
        "sweep": {
            "activations": ["tanh", "relu"],
            "depths": [1, 2],
            "seeds": [0, 1],
        },
        "data": {"name": "moons", "options": {"count": 60, "noise": 0.15, "seed": 7}},
        "model": {"width": 6},
        "train": {
            "steps": 100,
            "lr": 0.2,
            "run_dir": "runs/sweep",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Preset {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        presets: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = _read_preset_file(file)
                missing = {"data", "model", "train"} - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                presets[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = presets
    cache = _FILE_PRESETS_CACHE or {}
    return {name: deepcopy(cfg) for name, cfg in cache.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def run_pipeline(config: Mapping[str, object]) -> RunResult | List[RunResult]:
    if "sweep" in config:
        return _run_sweep(config)
    return _train_single(config)


def _run_sweep(config: Mapping[str, object]) -> List[RunResult]:
    sweep_cfg = config["sweep"]
    base_dir = Path(str(config.get("train", {}).get("run_dir", "runs/sweep")))  # type: ignore[union-attr]
    results: List[RunResult] = []
    for activation in sweep_cfg["activations"]:
        for depth in sweep_cfg["depths"]:
            for seed in sweep_cfg["seeds"]:
                cfg = deepcopy(dict(config))
                cfg.pop("sweep", None)
                cfg.setdefault("model", {})
                cfg["model"].update({"activation": activation, "depth": depth})
                cfg["model"].pop("hidden", None)
                cfg.setdefault("train", {})
                cfg["train"]["seed"] = seed
                cfg["train"]["run_dir"] = str(base_dir / f"{activation}-d{depth}-s{seed}")
                results.append(_train_single(cfg))
    return results


def _train_single(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    seed = int(train_cfg.get("seed", 0))
    steps = int(train_cfg.get("steps", 100))
    lr = float(train_cfg.get("lr", 0.2))
    enable_plots = bool(train_cfg.get("enable_plots", False))
    seed_global(seed)

    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    hidden = _build_hidden(model_cfg)
    activation = str(model_cfg.get("activation", "tanh"))
    network = Network(layer_sizes(hidden), activation=activation, task=dataset.task)

    run_dir = _resolve_run_dir(train_cfg, dataset.name, activation)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.title,
        sizes=network.layer_sizes,
        activation=network.activation.label,
        task=dataset.task.value,
        lr=lr,
        steps=steps,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", dataset=dataset.name, seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=enable_plots)
    trainer = Trainer(
        network,
        dataset,
        lr,
        callbacks=[jsonl, csv_sink, plots],
        probe_gradients=bool(train_cfg.get("probe_gradients", False)),
        seed=seed,
    )
    result = trainer.run(max_steps=steps)

    plots.close()
    if enable_plots and len(dataset):
        render_decision_field(network, dataset, run_dir / "field.png")
        render_network(network, run_dir / "network.png", gradients=trainer.probe())

    resolved = _safe_config(config, hidden)
    (run_dir / "config.json").write_text(json.dumps(resolved, indent=2))
    description = network.describe()
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        dataset_provenance=dataset.provenance(),
        model={
            "layer_sizes": list(description.layer_sizes),
            "activation": description.activation,
            "task": description.task.value,
            "parameters": description.parameter_count,
        },
    )
    logger.info(
        "run_complete",
        run_dir=str(run_dir),
        steps=result.steps,
        final_loss=result.final_loss,
    )
    return RunResult(
        steps=result.steps,
        final_loss=result.final_loss,
        metric_name=result.metric.name if result.metric else default_metric(dataset.task),
        metric_value=result.metric.value if result.metric else None,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        cancelled=result.cancelled,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str, activation: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset / activation


def _build_hidden(config: Mapping[str, object]) -> List[int]:
    if "hidden" in config:
        return [int(h) for h in config["hidden"]]  # type: ignore[union-attr]
    width = int(config.get("width", 6))  # type: ignore[arg-type]
    depth = int(config.get("depth", 1))  # type: ignore[arg-type]
    return [width for _ in range(depth)]


def _safe_config(config: Mapping[str, object], hidden: Iterable[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["hidden"] = list(hidden)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    sizes: Sequence[int],
    activation: str,
    task: str,
    lr: float,
    steps: int,
    param_count: int,
) -> None:
    output = "sigmoid / BCE" if task == "classification" else "identity / MSE"
    print("=== NeuroStudio run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Layers        : {' -> '.join(str(s) for s in sizes)}")
    print(f"Hidden act.   : {activation}")
    print(f"Output / loss : {output}")
    print(f"Learning rate : {lr}")
    print(f"Steps         : {steps}")
    print(f"Parameters    : {param_count}")
    print("=======================")


__all__ = ["run_pipeline", "load_preset", "presets"]
