"""Dataset registry for the synthetic 2D generators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

from ..core.types import Dataset, TaskKind

Generator = Callable[..., Dataset]


@dataclass(frozen=True)
class DatasetSpec:
    """Description of a generator registered in the system.

    Attributes
    ----------
    name:
        Registry identifier.
    generator:
        Callable accepting ``(count, noise, seed)``.
    task:
        Task kind of every dataset the generator produces.
    defaults:
        Default ``count``/``noise``/``seed`` used when a caller omits them.
    seeded:
        ``False`` for generators whose randomness ignores ``seed`` entirely.
    """

    name: str
    generator: Generator
    task: TaskKind
    defaults: Dict[str, Any] = field(default_factory=dict)
    seeded: bool = True

    def generate(self, **options: Any) -> Dataset:
        params = dict(self.defaults)
        params.update({k: v for k, v in options.items() if v is not None})
        return self.generator(**params)


_REGISTRY: MutableMapping[str, DatasetSpec] = {}


def register_dataset(
    name: str,
    *,
    task: TaskKind | str,
    seeded: bool = True,
    **defaults: Any,
) -> Callable[[Generator], Generator]:
    """Register a generator under ``name``.

    Used as a decorator::

        @register_dataset("moons", task="classification", count=200, noise=0.15, seed=7)
        def moons(count, noise, seed=7):
            ...
    """

    def _decorator(func: Generator) -> Generator:
        _REGISTRY[name] = DatasetSpec(
            name=name,
            generator=func,
            task=TaskKind.parse(task),
            defaults=dict(defaults),
            seeded=seeded,
        )
        return func

    return _decorator


def get_spec(name: str) -> DatasetSpec:
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    return _REGISTRY[name]


def get_dataset(
    name: str,
    *,
    count: int | None = None,
    noise: float | None = None,
    seed: int | None = None,
) -> Dataset:
    """Generate the dataset registered as ``name``."""

    return get_spec(name).generate(count=count, noise=noise, seed=seed)


def regenerate(dataset: Dataset, *, seed: int | None = None) -> Dataset:
    """Rebuild ``dataset`` from its generation parameters."""

    return get_dataset(
        dataset.name,
        count=dataset.count,
        noise=dataset.noise,
        seed=dataset.seed if seed is None else seed,
    )


def dataset_for_ui(name: str, per_class: int, noise: float, seed: int) -> Dataset:
    """Size datasets the way the interactive controls do.

    Classification generators already emit ``per_class`` points per class;
    regression generators are given ``2 * per_class`` so both kinds show the
    same number of points.
    """

    spec = get_spec(name)
    count = per_class * 2 if spec.task is TaskKind.REGRESSION else per_class
    return spec.generate(count=count, noise=noise, seed=seed)


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "dataset_for_ui",
    "get_dataset",
    "get_spec",
    "regenerate",
    "register_dataset",
]
