"""Defaults for maintenance runs, overridable from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

from .env import env_choice, env_float, env_int

STORE_BACKENDS: Final[tuple[str, ...]] = ("database", "api")
SCALAR_POLICIES: Final[tuple[str, ...]] = ("fill_empty", "prefer_longer")
NAME_NORMALIZATIONS: Final[tuple[str, ...]] = ("strict", "loose")

DEFAULT_MAX_GROUPS = 20
DEFAULT_MAX_ITEMS = 50
DEFAULT_WRITE_DELAY = 0.15
DEFAULT_FAILURE_BACKOFF = 2.0
DEFAULT_SOURCE_WEIGHT = 2

type StoreBackend = Literal["database", "api"]


@dataclass(frozen=True, slots=True)
class RunConfig:
    store_backend: StoreBackend = "database"
    max_groups: int = DEFAULT_MAX_GROUPS
    max_items: int = DEFAULT_MAX_ITEMS
    write_delay: float = DEFAULT_WRITE_DELAY
    failure_backoff: float = DEFAULT_FAILURE_BACKOFF
    source_weight: int = DEFAULT_SOURCE_WEIGHT
    scalar_policy: str = "fill_empty"
    name_normalization: str = "strict"


def get_run_config() -> RunConfig:
    backend = env_choice("VARIETAL_STORE_BACKEND", "database", choices=STORE_BACKENDS)
    return RunConfig(
        store_backend="api" if backend == "api" else "database",
        max_groups=env_int("VARIETAL_MAX_GROUPS", DEFAULT_MAX_GROUPS, minimum=1),
        max_items=env_int("VARIETAL_MAX_ITEMS", DEFAULT_MAX_ITEMS, minimum=1),
        write_delay=env_float("VARIETAL_WRITE_DELAY", DEFAULT_WRITE_DELAY, minimum=0.0),
        failure_backoff=env_float("VARIETAL_FAILURE_BACKOFF", DEFAULT_FAILURE_BACKOFF, minimum=0.0),
        source_weight=env_int("VARIETAL_SOURCE_WEIGHT", DEFAULT_SOURCE_WEIGHT, minimum=0),
        scalar_policy=env_choice("VARIETAL_SCALAR_POLICY", "fill_empty", choices=SCALAR_POLICIES),
        name_normalization=env_choice(
            "VARIETAL_NAME_NORMALIZATION", "strict", choices=NAME_NORMALIZATIONS
        ),
    )
