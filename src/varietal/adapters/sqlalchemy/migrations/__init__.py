"""Alembic helpers for the document-store schema."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext

from varietal.config.storage import get_database_uri

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent
_RESERVED_OPTIONS: Final[frozenset[str]] = frozenset({"script_location", "prepend_sys_path"})

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


def _pyproject_alembic_options() -> dict[str, str]:
    """Return ``[tool.alembic]`` from pyproject.toml; empty for installed, non-editable copies."""

    try:
        with PYPROJECT_PATH.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError:
        return {}
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def _resolve(path_option: str | None, default: Path) -> Path:
    if path_option is None:
        return default
    candidate = Path(path_option)
    return candidate if candidate.is_absolute() else (PROJECT_ROOT / candidate).resolve()


def build_config(database_uri: str | None = None) -> Config:
    """Return an Alembic config pointing at the bundled migration scripts."""

    options = _pyproject_alembic_options()
    config = Config(toml_file=str(PYPROJECT_PATH)) if options else Config()
    config.set_main_option(
        "script_location",
        str(_resolve(options.get("script_location"), MIGRATIONS_PATH)),
    )
    config.set_main_option(
        "prepend_sys_path",
        str(_resolve(options.get("prepend_sys_path"), PROJECT_ROOT)),
    )
    for key, value in options.items():
        if key not in _RESERVED_OPTIONS:
            config.set_main_option(key, value)
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""

    if engine is not None:
        config = build_config()
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        log.debug("Schema at head for %s", engine.url)
        return
    command.upgrade(build_config(database_uri or get_database_uri()), "head")


def current_revision(engine: Engine) -> str | None:
    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()
