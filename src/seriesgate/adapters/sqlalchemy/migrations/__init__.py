"""Alembic helpers for the seriesgate schema."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from seriesgate.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

_PATH_OPTIONS: Final = frozenset({"script_location", "prepend_sys_path"})


def _pyproject_alembic_section() -> dict[str, str]:
    """Read ``[tool.alembic]`` from pyproject.toml when running from a checkout."""

    try:
        with PYPROJECT_PATH.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError:
        return {}
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def _resolve(option: str | None, default: Path) -> Path:
    if option is None:
        return default
    candidate = Path(option)
    return candidate if candidate.is_absolute() else (PROJECT_ROOT / candidate).resolve()


def build_config() -> Config:
    options = _pyproject_alembic_section()
    config = Config()
    script_location = _resolve(options.get("script_location"), MIGRATIONS_PATH)
    if not script_location.is_dir():
        # installed wheel: the checkout layout does not exist
        script_location = MIGRATIONS_PATH
    config.set_main_option("script_location", str(script_location))
    config.set_main_option(
        "prepend_sys_path", str(_resolve(options.get("prepend_sys_path"), PROJECT_ROOT))
    )
    for key, value in options.items():
        if key not in _PATH_OPTIONS:
            config.set_main_option(key, value)
    return config


def head_revision() -> str | None:
    return ScriptDirectory.from_config(build_config()).get_current_head()


def current_revision(engine: Engine) -> str | None:
    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""

    config = build_config()
    if engine is not None:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return
    config.set_main_option("sqlalchemy.url", database_uri or get_database_config().uri)
    command.upgrade(config, "head")
