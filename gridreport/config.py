from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from ruamel.yaml import YAML

from .errors import ConfigLoadError

SCHEMA_VERSION = 1
DEFAULT_CFG_FILE = "gridreport.yaml"

_LOG = logging.getLogger("gridreport")

# --------------------------------------------------------------------------- #
# Logging setup
# --------------------------------------------------------------------------- #
def _setup_logging_once() -> None:
    if getattr(_setup_logging_once, "_inited", False):
        return
    _setup_logging_once._inited = True  # type: ignore[attr-defined]
    if not os.environ.get("GRIDREPORT_DEBUG"):
        return
    _LOG.setLevel(logging.DEBUG)
    if not _LOG.handlers:
        h = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(name)s: %(message)s")
        h.setFormatter(fmt)
        _LOG.addHandler(h)

_setup_logging_once()

# --------------------------------------------------------------------------- #
# MODEL
# --------------------------------------------------------------------------- #
class ReportConfig(BaseModel):
    """
    Настройки рендеринга отчёта.

    Все поля имеют значения по умолчанию: пустой конфиг — рабочий конфиг.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    # цвет шрифта ячейки с ошибкой (ARGB)
    error_font_color: str = Field(default="FFFF0000", pattern=r"^[0-9A-Fa-f]{6}([0-9A-Fa-f]{2})?$")
    # имя параметра, под которым элемент коллекции доступен в строке диапазона
    item_parameter: str = Field(default="item", min_length=1)
    # имя параметра со всей коллекцией в строке опций
    items_parameter: str = Field(default="items", min_length=1)
    list_range_misuse_message: str = (
        "The range does not meet the requirements of the list ranges. "
        "For details, see the documentation."
    )
    # обновлять производные кэши книги после каждого развёртывания
    refresh_caches: bool = True


# --------------------------------------------------------------------------- #
# YAML loader
# --------------------------------------------------------------------------- #
_yaml = YAML(typ="safe")


def _validate(raw: Dict[str, Any], source: str) -> ReportConfig:
    try:
        return ReportConfig.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        path = ".".join(str(p) for p in first.get("loc", ())) or "<root>"
        raise ConfigLoadError(f"{source}: {path}: {first.get('msg')}") from e


# --------------------------------------------------------------------------- #
# PUBLIC API
# --------------------------------------------------------------------------- #
def load_config(path: Path) -> ReportConfig:
    """
    Загрузить gridreport.yaml.

    • Если файла нет — вернуть дефолты.
    • Если schema_version отсутствует — считаем, что это актуальная версия.
    • Неизвестные ключи и неверные значения — ConfigLoadError.
    """
    if not path.exists():
        return ReportConfig()

    with path.open(encoding="utf-8") as f:
        raw = _yaml.load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{path}: top-level mapping expected")

    raw = dict(raw)
    version = raw.pop("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise ConfigLoadError(
            f"Unsupported config schema {version} "
            f"(tool expects {SCHEMA_VERSION})"
        )

    cfg = _validate(raw, str(path))
    _LOG.debug("Loaded config from %s", path)
    return cfg


__all__ = ["ReportConfig", "load_config", "SCHEMA_VERSION", "DEFAULT_CFG_FILE"]
