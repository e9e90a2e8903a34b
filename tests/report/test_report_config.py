import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from gridreport.config import DEFAULT_CFG_FILE, ReportConfig, load_config
from gridreport.errors import ConfigLoadError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / DEFAULT_CFG_FILE
    path.write_text(textwrap.dedent(text).lstrip(), encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path: Path):
    cfg = load_config(tmp_path / DEFAULT_CFG_FILE)
    assert cfg == ReportConfig()
    assert cfg.item_parameter == "item"
    assert cfg.items_parameter == "items"
    assert cfg.error_font_color == "FFFF0000"
    assert cfg.refresh_caches is True


def test_empty_file_gives_defaults(tmp_path: Path):
    assert load_config(_write(tmp_path, "")) == ReportConfig()


def test_overrides(tmp_path: Path):
    path = _write(tmp_path, """
        schema_version: 1
        item_parameter: row
        error_font_color: "FF0000"
        refresh_caches: false
        list_range_misuse_message: "Wrong list"
    """)
    cfg = load_config(path)
    assert cfg.item_parameter == "row"
    assert cfg.error_font_color == "FF0000"
    assert cfg.refresh_caches is False
    assert cfg.list_range_misuse_message == "Wrong list"


def test_unknown_key_rejected(tmp_path: Path):
    path = _write(tmp_path, """
        item_paramter: row
    """)
    with pytest.raises(ConfigLoadError, match="item_paramter"):
        load_config(path)


def test_invalid_value_reports_field(tmp_path: Path):
    path = _write(tmp_path, """
        error_font_color: red
    """)
    with pytest.raises(ConfigLoadError, match="error_font_color"):
        load_config(path)


def test_unsupported_schema(tmp_path: Path):
    path = _write(tmp_path, "schema_version: 2\n")
    with pytest.raises(ConfigLoadError, match="Unsupported config schema 2"):
        load_config(path)


def test_top_level_must_be_mapping(tmp_path: Path):
    path = _write(tmp_path, "- a\n- b\n")
    with pytest.raises(ConfigLoadError, match="top-level mapping expected"):
        load_config(path)


def test_config_errors_are_value_errors(tmp_path: Path):
    path = _write(tmp_path, "refresh_caches: [1]\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_config_is_frozen():
    cfg = ReportConfig()
    with pytest.raises(ValidationError):
        cfg.item_parameter = "x"  # type: ignore[misc]
