from pathlib import Path

import pytest
import yaml

from premade_creator.configuration.app_configuration import (
    DEFAULT_DATA_FILE,
    DEFAULT_EMBED_COLOR,
    DEFAULT_FIELD_BUDGET,
    DEFAULT_TICK_SECONDS,
    AppConfig,
    load_app_config,
)


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    return tmp_path / "app_config.yml"


def write_config(path: Path, payload) -> None:
    path.write_text(yaml.safe_dump(payload), encoding="utf-8")


def test_app_config_reload_parses_yaml(config_path: Path) -> None:
    write_config(config_path, {
        "premade_creator": {
            "tick_seconds": 2,
            "data_file": str(config_path.parent / "premade.json"),
            "field_budget": 500,
            "embed_color": [1, 2, 3],
        },
    })

    config = AppConfig(config_path)

    assert config.tick_seconds == pytest.approx(2.0)
    assert config.data_path == (config_path.parent / "premade.json").resolve()
    assert config.field_budget == 500
    assert config.embed_color == (1, 2, 3)
    assert "premade_creator" in config.data


def test_app_config_missing_file_returns_defaults(tmp_path: Path) -> None:
    config = AppConfig(tmp_path / "does_not_exist.yml")

    assert config.data == {}
    assert config.tick_seconds == DEFAULT_TICK_SECONDS
    assert config.data_path == Path(DEFAULT_DATA_FILE).resolve()
    assert config.field_budget == DEFAULT_FIELD_BUDGET
    assert config.embed_color == DEFAULT_EMBED_COLOR


def test_app_config_invalid_yaml_returns_empty(config_path: Path) -> None:
    config_path.write_text("premade_creator: [unclosed", encoding="utf-8")
    assert AppConfig(config_path).data == {}


def test_app_config_non_mapping_returns_empty(config_path: Path) -> None:
    config_path.write_text("- just\n- a list\n", encoding="utf-8")
    assert AppConfig(config_path).data == {}


def test_invalid_values_fall_back_to_defaults(config_path: Path) -> None:
    write_config(config_path, {
        "premade_creator": {
            "tick_seconds": -1,
            "field_budget": "lots",
            "embed_color": "purple",
        },
    })

    config = AppConfig(config_path)

    assert config.tick_seconds == DEFAULT_TICK_SECONDS
    assert config.field_budget == DEFAULT_FIELD_BUDGET
    assert config.embed_color == DEFAULT_EMBED_COLOR


def test_field_budget_is_capped_at_discord_limit(config_path: Path) -> None:
    write_config(config_path, {"premade_creator": {"field_budget": 5000}})
    assert AppConfig(config_path).field_budget == 1024


def test_reload_picks_up_changes(config_path: Path) -> None:
    write_config(config_path, {"premade_creator": {"tick_seconds": 1}})
    config = load_app_config(config_path)
    assert config.tick_seconds == 1.0

    write_config(config_path, {"premade_creator": {"tick_seconds": 5}})
    config.reload()
    assert config.tick_seconds == 5.0
    assert config.get("missing", "fallback") == "fallback"
