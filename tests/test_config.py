from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from image_resizer.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RESIZER_ADDRESS", raising=False)
    settings = Settings()
    assert settings.address == "image.resizer"
    assert settings.base_path == os.getcwd()
    assert settings.default_quality == 0.8
    assert settings.postgres is None and settings.swift is None


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESIZER_ADDRESS", "thumbs.resizer")
    monkeypatch.setenv("RESIZER_SWIFT__URI", "http://swift.test")
    settings = Settings()
    assert settings.address == "thumbs.resizer"
    assert settings.swift == {"uri": "http://swift.test"}


def test_json_config_file_with_legacy_keys(tmp_path: Path) -> None:
    config = tmp_path / "conf.json"
    config.write_text(
        json.dumps(
            {
                "base-path": str(tmp_path),
                "address": "images",
                "postgres": {"db_name": "img", "pool_size": 4},
            }
        )
    )
    settings = Settings.from_file(config)
    assert settings.base_path == str(tmp_path)
    assert settings.address == "images"
    assert settings.postgres == {"db_name": "img", "pool_size": 4}


def test_config_file_must_be_an_object(tmp_path: Path) -> None:
    config = tmp_path / "conf.json"
    config.write_text("[]")
    with pytest.raises(ValueError):
        Settings.from_file(config)
