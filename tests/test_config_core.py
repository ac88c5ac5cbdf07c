from __future__ import annotations

import logging

import pytest

from physlab.config import EngineConfig
from physlab.logging_config import ROOT_LOGGER_NAME, setup_logging


def test_defaults() -> None:
    cfg = EngineConfig.from_env({})
    assert cfg == EngineConfig()
    assert cfg.dt_cap_s == 0.05
    assert cfg.audio_enabled


def test_env_overrides() -> None:
    cfg = EngineConfig.from_env(
        {
            "PHYSLAB_DT_CAP": "0.1",
            "PHYSLAB_DPR": "2",
            "PHYSLAB_FPS": "30",
            "PHYSLAB_VOLUME": "0.5",
            "PHYSLAB_LOG_LEVEL": "debug",
            "PHYSLAB_DISABLE_AUDIO": "1",
        }
    )
    assert cfg.dt_cap_s == 0.1
    assert cfg.device_pixel_ratio == 2.0
    assert cfg.target_fps == 30
    assert cfg.master_volume == 0.5
    assert cfg.log_level == "DEBUG"
    assert not cfg.audio_enabled


def test_dummy_audio_driver_disables_audio() -> None:
    assert not EngineConfig.from_env({"SDL_AUDIODRIVER": "dummy"}).audio_enabled


@pytest.mark.parametrize(
    "env",
    [
        {"PHYSLAB_DT_CAP": "fast"},
        {"PHYSLAB_DT_CAP": "0"},
        {"PHYSLAB_FPS": "sixty"},
        {"PHYSLAB_VOLUME": "2"},
        {"PHYSLAB_DPR": "-1"},
    ],
)
def test_bad_overrides_raise(env: dict[str, str]) -> None:
    with pytest.raises(ValueError):
        EngineConfig.from_env(env)


def test_setup_logging_is_idempotent() -> None:
    logger = setup_logging("INFO")
    count = len(logger.handlers)
    again = setup_logging(logging.DEBUG)
    assert again is logger
    assert logger.name == ROOT_LOGGER_NAME
    assert len(again.handlers) == count
    assert again.level == logging.DEBUG

    with pytest.raises(ValueError):
        setup_logging("chatty")
