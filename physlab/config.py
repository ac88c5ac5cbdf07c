from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

ENV_PREFIX = "PHYSLAB_"


@dataclass(frozen=True, slots=True)
class EngineConfig:
    # Larger gaps (backgrounded window, debugger pause) are clamped to this.
    dt_cap_s: float = 0.05
    popup_duration_s: float = 1.5
    target_fps: int = 60

    window_size: tuple[int, int] = (960, 600)
    device_pixel_ratio: float = 1.0

    audio_enabled: bool = True
    master_volume: float = 0.3
    sample_rate: int = 22050

    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not (math.isfinite(self.dt_cap_s) and self.dt_cap_s > 0.0):
            raise ValueError("dt_cap_s must be > 0")
        if self.popup_duration_s <= 0.0:
            raise ValueError("popup_duration_s must be > 0")
        if self.target_fps <= 0:
            raise ValueError("target_fps must be > 0")
        if not (math.isfinite(self.device_pixel_ratio) and self.device_pixel_ratio > 0.0):
            raise ValueError("device_pixel_ratio must be > 0")
        if not (0.0 <= self.master_volume <= 1.0):
            raise ValueError("master_volume must be in [0.0, 1.0]")
        if self.sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        w, h = self.window_size
        if w <= 0 or h <= 0:
            raise ValueError("window_size must be positive")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineConfig":
        """Build a config from ``PHYSLAB_*`` environment overrides.

        Recognised: ``PHYSLAB_DT_CAP``, ``PHYSLAB_DPR``, ``PHYSLAB_FPS``,
        ``PHYSLAB_DISABLE_AUDIO`` (``1`` disables), ``PHYSLAB_VOLUME`` and
        ``PHYSLAB_LOG_LEVEL``. Headless runs with ``SDL_AUDIODRIVER=dummy``
        keep audio off.
        """

        env = os.environ if environ is None else environ
        cfg = cls()
        updates: dict[str, object] = {}

        raw = env.get(f"{ENV_PREFIX}DT_CAP", "").strip()
        if raw:
            updates["dt_cap_s"] = _parse_float("DT_CAP", raw)
        raw = env.get(f"{ENV_PREFIX}DPR", "").strip()
        if raw:
            updates["device_pixel_ratio"] = _parse_float("DPR", raw)
        raw = env.get(f"{ENV_PREFIX}FPS", "").strip()
        if raw:
            try:
                updates["target_fps"] = int(raw)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}FPS must be an integer, got {raw!r}") from exc
        raw = env.get(f"{ENV_PREFIX}VOLUME", "").strip()
        if raw:
            updates["master_volume"] = _parse_float("VOLUME", raw)
        raw = env.get(f"{ENV_PREFIX}LOG_LEVEL", "").strip()
        if raw:
            updates["log_level"] = raw.upper()

        if env.get(f"{ENV_PREFIX}DISABLE_AUDIO", "0") == "1":
            updates["audio_enabled"] = False
        if env.get("SDL_AUDIODRIVER", "").strip().lower() == "dummy":
            updates["audio_enabled"] = False

        return replace(cfg, **updates) if updates else cfg


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from exc
