from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from data.models import CATEGORY_LONG, CATEGORY_SHORT, RESPONSE_LEFT, RESPONSE_RIGHT, RESPONSES
from task.patterns import ConfigurationError


PATTERN_ENV = "PRT_PATTERN"


@dataclass(frozen=True)
class SequenceConfig:
    n_blocks: int = 3
    block_size: int = 100
    frequent_reward_rate: float = 0.6
    infrequent_reward_rate: float = 0.2
    max_run_length: int = 2

    @property
    def per_category(self) -> int:
        return self.block_size // 2

    @property
    def frequent_eligible(self) -> int:
        return round(self.per_category * self.frequent_reward_rate)

    @property
    def infrequent_eligible(self) -> int:
        return round(self.per_category * self.infrequent_reward_rate)

    @property
    def total_trials(self) -> int:
        return self.n_blocks * self.block_size


@dataclass(frozen=True)
class TimingConfig:
    # тайминги (мс), их использует внешний runner
    fixation_ms: int = 500
    signal_ms: int = 500
    stimulus_ms: int = 100
    feedback_ms: int = 1750
    break_ms: int = 30000


@dataclass(frozen=True)
class RewardConfig:
    reward_amount: int = 5
    unit: str = "points"


@dataclass(frozen=True)
class StimulusConfig:
    source_folder: str = "probabilistic-reward-task/source"
    signal_image: str = "face-signal.png"
    short_image: str = "face-with-mouth-short.png"
    long_image: str = "face-with-mouth-long.png"

    def image_for(self, category: str) -> str:
        name = {CATEGORY_SHORT: self.short_image, CATEGORY_LONG: self.long_image}[category]
        return f"{self.source_folder.rstrip('/')}/{name}"


@dataclass(frozen=True)
class TaskConfig:
    pattern: int = 0  # 0 = случайно из 1..4
    response_keys: Dict[str, str] = field(
        default_factory=lambda: {RESPONSE_LEFT: "f", RESPONSE_RIGHT: "j"}
    )
    sequence: SequenceConfig = SequenceConfig()
    timing: TimingConfig = TimingConfig()
    reward: RewardConfig = RewardConfig()
    stimuli: StimulusConfig = StimulusConfig()


_SECTIONS = {
    "sequence": SequenceConfig,
    "timing": TimingConfig,
    "reward": RewardConfig,
    "stimuli": StimulusConfig,
}


def _parse_pattern(value: Any) -> int:
    try:
        pattern = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"pattern must be an integer, got {value!r}")
    if pattern not in (0, 1, 2, 3, 4):
        raise ConfigurationError(f"pattern must be 0..4, got {pattern}")
    return pattern


def _apply_section(base: Any, name: str, values: Any) -> Any:
    if not isinstance(values, dict):
        raise ConfigurationError(f"section '{name}' must be an object")
    known = set(base.__dataclass_fields__)
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"unknown keys in '{name}': {', '.join(unknown)}")
    for key, value in values.items():
        expected = type(getattr(base, key))
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if not isinstance(value, expected) or isinstance(value, bool) != (expected is bool):
            raise ConfigurationError(f"'{name}.{key}' must be {expected.__name__}, got {value!r}")
    return replace(base, **values)


def config_from_dict(payload: Mapping[str, Any]) -> TaskConfig:
    cfg = TaskConfig()
    updates: Dict[str, Any] = {}
    for key, value in payload.items():
        if key == "pattern":
            updates["pattern"] = _parse_pattern(value)
        elif key == "response_keys":
            if not isinstance(value, dict) or set(value) != set(RESPONSES):
                raise ConfigurationError("response_keys must map both 'left' and 'right'")
            if value[RESPONSE_LEFT] == value[RESPONSE_RIGHT]:
                raise ConfigurationError("left and right responses must use different keys")
            updates["response_keys"] = {k: str(v) for k, v in value.items()}
        elif key in _SECTIONS:
            updates[key] = _apply_section(getattr(cfg, key), key, value)
        else:
            raise ConfigurationError(f"unknown setting: {key}")
    cfg = replace(cfg, **updates)
    # меньше 4 trial-ов на блок: серии 1/2 не складываются в 1 trial на категорию
    if cfg.sequence.block_size % 2 or cfg.sequence.block_size < 4:
        raise ConfigurationError("block_size must be an even number of at least 4")
    for name in ("frequent_reward_rate", "infrequent_reward_rate"):
        rate = getattr(cfg.sequence, name)
        if not 0.0 <= rate <= 1.0:
            raise ConfigurationError(f"sequence.{name} must be within [0, 1], got {rate}")
    if cfg.sequence.n_blocks <= 0:
        raise ConfigurationError("n_blocks must be positive")
    if cfg.sequence.max_run_length != 2:
        raise ConfigurationError("only max_run_length=2 is supported by the run-length scheduler")
    return cfg


def load_task_config(
    settings_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> TaskConfig:
    env = os.environ if env is None else env
    payload: Dict[str, Any] = {}

    if settings_path is not None and settings_path.exists():
        try:
            payload = json.loads(settings_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"cannot read settings from {settings_path}: {exc}")
        if not isinstance(payload, dict):
            raise ConfigurationError(f"settings file {settings_path} must hold a JSON object")

    env_pattern = (env.get(PATTERN_ENV) or "").strip()
    if env_pattern:
        payload = dict(payload)
        payload["pattern"] = env_pattern

    return config_from_dict(payload)
