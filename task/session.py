from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from config.settings import SequenceConfig, TaskConfig
from data.models import TaskPattern, TrialEvent, TrialSpec
from task.patterns import build_task_pattern
from task.randomization import make_rng
from task.reward_machine import initial_reward_state, score_trial
from task.trial_generator import (
    generate_demo_trials,
    generate_practice_trials,
    generate_sequence,
)


@dataclass(frozen=True)
class Session:
    pattern: TaskPattern
    demo: Tuple[TrialSpec, ...]
    practice: Tuple[TrialSpec, ...]
    main: Tuple[TrialSpec, ...]


def _with_stimuli(trials: Sequence[TrialSpec], cfg: TaskConfig) -> Tuple[TrialSpec, ...]:
    return tuple(replace(t, stimulus=cfg.stimuli.image_for(t.category)) for t in trials)


def build_session(cfg: Optional[TaskConfig] = None, rng: Optional[random.Random] = None) -> Session:
    cfg = cfg or TaskConfig()
    rng = rng or make_rng()
    pattern = build_task_pattern(cfg.pattern, rng)
    return Session(
        pattern=pattern,
        demo=_with_stimuli(generate_demo_trials(pattern), cfg),
        practice=_with_stimuli(generate_practice_trials(pattern, rng), cfg),
        main=_with_stimuli(generate_sequence(pattern, rng, cfg.sequence), cfg),
    )


def is_rest_break(trial: TrialSpec, cfg: SequenceConfig = SequenceConfig()) -> bool:
    # перерыв после каждого блока, кроме последнего
    return trial.trial_index % cfg.block_size == 0 and trial.trial_index < cfg.total_trials


def block_boundaries(sequence: Sequence[TrialSpec], cfg: SequenceConfig = SequenceConfig()) -> List[int]:
    return [t.trial_index for t in sequence if is_rest_break(t, cfg)]


def replay_responses(
    sequence: Sequence[TrialSpec],
    responses: Sequence[Optional[str]],
    reward_amount: int = 5,
) -> List[TrialEvent]:
    if len(sequence) != len(responses):
        raise ValueError(f"Got {len(responses)} responses for {len(sequence)} trials")
    state = initial_reward_state()
    events: List[TrialEvent] = []
    for trial, response in zip(sequence, responses):
        event, state = score_trial(trial, response, state, reward_amount=reward_amount)
        events.append(event)
    return events
