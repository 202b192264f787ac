import logging
import random
from dataclasses import replace
from typing import List, Optional, Tuple

from config.settings import SequenceConfig
from data.models import CATEGORY_LONG, CATEGORY_SHORT, TaskPattern, TrialSpec
from task.patterns import validate_task_pattern
from task.randomization import coin_flip, make_rng, random_int, shuffled

logger = logging.getLogger(__name__)


class SequenceInvariantError(RuntimeError):
    """The generator produced something it must never produce."""


def build_category_buckets(
    pattern: TaskPattern,
    rng: random.Random,
    cfg: SequenceConfig = SequenceConfig(),
) -> Tuple[List[TrialSpec], List[TrialSpec]]:
    """
    Собирает два "ведра" trial-ов на один блок: frequent и infrequent.

    Количество reward-trial-ов фиксировано (30 из 50 и 10 из 50),
    случайно только их положение внутри ведра.
    """
    buckets = []
    for category, n_eligible in (
        (pattern.frequent_category, cfg.frequent_eligible),
        (pattern.infrequent_category, cfg.infrequent_eligible),
    ):
        template = TrialSpec(
            category=category,
            correct_response=pattern.response_for(category),
            frequency_class=pattern.frequency_of(category),
            reward_eligible=False,
        )
        bucket = [replace(template, reward_eligible=True) for _ in range(n_eligible)]
        bucket += [template] * (cfg.per_category - n_eligible)
        buckets.append(shuffled(rng, bucket))
    return buckets[0], buckets[1]


def build_run_lengths(rng: random.Random, total: int = 50) -> List[int]:
    """Runs of 1 or 2 that add up to exactly ``total``."""
    run_lengths: List[int] = []
    acc = 0
    while acc < total:
        # на 49 шаг длины 2 дал бы 51
        step = 1 if acc == total - 1 else random_int(rng, 1, 2)
        run_lengths.append(step)
        acc += step
    if acc != total:
        raise SequenceInvariantError(f"run lengths sum to {acc}, expected {total}")
    return run_lengths


def interleave_run_lengths(rng: random.Random, run_lengths: List[int]) -> List[int]:
    first = shuffled(rng, run_lengths)
    second = shuffled(rng, run_lengths)
    out: List[int] = []
    for a, b in zip(first, second):
        out.append(a)
        out.append(b)
    return out


def schedule_block(
    frequent: List[TrialSpec],
    infrequent: List[TrialSpec],
    rng: random.Random,
    cfg: SequenceConfig = SequenceConfig(),
) -> List[TrialSpec]:
    """
    Раскладывает два ведра в один блок так, чтобы одна категория
    никогда не шла больше 2 раз подряд.

    - длины серий (1 или 2) берём из build_run_lengths
    - чётные серии берём из одного ведра, нечётные из другого
    - какое ведро идёт первым, решает монетка (одна на блок)
    """
    if len(frequent) != cfg.per_category or len(infrequent) != cfg.per_category:
        raise SequenceInvariantError(
            f"buckets must hold {cfg.per_category} trials each, "
            f"got {len(frequent)} and {len(infrequent)}"
        )

    runs = interleave_run_lengths(rng, build_run_lengths(rng, cfg.per_category))

    frequent_first = coin_flip(rng)
    order = (frequent, infrequent) if frequent_first else (infrequent, frequent)
    logger.debug(
        "block layout: %d runs, %s first, runs=%s",
        len(runs),
        "frequent" if frequent_first else "infrequent",
        runs,
    )

    block: List[TrialSpec] = []
    cursors = [0, 0]
    for i, length in enumerate(runs):
        slot = i % 2
        bucket = order[slot]
        start = cursors[slot]
        if start + length > len(bucket):
            raise SequenceInvariantError(
                f"run {i} of length {length} overruns bucket at {start}/{len(bucket)}"
            )
        block.extend(bucket[start:start + length])
        cursors[slot] = start + length

    if cursors != [len(order[0]), len(order[1])]:
        raise SequenceInvariantError(f"buckets not exhausted: cursors={cursors}")
    return block


def generate_block(
    pattern: TaskPattern,
    rng: random.Random,
    cfg: SequenceConfig = SequenceConfig(),
    block_index: int = 0,
) -> List[TrialSpec]:
    frequent, infrequent = build_category_buckets(pattern, rng, cfg)
    block = schedule_block(frequent, infrequent, rng, cfg)
    if block_index:
        block = [replace(t, block_index=block_index) for t in block]
    return block


def generate_sequence(
    pattern: TaskPattern,
    rng: Optional[random.Random] = None,
    cfg: SequenceConfig = SequenceConfig(),
) -> Tuple[TrialSpec, ...]:
    """
    Генерирует всю основную часть: n_blocks блоков по block_size trial-ов.

    trial_index (1..300) выставляется только после склейки блоков.
    """
    validate_task_pattern(pattern)
    rng = rng or make_rng()

    trials: List[TrialSpec] = []
    for b in range(cfg.n_blocks):
        trials.extend(generate_block(pattern, rng, cfg, block_index=b + 1))

    sequence = tuple(replace(t, trial_index=i + 1) for i, t in enumerate(trials))
    logger.info(
        "generated %d trials (pattern %d, frequent=%s)",
        len(sequence),
        pattern.pattern_id,
        pattern.frequent_category,
    )
    return sequence


def _intro_trials(pattern: TaskPattern) -> List[TrialSpec]:
    return [
        TrialSpec(
            category=category,
            correct_response=pattern.response_for(category),
            frequency_class=pattern.frequency_of(category),
            reward_eligible=False,
            trial_index=i + 1,
        )
        for i, category in enumerate((CATEGORY_SHORT, CATEGORY_LONG))
    ]


def generate_demo_trials(pattern: TaskPattern) -> Tuple[TrialSpec, ...]:
    # демо: сначала короткий рот, потом длинный
    validate_task_pattern(pattern)
    return tuple(_intro_trials(pattern))


def generate_practice_trials(
    pattern: TaskPattern,
    rng: Optional[random.Random] = None,
) -> Tuple[TrialSpec, ...]:
    validate_task_pattern(pattern)
    rng = rng or make_rng()
    trials = shuffled(rng, _intro_trials(pattern))
    return tuple(replace(t, trial_index=i + 1) for i, t in enumerate(trials))
