"""
Tests for the stimulus-sequence generator.

Statistical properties are checked over many seeds; the layout mechanics are
checked with ScriptedRandom so every draw is known in advance.
"""
from __future__ import annotations

import random

import pytest

from analytics.validation import longest_run
from config.settings import SequenceConfig
from data.models import (
    CATEGORY_LONG,
    CATEGORY_SHORT,
    FREQUENT,
    INFREQUENT,
    RESPONSE_LEFT,
    RESPONSE_RIGHT,
    TaskPattern,
)
from task import trial_generator
from task.patterns import ConfigurationError, build_task_pattern
from task.trial_generator import (
    SequenceInvariantError,
    build_category_buckets,
    build_run_lengths,
    generate_block,
    generate_demo_trials,
    generate_practice_trials,
    generate_sequence,
    interleave_run_lengths,
    schedule_block,
)

from fakes import ScriptedRandom


SEEDS = range(40)


# ────────────────────────────────────────────────────────────────────────────
# Category buckets
# ────────────────────────────────────────────────────────────────────────────


class TestCategoryBuckets:
    def test_counts_are_exact(self, frequent_left_pattern, rng):
        frequent, infrequent = build_category_buckets(frequent_left_pattern, rng)
        assert len(frequent) == 50
        assert len(infrequent) == 50
        assert sum(t.reward_eligible for t in frequent) == 30
        assert sum(t.reward_eligible for t in infrequent) == 10

    def test_labels_follow_pattern(self, frequent_left_pattern, rng):
        frequent, infrequent = build_category_buckets(frequent_left_pattern, rng)
        assert {(t.category, t.correct_response, t.frequency_class) for t in frequent} == {
            (CATEGORY_SHORT, RESPONSE_LEFT, FREQUENT)
        }
        assert {(t.category, t.correct_response, t.frequency_class) for t in infrequent} == {
            (CATEGORY_LONG, RESPONSE_RIGHT, INFREQUENT)
        }

    def test_eligible_positions_are_shuffled(self, frequent_left_pattern):
        layouts = {
            tuple(t.reward_eligible for t in build_category_buckets(frequent_left_pattern, random.Random(s))[0])
            for s in range(5)
        }
        assert len(layouts) > 1


# ────────────────────────────────────────────────────────────────────────────
# Run lengths
# ────────────────────────────────────────────────────────────────────────────


class TestRunLengths:
    @pytest.mark.parametrize("seed", SEEDS)
    def test_sum_is_exactly_fifty(self, seed):
        runs = build_run_lengths(random.Random(seed), 50)
        assert sum(runs) == 50
        assert set(runs) <= {1, 2}

    def test_always_two_never_overshoots(self):
        runs = build_run_lengths(ScriptedRandom([2]), 50)
        assert runs == [2] * 25
        assert sum(runs) == 50

    def test_forced_one_after_forty_nine(self):
        # 1 + 24 * 2 = 49: the next run must be a forced 1, not a draw
        fake = ScriptedRandom([1, 2])
        runs = build_run_lengths(fake, 50)
        assert runs == [1] + [2] * 24 + [1]
        assert fake.randint_calls == 25

    def test_single_trial_total_is_forced(self):
        fake = ScriptedRandom([2])
        assert build_run_lengths(fake, 1) == [1]
        assert fake.randint_calls == 0

    def test_interleave_alternates_two_shuffles(self):
        runs = [1, 2, 2, 1]
        out = interleave_run_lengths(ScriptedRandom([1]), runs)
        assert out == [1, 1, 2, 2, 2, 2, 1, 1]
        assert sum(out) == 2 * sum(runs)


# ────────────────────────────────────────────────────────────────────────────
# Block scheduling
# ────────────────────────────────────────────────────────────────────────────


class TestScheduleBlock:
    def test_coin_decides_which_bucket_goes_first(self, frequent_left_pattern):
        fake = ScriptedRandom([2], coin=0.0)
        frequent, infrequent = build_category_buckets(frequent_left_pattern, fake)
        block = schedule_block(frequent, infrequent, fake)
        assert [t.frequency_class for t in block[:4]] == [FREQUENT, FREQUENT, INFREQUENT, INFREQUENT]

        fake = ScriptedRandom([2], coin=0.9)
        block = schedule_block(frequent, infrequent, fake)
        assert [t.frequency_class for t in block[:4]] == [INFREQUENT, INFREQUENT, FREQUENT, FREQUENT]

    def test_buckets_consumed_in_order(self, frequent_left_pattern, rng):
        frequent, infrequent = build_category_buckets(frequent_left_pattern, rng)
        block = schedule_block(frequent, infrequent, rng)
        assert [t for t in block if t.frequency_class == FREQUENT] == frequent
        assert [t for t in block if t.frequency_class == INFREQUENT] == infrequent

    def test_short_run_lengths_leave_buckets_unexhausted(self, frequent_left_pattern, rng, monkeypatch):
        frequent, infrequent = build_category_buckets(frequent_left_pattern, rng)
        monkeypatch.setattr(trial_generator, "build_run_lengths", lambda rng, total: [2] * 24)
        with pytest.raises(SequenceInvariantError, match="not exhausted"):
            schedule_block(frequent, infrequent, rng)

    def test_long_run_lengths_overrun(self, frequent_left_pattern, rng, monkeypatch):
        frequent, infrequent = build_category_buckets(frequent_left_pattern, rng)
        monkeypatch.setattr(trial_generator, "build_run_lengths", lambda rng, total: [2] * 26)
        with pytest.raises(SequenceInvariantError, match="overruns"):
            schedule_block(frequent, infrequent, rng)

    def test_wrong_bucket_size_rejected(self, frequent_left_pattern, rng):
        frequent, infrequent = build_category_buckets(frequent_left_pattern, rng)
        with pytest.raises(SequenceInvariantError):
            schedule_block(frequent[:-1], infrequent, rng)

    @pytest.mark.parametrize("seed", SEEDS)
    def test_block_invariants(self, frequent_left_pattern, seed):
        block = generate_block(frequent_left_pattern, random.Random(seed), block_index=2)
        assert len(block) == 100
        freq = [t for t in block if t.frequency_class == FREQUENT]
        infreq = [t for t in block if t.frequency_class == INFREQUENT]
        assert len(freq) == len(infreq) == 50
        assert sum(t.reward_eligible for t in freq) == 30
        assert sum(t.reward_eligible for t in infreq) == 10
        assert longest_run(block) <= 2
        assert {t.block_index for t in block} == {2}


# ────────────────────────────────────────────────────────────────────────────
# Full sequence
# ────────────────────────────────────────────────────────────────────────────


class TestGenerateSequence:
    @pytest.mark.parametrize("seed", SEEDS)
    @pytest.mark.parametrize("pattern_id", [1, 2, 3, 4])
    def test_sequence_shape(self, pattern_id, seed):
        seq = generate_sequence(build_task_pattern(pattern_id), random.Random(seed))
        assert len(seq) == 300
        assert [t.trial_index for t in seq] == list(range(1, 301))
        for b in range(3):
            block = seq[b * 100:(b + 1) * 100]
            assert longest_run(block) <= 2
            assert {t.block_index for t in block} == {b + 1}

    def test_same_seed_same_sequence(self, frequent_left_pattern):
        a = generate_sequence(frequent_left_pattern, random.Random(99))
        b = generate_sequence(frequent_left_pattern, random.Random(99))
        c = generate_sequence(frequent_left_pattern, random.Random(100))
        assert a == b
        assert a != c

    def test_frequent_left_totals(self, frequent_left_pattern, rng):
        seq = generate_sequence(frequent_left_pattern, rng)
        frequent = [t for t in seq if t.frequency_class == FREQUENT]
        assert len(frequent) == 150
        assert all(t.correct_response == RESPONSE_LEFT for t in frequent)
        assert sum(t.reward_eligible for t in seq) == 3 * (30 + 10)

    def test_sequence_is_immutable(self, frequent_left_pattern, rng):
        seq = generate_sequence(frequent_left_pattern, rng)
        assert isinstance(seq, tuple)
        with pytest.raises(AttributeError):
            seq[0].trial_index = 5

    def test_smaller_config(self, frequent_left_pattern, rng):
        cfg = SequenceConfig(n_blocks=2, block_size=20, frequent_reward_rate=0.6, infrequent_reward_rate=0.2)
        seq = generate_sequence(frequent_left_pattern, rng, cfg)
        assert len(seq) == 40
        assert sum(t.reward_eligible for t in seq if t.frequency_class == FREQUENT) == 12
        assert sum(t.reward_eligible for t in seq if t.frequency_class == INFREQUENT) == 4

    def test_bad_pattern_fails_before_drawing(self):
        fake = ScriptedRandom([2])
        bad = TaskPattern(left_category=CATEGORY_SHORT, right_category=CATEGORY_SHORT, frequent_category=CATEGORY_SHORT)
        with pytest.raises(ConfigurationError):
            generate_sequence(bad, fake)
        assert fake.randint_calls == 0


# ────────────────────────────────────────────────────────────────────────────
# Demo / practice
# ────────────────────────────────────────────────────────────────────────────


def test_demo_is_short_then_long():
    pattern = build_task_pattern(2)  # F -> long, J -> short
    demo = generate_demo_trials(pattern)
    assert [(t.category, t.correct_response) for t in demo] == [
        (CATEGORY_SHORT, RESPONSE_RIGHT),
        (CATEGORY_LONG, RESPONSE_LEFT),
    ]
    assert not any(t.reward_eligible for t in demo)


def test_practice_has_both_categories_in_some_order(frequent_left_pattern):
    orders = {
        tuple(t.category for t in generate_practice_trials(frequent_left_pattern, random.Random(s)))
        for s in range(20)
    }
    assert orders == {(CATEGORY_SHORT, CATEGORY_LONG), (CATEGORY_LONG, CATEGORY_SHORT)}
