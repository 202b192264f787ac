from __future__ import annotations

import random

import pytest

from task.patterns import build_task_pattern


@pytest.fixture
def rng() -> random.Random:
    return random.Random(20240517)


@pytest.fixture
def frequent_left_pattern():
    # pattern 1: F -> short (frequent), J -> long
    return build_task_pattern(1)
