import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed)


def shuffled(rng: random.Random, items: Sequence[T]) -> List[T]:
    """Uniform shuffle into a new list; the input is left as is."""
    out = list(items)
    rng.shuffle(out)
    return out


def random_int(rng: random.Random, low: int, high: int) -> int:
    # обе границы включительно
    return rng.randint(low, high)


def coin_flip(rng: random.Random) -> bool:
    return rng.random() < 0.5

