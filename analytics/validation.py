import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from config.settings import SequenceConfig
from data.models import FREQUENT, INFREQUENT, TrialSpec

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    checks: Dict[str, bool] = field(default_factory=dict)
    details: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(self.checks.values())

    def failures(self) -> List[str]:
        return [name for name, passed in self.checks.items() if not passed]

    def add(self, name: str, actual, expected) -> None:
        passed = actual == expected
        self.checks[name] = passed
        self.details[name] = f"{actual} (expected {expected})"
        if not passed:
            logger.warning("sequence check failed: %s = %s, expected %s", name, actual, expected)


def longest_run(trials: Sequence[TrialSpec]) -> int:
    best = 0
    current = 0
    prev = None
    for t in trials:
        current = current + 1 if t.category == prev else 1
        prev = t.category
        best = max(best, current)
    return best


def _count(trials: Sequence[TrialSpec], frequency_class: str, eligible_only: bool = False) -> int:
    return sum(
        1
        for t in trials
        if t.frequency_class == frequency_class and (t.reward_eligible or not eligible_only)
    )


def validate_sequence(
    sequence: Sequence[TrialSpec],
    cfg: SequenceConfig = SequenceConfig(),
) -> ValidationReport:
    """
    Пересчитывает количества в готовой последовательности.

    Ничего не меняет и не бросает исключений: несовпадения
    попадают в отчёт и в лог (WARNING).
    """
    report = ValidationReport()
    n = cfg.n_blocks

    report.add("length", len(sequence), cfg.total_trials)
    report.add("frequent_count", _count(sequence, FREQUENT), cfg.per_category * n)
    report.add("infrequent_count", _count(sequence, INFREQUENT), cfg.per_category * n)
    report.add("frequent_rewarded", _count(sequence, FREQUENT, True), cfg.frequent_eligible * n)
    report.add("infrequent_rewarded", _count(sequence, INFREQUENT, True), cfg.infrequent_eligible * n)
    report.add(
        "trial_index",
        [t.trial_index for t in sequence] == list(range(1, len(sequence) + 1)),
        True,
    )

    blocks: Dict[int, List[TrialSpec]] = defaultdict(list)
    for i, t in enumerate(sequence):
        blocks[i // cfg.block_size + 1].append(t)
    for b, trials in sorted(blocks.items()):
        report.add(f"block_{b}_frequent", _count(trials, FREQUENT), cfg.per_category)
        report.add(f"block_{b}_infrequent", _count(trials, INFREQUENT), cfg.per_category)
        report.add(f"block_{b}_frequent_rewarded", _count(trials, FREQUENT, True), cfg.frequent_eligible)
        report.add(
            f"block_{b}_infrequent_rewarded", _count(trials, INFREQUENT, True), cfg.infrequent_eligible
        )
        report.add(f"block_{b}_max_run", longest_run(trials) <= cfg.max_run_length, True)

    if report.ok:
        logger.debug("sequence of %d trials passed %d checks", len(sequence), len(report.checks))
    return report


def print_validation(report: ValidationReport) -> None:
    print("Sequence checks:")
    for name, passed in report.checks.items():
        print(f"- {'ok  ' if passed else 'FAIL'} {name}: {report.details[name]}")
    print(f"\n{'All checks passed' if report.ok else f'{len(report.failures())} check(s) failed'}")
