import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from data.models import FREQUENT, INFREQUENT, TrialEvent


def compute_accuracy(events: Sequence[TrialEvent], frequency_class: Optional[str] = None) -> float:
    if frequency_class is not None:
        events = [e for e in events if e.frequency_class == frequency_class]
    if not events:
        return 0.0
    return sum(1 for e in events if e.is_correct) / len(events)


def _cells(events: Sequence[TrialEvent]) -> Tuple[float, float, float, float]:
    fc = sum(1 for e in events if e.frequency_class == FREQUENT and e.is_correct)
    fi = sum(1 for e in events if e.frequency_class == FREQUENT and not e.is_correct)
    ic = sum(1 for e in events if e.frequency_class == INFREQUENT and e.is_correct)
    ii = sum(1 for e in events if e.frequency_class == INFREQUENT and not e.is_correct)
    cells = (float(fc), float(fi), float(ic), float(ii))
    # поправка на нулевые клетки: +0.5 ко всем
    if 0 in (fc, fi, ic, ii):
        cells = tuple(c + 0.5 for c in cells)
    return cells


def compute_response_bias(events: Sequence[TrialEvent]) -> float:
    """log b: > 0 means a bias toward the frequent (richly rewarded) response."""
    if not events:
        return 0.0
    fc, fi, ic, ii = _cells(events)
    return 0.5 * math.log10((fc * ii) / (fi * ic))


def compute_discriminability(events: Sequence[TrialEvent]) -> float:
    if not events:
        return 0.0
    fc, fi, ic, ii = _cells(events)
    return 0.5 * math.log10((fc * ic) / (fi * ii))


def _summary(events: Sequence[TrialEvent]) -> dict:
    return {
        "trials": len(events),
        "accuracy_total": compute_accuracy(events),
        "accuracy_frequent": compute_accuracy(events, FREQUENT),
        "accuracy_infrequent": compute_accuracy(events, INFREQUENT),
        "response_bias": compute_response_bias(events),
        "discriminability": compute_discriminability(events),
        "rewards": sum(1 for e in events if e.reward_granted),
        "no_response": sum(1 for e in events if e.response is None),
    }


def summarize_events(events: Sequence[TrialEvent]) -> dict:
    summary = _summary(events)
    summary["points_total"] = events[-1].points_total if events else 0

    blocks: Dict[int, List[TrialEvent]] = defaultdict(list)
    for e in events:
        blocks[e.block_index].append(e)
    summary["blocks"] = {b: _summary(evts) for b, evts in sorted(blocks.items())}
    return summary


def print_report(summary: dict) -> None:
    if not summary.get("trials"):
        print("No trials found.")
        return

    print(
        "Session: "
        f"acc={summary['accuracy_total']:.3f} "
        f"acc_rich={summary['accuracy_frequent']:.3f} "
        f"acc_lean={summary['accuracy_infrequent']:.3f} "
        f"log_b={summary['response_bias']:.3f} "
        f"log_d={summary['discriminability']:.3f} "
        f"rewards={summary['rewards']} "
        f"points={summary['points_total']}"
    )
    print("\nBy block:")
    for b, s in summary["blocks"].items():
        print(
            f"- block {b} (n={s['trials']}): "
            f"acc={s['accuracy_total']:.3f} "
            f"log_b={s['response_bias']:.3f} "
            f"log_d={s['discriminability']:.3f} "
            f"rewards={s['rewards']}"
        )
