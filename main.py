import argparse
import json
import logging
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import List, Optional

from analytics.metrics import print_report, summarize_events
from analytics.validation import print_validation, validate_sequence
from config.settings import TaskConfig, load_task_config
from data.models import RESPONSE_LEFT, RESPONSE_RIGHT, TrialSpec
from task.patterns import ConfigurationError
from task.randomization import make_rng
from task.session import build_session, is_rest_break, replay_responses


def _print_table(trials, cfg: TaskConfig) -> None:
    keys = cfg.response_keys
    for t in trials:
        print(
            f"{t.trial_index:>3} b{t.block_index} "
            f"{t.category:<5} {keys[t.correct_response]} "
            f"{t.frequency_class:<10} "
            f"{'R' if t.reward_eligible else '-'}"
        )
        if is_rest_break(t, cfg.sequence):
            print("--- break ---")


def _simulate_responses(trials: List[TrialSpec], accuracy: float, seed: Optional[int]) -> List[str]:
    rng = make_rng(None if seed is None else seed + 1)
    wrong = {RESPONSE_LEFT: RESPONSE_RIGHT, RESPONSE_RIGHT: RESPONSE_LEFT}
    return [
        t.correct_response if rng.random() < accuracy else wrong[t.correct_response]
        for t in trials
    ]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Probabilistic reward task: trial sequence generator")
    parser.add_argument("--config", default=None, help="JSON settings file")
    parser.add_argument("--pattern", type=int, default=None, help="0 = random, 1..4 = fixed pattern")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--format", choices=("json", "table", "none"), default="table")
    parser.add_argument("--validate", action="store_true", help="print sequence checks")
    parser.add_argument(
        "--simulate",
        type=float,
        default=None,
        metavar="ACCURACY",
        help="score simulated responses with the given accuracy and print metrics",
    )
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    try:
        cfg = load_task_config(Path(args.config) if args.config else None)
        if args.pattern is not None:
            cfg = replace(cfg, pattern=args.pattern)
        session = build_session(cfg, make_rng(args.seed))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    pattern = session.pattern
    print(
        f"Pattern {pattern.pattern_id}: "
        f"{cfg.response_keys[RESPONSE_LEFT].upper()} -> {pattern.left_category}, "
        f"{cfg.response_keys[RESPONSE_RIGHT].upper()} -> {pattern.right_category}, "
        f"frequent = {pattern.frequent_category}",
        file=sys.stderr,
    )

    if args.format == "json":
        for t in session.main:
            print(json.dumps(asdict(t), ensure_ascii=False))
    elif args.format == "table":
        _print_table(session.main, cfg)

    if args.validate:
        report = validate_sequence(session.main, cfg.sequence)
        print_validation(report)

    if args.simulate is not None:
        responses = _simulate_responses(list(session.main), args.simulate, args.seed)
        events = replay_responses(session.main, responses, cfg.reward.reward_amount)
        print_report(summarize_events(events))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
