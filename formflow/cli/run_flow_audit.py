"""Totality audit for a flow: every step must resolve for valid answers.

Example:
  - formflow-audit --flow benefit_application --samples 500 --seed 7 --json
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone

from formflow.cli._debug_utils import _dbg, add_flow_args, load_registry
from formflow.verification.totality import check_totality


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run step-transition totality audit")
    add_flow_args(parser)
    parser.add_argument("--samples", type=int, default=200, help="Sampled answer states per step")
    parser.add_argument("--seed", type=int, default=1, help="Sampler seed")
    parser.add_argument("--fail-fast", action="store_true", help="Stop after the first failing step")
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    timestamp = datetime.now(timezone.utc).isoformat(timespec="seconds")
    flow_label = args.file or f"{args.flow}:{args.version}"

    try:
        registry = load_registry(args)
        _dbg(args, f"steps={len(registry.step_ids())} intents={list(registry.intent_ids())}")
        report = check_totality(
            registry, samples_per_step=args.samples, seed=args.seed, fail_fast=args.fail_fast
        )
    except Exception as exc:
        if args.json:
            print(
                json.dumps(
                    {
                        "flow": flow_label,
                        "timestamp": timestamp,
                        "overall": "ERROR",
                        "exit_code": 1,
                        "error": str(exc),
                    },
                    ensure_ascii=False,
                )
            )
        else:
            print(f"FLOW: {flow_label}")
            print(f"Timestamp: {timestamp}")
            print(f"ERROR: {exc}")
            print("exit_code=1")
        return 1

    overall = "PASS" if report.ok else "FAIL"
    exit_code = 0 if report.ok else 2

    if args.json:
        payload = {"flow": flow_label, "timestamp": timestamp, "overall": overall, "exit_code": exit_code}
        payload.update(report.to_dict())
        print(json.dumps(payload, ensure_ascii=False))
        return exit_code

    print(f"FLOW: {flow_label}")
    print(f"Timestamp: {timestamp}")
    print(f"steps_checked: {report.steps_checked}")
    print(f"samples_per_step: {report.samples_per_step} (seed={report.seed})")
    print("FAILURES:" if report.failures else "FAILURES: none")
    for failure in report.failures:
        print(f"  [{failure.step_id}] {failure.error} x{failure.count}: {failure.message}")
    for intent_id, steps in report.unreachable.items():
        print(f"WARNING unreachable in {intent_id}: {', '.join(steps)}")
    print(f"OVERALL: {overall}")
    print(f"exit_code={exit_code}")
    return exit_code


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
