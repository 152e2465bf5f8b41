"""Resolve the next step for a completed step and a set of answers.

Inputs:
  - Flow selection (--flow/--version or --file), --step and --answers JSON.
Outputs:
  - Next step id or terminal outcome, as text or JSON.
Example:
  - formflow-resolve --flow tax_return --step tax-type --answers '{"taxType": "income"}'
"""

from __future__ import annotations

import argparse
import json
import sys

from formflow.core.answers.models import AnswerState
from formflow.core.domain.enums import TerminalOutcome
from formflow.core.domain.errors import FlowConfigError, FlowResolutionError
from formflow.core.engine.resolver import FlowResolver, set_resolver_debug
from formflow.cli._debug_utils import _dbg, _debug_enabled, add_flow_args, load_registry


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve the next step of a form flow")
    add_flow_args(parser)
    parser.add_argument("--step", required=True, help="Completed step id")
    parser.add_argument("--answers", default="{}", help="Answers as a JSON object of plain values")
    parser.add_argument("--intent", default=None, help="Map end-of-task onto the next task of this intent")
    parser.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    if _debug_enabled(args):
        set_resolver_debug(lambda line: _dbg(args, line))
    try:
        try:
            registry = load_registry(args)
            raw = json.loads(args.answers)
            if not isinstance(raw, dict):
                raise ValueError("--answers must be a JSON object")
            answers = AnswerState.from_raw(registry.questions, raw)
        except (FlowConfigError, ValueError) as exc:
            return _report_error(args, "input", exc, 1)

        resolver = FlowResolver(registry)
        try:
            if args.intent:
                resolution = resolver.advance(args.intent, args.step, answers)
            else:
                resolution = resolver.resolve(args.step, answers)
        except FlowResolutionError as exc:
            return _report_error(args, type(exc).__name__, exc, 2)

        target = resolution.target
        is_outcome = isinstance(target, TerminalOutcome)
        target_text = target.value if isinstance(target, TerminalOutcome) else target
        if args.json:
            print(
                json.dumps(
                    {
                        "step": args.step,
                        "target": target_text,
                        "target_kind": "outcome" if is_outcome else "step",
                        "rule": resolution.rule_name,
                        "from_task": resolution.from_task,
                        "to_task": resolution.to_task,
                        "cross_task": resolution.cross_task,
                    },
                    ensure_ascii=False,
                )
            )
        else:
            kind = "OUTCOME" if is_outcome else "NEXT"
            print(f"{kind}: {target_text} (rule={resolution.rule_name})")
            if resolution.cross_task:
                print(f"task: {resolution.from_task} -> {resolution.to_task}")
        return 0
    finally:
        set_resolver_debug(None)


def _report_error(args: argparse.Namespace, kind: str, exc: Exception, code: int) -> int:
    if args.json:
        print(json.dumps({"error": kind, "message": str(exc), "exit_code": code}, ensure_ascii=False))
    else:
        print(f"ERROR ({kind}): {exc}")
        print(f"exit_code={code}")
    return code


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
