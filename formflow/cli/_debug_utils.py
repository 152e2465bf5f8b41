from __future__ import annotations

import argparse

from formflow.config.flow_config import load_flow_file
from formflow.core.registry.factory import default_registry_factory
from formflow.core.registry.registry import StepRegistry


def _debug_enabled(args: argparse.Namespace) -> bool:
    return bool(getattr(args, "debug", False))


def _dbg(args: argparse.Namespace, msg: str) -> None:
    if _debug_enabled(args):
        print(f"[debug] {msg}")


def add_flow_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--flow", default="tax_return", help="Registered flow id")
    parser.add_argument("--version", default="v1", help="Registered flow version")
    parser.add_argument("--file", default=None, help="Load a flow definition JSON file instead")
    parser.add_argument("--debug", action="store_true", help="Print [debug] lines")


def load_registry(args: argparse.Namespace) -> StepRegistry:
    if args.file:
        _dbg(args, f"loading flow file {args.file}")
        return load_flow_file(args.file)
    _dbg(args, f"building registered flow {args.flow}:{args.version}")
    return default_registry_factory.create(args.flow, args.version)
