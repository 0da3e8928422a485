"""minicc command line — compile and run a C-subset program."""

from __future__ import annotations

import argparse
import logging
import sys

from . import constants
from .api import dump_cfg, dump_ir, dump_layout
from .errors import CompileError, RuntimeFault
from .run import run

logger = logging.getLogger(__name__)

EXIT_COMPILE_ERROR = 1
EXIT_RUNTIME_FAULT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="minicc", description="Compile and run a C-subset program"
    )
    parser.add_argument("file", help="C source file")
    parser.add_argument(
        "--target",
        "-t",
        default=constants.DEFAULT_TARGET,
        help="Target machine: i386, amd64, arm64 or native (default: amd64)",
    )
    parser.add_argument(
        "-O", dest="opt_level", type=int, default=0, help="Optimization level"
    )
    parser.add_argument(
        "--ir-only", action="store_true", help="Only print the IR (no execution)"
    )
    parser.add_argument(
        "--cfg-only", action="store_true", help="Only print the CFG (no execution)"
    )
    parser.add_argument(
        "--layout", action="store_true", help="Only print frame and static layouts"
    )
    parser.add_argument(
        "--max-steps",
        "-n",
        type=int,
        default=constants.DEFAULT_MAX_STEPS,
        help=f"Maximum execution steps (default: {constants.DEFAULT_MAX_STEPS})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=constants.DEFAULT_MAX_CALL_DEPTH,
        help=f"Maximum call depth (default: {constants.DEFAULT_MAX_CALL_DEPTH})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print IR, CFG, step-by-step execution and statistics",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(args.file, encoding="utf-8") as f:
        source = f.read()

    try:
        if args.ir_only:
            print("═══ IR ═══")
            print(dump_ir(source, args.target, args.opt_level))
            return 0
        if args.cfg_only:
            print("═══ CFG ═══")
            print(dump_cfg(source, args.target, args.opt_level))
            return 0
        if args.layout:
            print(dump_layout(source, args.target))
            return 0
        result = run(
            source,
            target=args.target,
            opt_level=args.opt_level,
            max_steps=args.max_steps,
            max_call_depth=args.max_depth,
            verbose=args.verbose,
        )
    except CompileError as e:
        print(f"{args.file}: {e}", file=sys.stderr)
        return EXIT_COMPILE_ERROR
    except RuntimeFault as e:
        print(f"{args.file}: runtime fault: {type(e).__name__}: {e}", file=sys.stderr)
        return EXIT_RUNTIME_FAULT

    sys.stdout.write(result.output)
    sys.stdout.flush()
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())
