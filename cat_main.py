import argparse
import logging
import os
import sys

from cat_interpreter import Interpreter, RUNTIME_ERRORS
from cat_types import format_value

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PROMPT = "cat> "

# Each user-level call costs roughly fifteen Python frames.
RECURSION_LIMIT = 10000


def setup_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )


def build_arg_parser():
    parser = argparse.ArgumentParser(
        description="A concatenative language interpreter.",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("filepath", nargs="?", help="Path to the source file to execute.\nStarts a REPL when omitted.")
    parser.add_argument("-e", "--eval", dest="code", help="Evaluate CODE instead of a file.")
    parser.add_argument("-d", "--debug", action="store_true", help="Print the final stack state after execution.")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("CATLANG_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $CATLANG_LOG_LEVEL or WARNING).",
    )
    parser.add_argument(
        "--recursion-limit",
        type=int,
        default=RECURSION_LIMIT,
        help=f"Python recursion limit for nested calls (default: {RECURSION_LIMIT}).",
    )
    return parser


def report_error(interpreter, error):
    logger.debug("Evaluation aborted", exc_info=error)
    print(f"Runtime Error: {error}", file=sys.stderr)
    print(f"Execution halted. Current stack: {format_stack(interpreter)}", file=sys.stderr)


def format_stack(interpreter):
    return "[ " + " ".join(format_value(v) for v in interpreter.stack) + " ]"


def run_source(interpreter, code) -> int:
    try:
        interpreter.run(code)
    except RUNTIME_ERRORS as e:
        report_error(interpreter, e)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 130
    return 0


def repl(interpreter):
    """Read-eval-print loop. Errors are reported and the session goes on."""
    while True:
        try:
            line = input(PROMPT)
        except EOFError:
            print()
            return 0
        except KeyboardInterrupt:
            print()
            continue
        if run_source(interpreter, line) == 0 and len(interpreter.stack):
            print(format_stack(interpreter))


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)
    if args.recursion_limit > sys.getrecursionlimit():
        sys.setrecursionlimit(args.recursion_limit)

    interpreter = Interpreter()

    if args.code is not None:
        status = run_source(interpreter, args.code)
    elif args.filepath:
        try:
            with open(args.filepath, 'r', encoding='utf-8') as f:
                code = f.read()
        except FileNotFoundError:
            print(f"Error: File not found at '{args.filepath}'", file=sys.stderr)
            return 1
        except OSError as e:
            print(f"Error: Could not read file '{args.filepath}': {e}", file=sys.stderr)
            return 1
        status = run_source(interpreter, code)
    else:
        status = repl(interpreter)

    if args.debug:
        print("\n--- Execution Finished ---")
        print(f"Final stack state: {format_stack(interpreter)}")
    return status


if __name__ == "__main__":
    sys.exit(main())
