"""Utility for manually running a source file through the judge.

Use this helper to check that a toolchain or container image behaves as
expected before a contest. The file goes through the same
:class:`dispatcher.dispatcher.Dispatcher` the grading engine uses, so the
printed outcome (status, output, error, execution time) is exactly what a
test case would be classified from.

Example::

    python tools/manual_runner.py solution.cpp \
        --lang cpp \
        --stdin tests/0000.in \
        --expected tests/0000.out \
        --time-limit 1000

Pass ``--invoker docker`` to force the container backend regardless of
.config/submission.json.
"""

from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from dispatcher.config import get_submission_config
from dispatcher.constant import Language
from dispatcher.dispatcher import Dispatcher
from dispatcher.grader import classify
from runner.factory import create_invoker


def run_source(
    *,
    source: Path,
    lang: str,
    stdin_path: Path | None,
    expected_path: Path | None,
    time_limit: int,
    config: Dict[str, Any],
) -> Dict[str, Any]:
    """Execute one source file with the configured invoker."""

    if not source.exists():
        raise FileNotFoundError(f"source file not found: {source}")
    stdin = stdin_path.read_text() if stdin_path else ""
    dispatcher = Dispatcher(
        create_invoker(config),
        simulated_stdin=config["simulated_stdin"],
    )
    outcome = dispatcher.execute(source.read_text(), lang, stdin, time_limit)
    result = asdict(outcome)
    result["status"] = outcome.status.value
    if expected_path is not None:
        result["verdict"] = classify(outcome,
                                     expected_path.read_text()).value
    return result


def parse_args(argv=None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "source",
        type=Path,
        help="source file to run",
    )
    parser.add_argument(
        "--lang",
        default=Language.PYTHON.value,
        choices=[lang.value for lang in Language],
        help="language of the source file",
    )
    parser.add_argument(
        "--stdin",
        type=Path,
        help="path to testcase input file (omit for empty stdin)",
    )
    parser.add_argument(
        "--expected",
        type=Path,
        help="path to expected output, prints the verdict when given",
    )
    parser.add_argument(
        "--time-limit",
        type=int,
        default=2000,
        help="time limit in milliseconds",
    )
    parser.add_argument(
        "--invoker",
        choices=("local", "docker"),
        help="override the invoker from the configuration file",
    )
    parser.add_argument(
        "--config",
        default=Path(".config/submission.json"),
        type=Path,
        help="path to submission runner configuration file",
    )
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """CLI entry point."""

    args = parse_args(argv)
    config = get_submission_config(args.config)
    if args.invoker:
        config["invoker"] = args.invoker

    result = run_source(
        source=args.source,
        lang=args.lang,
        stdin_path=args.stdin,
        expected_path=args.expected,
        time_limit=args.time_limit,
        config=config,
    )
    print("=== run ===")
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
