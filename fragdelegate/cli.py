"""
Name: Command-Line Interface

Responsibilities:
  - Read a prompt from a file or stdin
  - Print fragments, a connectivity report, or a full delegation result
    as JSON on stdout

Collaborators:
  - api.py: fragment_text, execute_fragmented_task, check_backend_connectivity
  - crosscutting.metrics: registry exported by --metrics-file

Notes:
  - Exit code 0 when the fragmented path succeeded, 1 on a fallback path,
    2 on usage errors (argparse)
  - Logs go to stderr, so stdout stays valid JSON
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from prometheus_client import write_to_textfile

from .api import check_backend_connectivity, execute_fragmented_task, fragment_text
from .application.merge import MergeStrategy
from .crosscutting.metrics import get_registry
from .infrastructure.text.fragmenter import MODES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fragdelegate",
        description="Split a large prompt into typed fragments and run them across local LLMs",
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        default=None,
        help="Prompt file (default: stdin)",
    )
    parser.add_argument("--mode", choices=MODES, default=None, help="Fragmentation mode")
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=None,
        help="Estimated token budget per fragment",
    )
    parser.add_argument(
        "--merge-strategy",
        choices=[s.value for s in MergeStrategy],
        default=None,
        help="How fragment results are combined",
    )
    parser.add_argument(
        "--force-model",
        default=None,
        help="Run every fragment on this model",
    )
    parser.add_argument(
        "--concurrency", type=int, default=None, help="Fragments run simultaneously"
    )
    parser.add_argument(
        "--max-retries", type=int, default=None, help="Backend attempts per fragment"
    )
    parser.add_argument(
        "--timeout-ms", type=int, default=None, help="Timeout per backend call"
    )
    parser.add_argument(
        "--fragments-only",
        action="store_true",
        help="Only print the fragments, without calling any model",
    )
    parser.add_argument(
        "--check-connectivity",
        action="store_true",
        help="Probe every catalog model and exit",
    )
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write Prometheus metrics of the run to this file (textfile format)",
    )
    return parser


def _read_prompt(path: Optional[Path]) -> str:
    if path is None:
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def _task_options(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "mode": args.mode,
        "max_tokens_per_fragment": args.max_tokens,
        "merge_strategy": args.merge_strategy,
        "force_model": args.force_model,
        "concurrency_limit": args.concurrency,
        "max_retries": args.max_retries,
        "timeout_ms": args.timeout_ms,
    }


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _write_metrics(path: Optional[Path]) -> None:
    if path is not None:
        write_to_textfile(str(path), get_registry())


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.check_connectivity:
        _print_json(asyncio.run(check_backend_connectivity()))
        return 0

    try:
        text = _read_prompt(args.file)
    except OSError as e:
        parser.error(f"cannot read {args.file}: {e}")

    if args.fragments_only:
        config = {
            "mode": args.mode,
            "max_tokens_per_fragment": args.max_tokens,
        }
        try:
            fragments = fragment_text(text, config)
        except ValueError as e:
            parser.error(str(e))
        _print_json([f.to_dict() for f in fragments])
        return 0

    result = asyncio.run(execute_fragmented_task(text, _task_options(args)))
    _print_json(result.to_dict())
    _write_metrics(args.metrics_file)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
