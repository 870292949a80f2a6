from __future__ import annotations

import argparse
import subprocess
import sys
from typing import Sequence

LINT_TARGETS: list[str] = [
    "app",
    "tests",
    "scripts/quality_gate.py",
]

TYPECHECK_TARGETS: list[str] = [
    "app/core/services/connectivity",
    "app/core/services/gated_loader.py",
    "app/core/services/resource_service.py",
    "app/integrations/agrosmart",
]

GATES = ("lint", "typecheck", "tests")


def _run(cmd: Sequence[str]) -> None:
    print(f"$ {' '.join(cmd)}")
    result = subprocess.run(cmd, check=False)
    if result.returncode != 0:
        raise SystemExit(result.returncode)


def run_lint(python_bin: str) -> None:
    _run([python_bin, "-m", "ruff", "check", *LINT_TARGETS])


def run_typecheck(python_bin: str) -> None:
    _run([python_bin, "-m", "mypy", *TYPECHECK_TARGETS])


def run_tests(python_bin: str, extra: Sequence[str]) -> None:
    _run([python_bin, "-m", "pytest", "-q", *extra])


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Run the AgroSmart shell quality gates."
    )
    parser.add_argument(
        "gate",
        nargs="?",
        default="all",
        choices=(*GATES, "all"),
        help="Gate to run.",
    )
    parser.add_argument(
        "--python-bin",
        default=sys.executable,
        help="Python executable to run commands with.",
    )
    args, pytest_args = parser.parse_known_args()

    selected = GATES if args.gate == "all" else (args.gate,)
    if "lint" in selected:
        run_lint(args.python_bin)
    if "typecheck" in selected:
        run_typecheck(args.python_bin)
    if "tests" in selected:
        run_tests(args.python_bin, pytest_args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
