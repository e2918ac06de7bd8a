#!/usr/bin/env python3
"""
Escrow fixture filler

Runs the escrow test suite with ``--output`` so every ``state_test_group`` and
``vector_test_group`` case is written as JSON, then reports what was filled.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

import click

ROOT = Path(__file__).resolve().parent.parent

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def summarize_fixtures(out_dir: Path) -> dict[str, int]:
    """Case count per fixture file under ``out_dir``."""
    counts: dict[str, int] = {}
    for path in sorted(out_dir.rglob("*.json")):
        doc = json.loads(path.read_text())
        cases = doc.get("cases", doc.get("test_vectors", []))
        counts[str(path.relative_to(out_dir))] = len(cases)
    return counts


@click.command()
@click.option(
    "--output",
    default=str(ROOT / "fixtures"),
    help="Directory the JSON fixtures are written to",
)
@click.option(
    "--select",
    "-k",
    "select",
    default=None,
    help="pytest -k expression restricting which cases are filled",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
def main(output: str, select: Optional[str], verbose: bool) -> None:
    """Fill escrow JSON fixtures from the test suite."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", output]
    if select:
        cmd += ["-k", select]
    logger.debug(f"Running: {' '.join(cmd)}")

    code = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if code != 0:
        logger.error(f"pytest exited with {code}; fixtures may be incomplete")
        sys.exit(code)

    counts = summarize_fixtures(Path(output))
    for rel_path, count in counts.items():
        logger.debug(f"{rel_path}: {count} cases")
    logger.info(f"Filled {sum(counts.values())} cases into {len(counts)} files under {output}")


if __name__ == "__main__":
    main()
