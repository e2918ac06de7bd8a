#!/usr/bin/env python3
"""
Secret set generator

Generates the N+1 secrets of a partially fillable order together with the
hash lock, Merkle root and per-secret proofs, or re-verifies a stored set.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))

from htlc_spec.config import MAX_PARTS, MIN_PARTS  # noqa: E402
from htlc_spec.crypto.hashing import keccak256  # noqa: E402
from htlc_spec.crypto.merkle import verify_merkle_proof  # noqa: E402
from htlc_spec.secret_set import SecretSet  # noqa: E402
from tools.yaml_dump import dump_yaml, write_yaml  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def secret_set_to_dict(secret_set: SecretSet) -> Dict[str, Any]:
    return {
        "num_parts": secret_set.num_parts,
        "merkle_root": secret_set.merkle_root.hex(),
        "hash_lock": secret_set.hash_lock().hex(),
        "secrets": [
            {
                "index": i,
                "secret": secret_set.secret(i).hex(),
                "leaf": keccak256(secret_set.secret(i)).hex(),
                "proof": [p.hex() for p in secret_set.proof(i)],
            }
            for i in range(1, secret_set.num_parts + 2)
        ],
    }


def verify_secret_file(path: Path) -> int:
    """Return the number of entries whose proof does not verify."""
    doc = yaml.safe_load(path.read_text())
    root = bytes.fromhex(doc["merkle_root"])
    failures = 0
    for entry in doc.get("secrets", []):
        leaf = keccak256(bytes.fromhex(entry["secret"]))
        proof = [bytes.fromhex(p) for p in entry.get("proof", [])]
        if not verify_merkle_proof(root, leaf, proof, int(entry["index"]) - 1):
            logger.error(f"secret {entry['index']} does not verify against {doc['merkle_root']}")
            failures += 1
    return failures


@click.command()
@click.option(
    "--parts",
    default=4,
    type=click.IntRange(MIN_PARTS, MAX_PARTS),
    help="Number of parts N (N+1 secrets are generated)",
)
@click.option(
    "--output",
    default=None,
    help="YAML file to write; prints to stdout when omitted",
)
@click.option(
    "--verify",
    "verify_path",
    default=None,
    help="Verify an existing secret set YAML instead of generating one",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
def main(parts: int, output: Optional[str], verify_path: Optional[str], verbose: bool) -> None:
    """Generate or verify an N+1 secret set."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if verify_path:
        failures = verify_secret_file(Path(verify_path))
        if failures:
            sys.exit(1)
        logger.info(f"All proofs in {verify_path} verify")
        return

    secret_set = SecretSet.generate(parts)
    data = secret_set_to_dict(secret_set)
    logger.info(f"Generated {parts + 1} secrets, root {data['merkle_root']}")

    if output:
        write_yaml(Path(output), data)
        logger.info(f"Wrote {output}")
    else:
        click.echo(dump_yaml(data))


if __name__ == "__main__":
    main()
