#!/usr/bin/env python3
"""
BIP32 Key Derivation Tool
=========================
Derives a batch of child keys under one or more derivation paths from a seed.
Indices that hit an invalid child key are skipped (BIP32: try the next index).

Usage:
    Set environment variables and run:
      SEED_HEX=000102030405060708090a0b0c0d0e0f DERIVATION_PATHS="m/0'/1" derive-keys
"""

import json
import multiprocessing as mp
import os
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from typing import Dict, List, Tuple

from hd_curves import CURVES, validate_curve
from hd_errors import HDKeyError
from hd_key import HDKey
from hd_path import parse_path

# ============================================================
# Configuration (all overridable via environment variables)
# ============================================================
SEED_HEX = os.getenv("SEED_HEX", "")
SEED_MODE = os.getenv("SEED_MODE", "master")  # "master" or "raw"
CURVE = os.getenv("CURVE", "secp256k1")
DERIVATION_PATHS = os.getenv("DERIVATION_PATHS", "m/44'/0'/0'/0")  # comma-separated
CHILDREN_PER_PATH = int(os.getenv("CHILDREN_PER_PATH", "5"))
NUM_WORKERS = int(os.getenv("NUM_WORKERS", "") or mp.cpu_count())
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "16"))
INCLUDE_PRIVATE = os.getenv("INCLUDE_PRIVATE", "false").lower() == "true"
OUTPUT_DIR = os.getenv("OUTPUT_DIR", "")

SEED_MODES = ("master", "raw")


class ConfigError(ValueError):
    pass


# ============================================================
# Derivation
# ============================================================
def load_root(seed: bytes, seed_mode: str, curve: str) -> HDKey:
    """Build the root node: BIP32 master key generation, or a raw 64-byte split."""
    if seed_mode == "master":
        return HDKey.from_master_seed(seed, curve)
    if seed_mode == "raw":
        return HDKey.from_seed(seed, curve)
    raise ConfigError(f"Unknown SEED_MODE '{seed_mode}', expected one of: {', '.join(SEED_MODES)}")


def describe_key(key: HDKey, include_private: bool = False) -> Dict:
    info = {
        "path": key.path,
        "depth": key.depth,
        "child_number": key.child_number,
        "chain_code": key.chaincode.hex(),
        "public_key": key.pubkey.hex(),
    }
    if include_private:
        info["private_key"] = key.privkey.hex()
    return info


def derive_children(
    root: HDKey,
    path: str,
    count: int,
    max_retries: int,
    include_private: bool = False,
) -> Dict:
    """Derive `count` non-hardened children under `path`. Pure CPU."""
    account = root.derive_path(path)
    children = []
    index = 0
    for _ in range(count):
        child = account.derive_next_valid(index, max_attempts=max_retries)
        children.append(describe_key(child, include_private))
        index = child.child_number + 1
    return {
        "path": path,
        "account": describe_key(account, include_private),
        "children": children,
    }


def _worker_derive_path(args: Tuple[bytes, str, str, str, int, int, bool]) -> Dict:
    """Worker: derive one path from the seed."""
    seed, seed_mode, curve, path, count, max_retries, include_private = args
    root = load_root(seed, seed_mode, curve)
    try:
        return derive_children(root, path, count, max_retries, include_private)
    except HDKeyError as e:
        return {"path": path, "error": f"{type(e).__name__}: {e}", "retryable": e.retryable}


def derive_all(
    seed: bytes,
    seed_mode: str,
    curve: str,
    paths: List[str],
    count: int,
    num_workers: int,
    max_retries: int,
    include_private: bool = False,
) -> List[Dict]:
    """Derive every path, in a process pool when num_workers > 1. Results keep path order."""
    jobs = [(seed, seed_mode, curve, p, count, max_retries, include_private) for p in paths]
    if num_workers <= 1 or len(jobs) <= 1:
        return [_worker_derive_path(job) for job in jobs]

    print(f"  Dispatching {len(jobs)} paths across {num_workers} workers...", flush=True)
    with ProcessPoolExecutor(max_workers=min(num_workers, len(jobs))) as executor:
        return list(executor.map(_worker_derive_path, jobs))


# ============================================================
# Configuration parsing
# ============================================================
def parse_seed(seed_hex: str) -> bytes:
    seed_hex = seed_hex.strip().lower()
    if seed_hex.startswith("0x"):
        seed_hex = seed_hex[2:]
    if not seed_hex:
        raise ConfigError("SEED_HEX environment variable not set.")
    try:
        return bytes.fromhex(seed_hex)
    except ValueError as e:
        raise ConfigError(f"SEED_HEX is not valid hex: {e}") from e


def parse_paths(paths_str: str) -> List[str]:
    paths = [p.strip() for p in paths_str.split(",") if p.strip()]
    if not paths:
        raise ConfigError("DERIVATION_PATHS is empty.")
    for p in paths:
        parse_path(p)
    return paths


# ============================================================
# Output
# ============================================================
def save_results(output_dir: str, data: dict, filename: str = "derived_keys.json") -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, filename)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def print_banner(seed_mode, curve, paths, count, num_workers, max_retries, include_private, output_dir):
    print("=" * 65)
    print("  BIP32 KEY DERIVATION TOOL")
    print("=" * 65)
    print(f"  Seed mode:          {seed_mode}")
    print(f"  Curve:              {curve}")
    print(f"  Paths:              {', '.join(paths)}")
    print(f"  Children/path:      {count}")
    print(f"  Workers (CPU):      {num_workers}")
    print(f"  Retries/child:      {max_retries}")
    print(f"  Private keys:       {'INCLUDED' if include_private else 'omitted'}")
    print(f"  Output dir:         {output_dir if output_dir else '(stdout only)'}")
    print("=" * 65)


def print_result(result: Dict):
    print(f"\n{'─' * 65}")
    print(f"  {result['path']}")
    print(f"{'─' * 65}")
    if "error" in result:
        hint = " (retryable: try another index)" if result["retryable"] else ""
        print(f"  ⚠ {result['error']}{hint}")
        return
    account = result["account"]
    print(f"  Account pubkey: {account['public_key']}")
    for child in result["children"]:
        print(f"    {child['path']:<40} {child['public_key']}")


# ============================================================
# Main
# ============================================================
def main():
    try:
        seed = parse_seed(SEED_HEX)
        curve = validate_curve(CURVE)
        paths = parse_paths(DERIVATION_PATHS)
        if SEED_MODE not in SEED_MODES:
            raise ConfigError(f"Unknown SEED_MODE '{SEED_MODE}', expected one of: {', '.join(SEED_MODES)}")
        load_root(seed, SEED_MODE, curve)
    except (ConfigError, HDKeyError) as e:
        print(f"\nERROR: {e}")
        if "curve" in str(e).lower():
            print(f"  Available curves: {', '.join(CURVES.keys())}")
        sys.exit(1)

    print_banner(
        SEED_MODE, curve, paths, CHILDREN_PER_PATH,
        NUM_WORKERS, MAX_RETRIES, INCLUDE_PRIVATE, OUTPUT_DIR,
    )

    t0 = time.time()
    results = derive_all(
        seed, SEED_MODE, curve, paths, CHILDREN_PER_PATH,
        NUM_WORKERS, MAX_RETRIES, INCLUDE_PRIVATE,
    )
    elapsed = time.time() - t0

    for result in results:
        print_result(result)

    failed = [r for r in results if "error" in r]
    print(f"\n{'=' * 65}")
    print(f"  DERIVATION COMPLETE")
    print(f"{'=' * 65}")
    print(f"  Total time:        {elapsed:.2f}s")
    print(f"  Paths derived:     {len(results) - len(failed)}/{len(results)}")

    if OUTPUT_DIR:
        out = save_results(OUTPUT_DIR, {
            "curve": curve,
            "seed_mode": SEED_MODE,
            "results": results,
        })
        print(f"  Results saved to:  {out}")
    print(f"{'=' * 65}")

    if failed:
        sys.exit(2)


if __name__ == "__main__":
    main()
