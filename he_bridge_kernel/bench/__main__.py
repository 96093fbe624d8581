#!/usr/bin/env python3
"""
Driver benchmark sweep.

Usage:
    python -m he_bridge_kernel.bench
    python -m he_bridge_kernel.bench --driver sort --bits 8 12 --sizes 4 8
    python -m he_bridge_kernel.bench --strategy encoding_switching --output results.json
"""

import argparse
import json
import logging

from ..config import KernelConfig
from ..context import BackendType
from ..params.resolver import BridgeStrategy, supported_bit_widths
from .harness import CASES, format_table, run_sweep, summarize


def main():
    defaults = KernelConfig.from_env()

    parser = argparse.ArgumentParser(
        description="Benchmark encrypted drivers built on the comparison bridge"
    )
    parser.add_argument("--driver", choices=list(CASES), nargs="+", default=list(CASES))
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in BridgeStrategy],
        nargs="+",
        default=[defaults.strategy],
    )
    parser.add_argument(
        "--bits", type=int, nargs="+", choices=supported_bit_widths(), default=[defaults.bit_width]
    )
    parser.add_argument("--sizes", type=int, nargs="+", default=[2, 4])
    parser.add_argument("--slots", type=int, default=8)
    parser.add_argument(
        "--backend", choices=[b.value for b in BackendType], default=defaults.backend
    )
    parser.add_argument("--seed", type=int, default=defaults.seed if defaults.seed is not None else 42)
    parser.add_argument("--log-level", default=defaults.log_level)
    parser.add_argument("--output", type=str, help="Output file for JSON results")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    results = run_sweep(
        drivers=args.driver,
        strategies=[BridgeStrategy(s) for s in args.strategy],
        bit_widths=args.bits,
        sizes=args.sizes,
        slot_count=args.slots,
        backend=BackendType(args.backend),
        seed=args.seed,
    )

    print(format_table(results))
    correct, total = summarize(results)
    print(f"\n{correct}/{total} runs matched the plaintext reference")

    if args.output:
        with open(args.output, 'w') as f:
            json.dump([r.to_dict() for r in results], f, indent=2)
        print(f"\nResults saved to: {args.output}")


if __name__ == "__main__":
    main()
