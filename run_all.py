#!/usr/bin/env python3
"""
Demo script.

Runs the sieve, the predicate search, the parallel Fibonacci workload and the
parallel_init demo from one config, and writes a summary table.

Usage:
    python run_all.py
    python run_all.py --config config/custom.yaml --output data/results
"""

import argparse
import time
from pathlib import Path

import pandas as pd

from listkit.config import load_config
from listkit.fibonacci import fibonacci, fibonacci_workload
from listkit.logger import setup_logger
from listkit.parallel_map import default_worker_count, parallel_init
from listkit.primes import primes_up_to
from listkit.search import find_first


def run(config: dict) -> pd.DataFrame:
    """Run every demo step and return one summary row per step."""
    rows = []

    # 1. Sieve
    start = time.time()
    primes = primes_up_to(config['sieve_limit'])
    rows.append({
        'step': 'primes_up_to',
        'input': config['sieve_limit'],
        'result': ' '.join(str(p) for p in primes),
        'seconds': time.time() - start,
    })

    # 2. Search
    start = time.time()
    threshold = config['search_threshold']
    hit = find_first(lambda x: x > threshold, config['search_values'])
    rows.append({
        'step': 'find_first',
        'input': f"> {threshold}",
        'result': repr(hit),
        'seconds': time.time() - start,
    })

    # 3. Fibonacci workload
    start = time.time()
    values = fibonacci_workload(range(config['workload_size']),
                                modulus=config['fibonacci_modulus'],
                                num_workers=config['num_workers'],
                                backend=config['backend'])
    rows.append({
        'step': 'fibonacci_workload',
        'input': config['workload_size'],
        'result': f"sum={sum(values)}",
        'seconds': time.time() - start,
    })

    # 4. One term per worker
    start = time.time()
    n_threads = default_worker_count(cap=config['max_threads'])
    terms = parallel_init(n_threads, fibonacci, num_workers=config['num_workers'],
                          backend=config['backend'])
    rows.append({
        'step': 'parallel_init',
        'input': n_threads,
        'result': ' '.join(str(t) for t in terms),
        'seconds': time.time() - start,
    })

    return pd.DataFrame(rows, columns=['step', 'input', 'result', 'seconds'])


def main(argv=None):
    parser = argparse.ArgumentParser(description='Run the listkit demos')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to YAML config (defaults built in)')
    parser.add_argument('--output', type=str, default='data/results',
                        help='Directory for summary.csv')
    parser.add_argument('--log-level', type=str, default=None,
                        help='DEBUG, INFO, WARNING, ... (default: $LOG_LEVEL or INFO)')
    args = parser.parse_args(argv)

    setup_logger(level=args.log_level)
    config = load_config(args.config)

    print("=" * 60)
    print("listkit demos")
    print("=" * 60)
    print(f"\nConfiguration:")
    for key, value in config.items():
        print(f"  {key} = {value}")
    print()

    total_start = time.time()
    summary = run(config)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    summary.to_csv(output_dir / 'summary.csv', index=False)

    print(summary.to_string(index=False))
    print(f"\nTotal runtime: {time.time() - total_start:.1f}s")
    print(f"Summary saved to: {(output_dir / 'summary.csv').absolute()}")


if __name__ == '__main__':
    main()
