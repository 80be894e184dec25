"""Find prime numbers in parallel chunks and report them in ascending order."""

from __future__ import annotations

import argparse
import math
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

SEARCH_MAX = 10_000_000
SEARCH_CHUNK_SIZE = 10_000


def is_prime(i: int) -> bool:
    """Return True if no integer in [2, sqrt(i)] divides ``i``.

    As with a plain trial division, 0 and 1 count as prime.
    """
    if i < 0:
        raise ValueError(f"cannot test a negative number, got {i}")
    return all(i % j for j in range(2, math.isqrt(i) + 1))


def _search_chunk(base: int, size: int) -> list[int]:
    return [i for i in range(base, base + size) if is_prime(i)]


def find_primes(
    search_max: int = SEARCH_MAX,
    chunk_size: int = SEARCH_CHUNK_SIZE,
    workers: Optional[int] = None,
) -> list[int]:
    """Return the primes found in ascending order.

    The range [1, search_max] is split into chunks starting every
    ``chunk_size`` numbers; each chunk is searched whole, so the last one may
    extend past ``search_max``. ``workers`` is the number of threads: None
    lets the executor choose, 0 searches on the calling thread.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk size must be at least 1, got {chunk_size}")
    bases = range(1, search_max + 1, chunk_size)
    if workers == 0:
        chunks = [_search_chunk(base, chunk_size) for base in bases]
    else:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            chunks = list(executor.map(lambda base: _search_chunk(base, chunk_size), bases))
    return [prime for chunk in chunks for prime in chunk]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print every prime in the search range, one per line."""
    parser = argparse.ArgumentParser(description="Print prime numbers.")
    parser.add_argument("--max", dest="search_max", type=int, default=SEARCH_MAX)
    parser.add_argument("--chunk", type=int, default=SEARCH_CHUNK_SIZE)
    parser.add_argument("--workers", type=int, default=None)
    args = parser.parse_args(argv)

    for prime in find_primes(args.search_max, args.chunk, args.workers):
        print(f"{prime} is prime")
    return 0


if __name__ == "__main__":
    sys.exit(main())