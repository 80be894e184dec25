"""Task graphs, object pools and parallel workloads built on threads."""

__version__ = "0.1.0"
__all__ = ["bench", "dag", "fractal", "pool", "primes"]