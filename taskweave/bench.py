"""Workloads and simple thread-based executors used for scheduling benchmarks."""

from __future__ import annotations

import os
import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

_MASK = 0xFFFFFFFF
_WORK_ITERATIONS = 100_000
_WORK_INPUT = 123

DEFAULT_NUM_TASKS = 0x40000


def do_some_work(x: int) -> int:
    """Run a fixed bit-twiddling loop on the 32-bit value ``x``.

    The result is deterministic and only ever has bits that ``x`` has.
    """
    x &= _MASK
    q = x
    for _ in range(_WORK_ITERATIONS):
        nxt = ((((x << 4) | x) & _MASK) | 0x1020) >> 2 & q
        if nxt == x:
            break  # fixed point: further iterations cannot change x
        x = nxt
    return x


def benchmark_args(
    num_tasks: int = DEFAULT_NUM_TASKS,
    num_logical_cpus: Optional[int] = None,
    full: bool = False,
) -> list[tuple[int, int]]:
    """Return the (tasks, threads) pairs a benchmark is run with.

    Always includes zero threads. With ``full`` every thread count up to the
    CPU count follows; otherwise powers of two, plus the CPU count itself
    when it is not a power of two.
    """
    cpus = num_logical_cpus if num_logical_cpus is not None else (os.cpu_count() or 1)
    args = [(num_tasks, 0)]
    if full:
        args.extend((num_tasks, threads) for threads in range(1, cpus + 1))
        return args
    threads = 1
    while threads <= cpus:
        args.append((num_tasks, threads))
        threads *= 2
    if cpus & (cpus - 1):
        args.append((num_tasks, cpus))
    return args


def _check(num_tasks: int, num_threads: int) -> None:
    if num_tasks < 0:
        raise ValueError(f"num_tasks must not be negative, got {num_tasks}")
    if num_threads < 0:
        raise ValueError(f"num_threads must not be negative, got {num_threads}")


def single_queue_executor(num_tasks: int, num_threads: int) -> int:
    """Run tasks from one lock-guarded queue shared by all threads.

    With zero threads the tasks run on the calling thread. Returns the number
    of tasks run.
    """
    _check(num_tasks, num_threads)
    tasks: deque[Callable[[int], int]] = deque(do_some_work for _ in range(num_tasks))
    lock = threading.Lock()

    def runner() -> int:
        ran = 0
        while True:
            with lock:
                if not tasks:
                    return ran
                task = tasks.popleft()
            task(_WORK_INPUT)
            ran += 1

    if num_threads == 0:
        return runner()
    with ThreadPoolExecutor(max_workers=num_threads) as executor:
        futures = [executor.submit(runner) for _ in range(num_threads)]
        return sum(future.result() for future in futures)


def multi_queue_executor(num_tasks: int, num_threads: int) -> int:
    """Run tasks spread evenly over one queue per thread, without contention.

    All threads start together. With zero threads the tasks run on the
    calling thread. Returns the number of tasks run.
    """
    _check(num_tasks, num_threads)
    num_queues = max(num_threads, 1)
    queues: list[list[Callable[[int], int]]] = [[] for _ in range(num_queues)]
    for i in range(num_tasks):
        queues[i % num_queues].append(do_some_work)

    def run_queue(queue: list[Callable[[int], int]]) -> int:
        for task in queue:
            task(_WORK_INPUT)
        return len(queue)

    if num_threads == 0:
        return run_queue(queues[0])

    start = threading.Event()

    def runner(queue: list[Callable[[int], int]]) -> int:
        start.wait()
        return run_queue(queue)

    with ThreadPoolExecutor(max_workers=num_threads) as executor:
        futures = [executor.submit(runner, queue) for queue in queues]
        start.set()
        return sum(future.result() for future in futures)