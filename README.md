# taskweave

Building blocks for running work across threads, using only the standard
library:

- **`taskweave.dag`**: declare a directed acyclic graph of work ahead of time
  with `DAGBuilder` and `DAGNodeBuilder`, then run it as many times as you
  like with `DAG.run`. A node runs only after every node it depends on has
  finished; independent branches run on a thread pool.
- **`taskweave.pool`**: `BoundedPool` and `UnboundedPool` lend out reusable
  items as `Loan` objects. `PoolPolicy` decides whether items are rebuilt on
  every loan or keep their state between loans.
- **`taskweave.primes`** and **`taskweave.fractal`**: two parallel workloads,
  each with a command-line program.
- **`taskweave.bench`**: workloads and simple executors for comparing
  scheduling approaches.

## Installation

```
pip install taskweave
```

## Task graphs

```python
from taskweave.dag import DAGBuilder

order = []
builder = DAGBuilder()
builder.root().then(lambda: order.append("A")).then(lambda: order.append("B"))
dag = builder.build()
dag.run()
print(order)  # ['A', 'B']
```

- `DAGBuilder.root()` returns the root node, which has no work of its own.
- `DAGNodeBuilder.then(work)` adds a node that runs after the current one and
  returns it.
- `DAGBuilder.node(work, after)` adds a node that waits for every node in
  `after` (fan-in). A node added with no dependencies never runs unless it is
  attached later with `DAGBuilder.add_dependency(parent, child)` or `then`.
- `DAGBuilder.build()` returns the `DAG`; the builder cannot be used after
  that and raises `RuntimeError` if you try.
- `DAG.run(*args)` passes `args` to every node's work and blocks until all
  reachable nodes have finished. If a work function raises, nodes that depend
  on it are skipped and the first error is raised from `run` once the other
  tasks are done.

`DAGBuilder(workers=...)` sets the number of threads a run uses: `None` (the
default) lets the thread pool choose, `0` runs every task on the calling
thread.

## Pools

```python
from taskweave.pool import BoundedPool, PoolPolicy

pool = BoundedPool(list, size=2, policy=PoolPolicy.PRESERVE)
with pool.borrow() as items:
    items.append(1)
```

- `BoundedPool(factory, size, policy)` holds `size` items. `borrow()` blocks
  until an item is free; `try_borrow()` returns `None` instead of blocking;
  `borrow_each(count, func)` borrows `count` items and calls `func` with each
  loan.
- `UnboundedPool(factory, policy)` never blocks: when it runs out it adds at
  least 32 items, or as many as it already has.
- With `PoolPolicy.RECONSTRUCT` (the default) `factory` is called for every
  loan; with `PoolPolicy.PRESERVE` each item is made once and keeps its state.
- A `Loan` gives the value through `get()` or as a context manager. `share()`
  returns another loan of the same item; the item goes back to the pool when
  every loan sharing it has been `reset()` (or left its `with` block, or been
  garbage-collected).

## Command-line programs

Print primes, in ascending order even though chunks are searched
concurrently:

```
taskweave-primes --max 10000 --chunk 1000 --workers 4
```

The defaults are `--max 10000000` and `--chunk 10000`. The search is plain
trial division starting at 1, so `1` is reported as prime, and each chunk is
searched whole, so the last chunk may run past `--max`.

Render a Julia-set fractal, one row per task, into a 24-bit BMP file:

```
taskweave-fractal --width 512 --height 512 --output fractal.bmp
```

The defaults are 2048 x 2048 pixels written to `fractal.bmp`; it exits with
status 1 if the file cannot be written. Both programs take `--workers`
(`0` runs on the calling thread).

From Python the same work is available as `taskweave.primes.find_primes`,
`taskweave.primes.is_prime`, `taskweave.fractal.render` and
`taskweave.fractal.write_bmp`, along with the helpers `colorize`, `lerp`,
`julia` and the `Color` class.

## Benchmark workloads

`taskweave.bench` provides:

- `do_some_work(x)`: a fixed, deterministic bit-twiddling loop on a 32-bit
  value.
- `benchmark_args(num_tasks, num_logical_cpus, full)`: the `(tasks, threads)`
  pairs to run with: zero threads, then powers of two up to the CPU count
  (plus the CPU count when it is not a power of two), or every count when
  `full` is true.
- `single_queue_executor(num_tasks, num_threads)` and
  `multi_queue_executor(num_tasks, num_threads)`: run `do_some_work` tasks
  from one shared, lock-guarded queue or from one queue per thread, returning
  the number of tasks run.

## What this package does not do

There is no general task scheduler in the public API: no way to submit
arbitrary tasks, and no events, wait groups or ticket queues to coordinate
them. Task graphs, the programs and the executors use Python threads
internally. The benchmark module supplies workloads only; it does not time
them or report results, and there is no command to run it.

## Running the tests

```
pip install "taskweave[test]"
pytest
```