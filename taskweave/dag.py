"""An ahead-of-time, declarative graph of tasks that run once their inputs finish."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

Work = Callable[..., Any]

_ROOT_INDEX = 0


@dataclass
class _Node:
    """One node of the graph: its work, its join counter and its dependees."""

    work: Optional[Work] = None
    counter_index: Optional[int] = None
    outs: list[int] = field(default_factory=list)


class _WaitGroup:
    """Counts outstanding tasks; ``wait`` blocks until the count reaches zero."""

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, n: int = 1) -> None:
        with self._cond:
            self._count += n

    def done(self) -> None:
        with self._cond:
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()

    def wait(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: self._count == 0)


class _RunContext:
    """Per-run state: the arguments, live counters and task bookkeeping."""

    def __init__(
        self,
        args: tuple[Any, ...],
        counters: list[int],
        executor: Optional[ThreadPoolExecutor],
    ) -> None:
        self.args = args
        self.counters = counters
        self.counter_lock = threading.Lock()
        self.executor = executor
        self.pending: deque[Callable[[], None]] = deque()
        self.wait_group = _WaitGroup()
        self.errors: list[BaseException] = []
        self.errors_lock = threading.Lock()

    def submit(self, task: Callable[[], None]) -> None:
        self.wait_group.add(1)
        if self.executor is None:
            self.pending.append(task)
        else:
            self.executor.submit(task)

    def record(self, error: BaseException) -> None:
        with self.errors_lock:
            self.errors.append(error)


class DAG:
    """A built task graph. Use :class:`DAGBuilder` to create one."""

    def __init__(
        self,
        nodes: list[_Node],
        initial_counters: list[int],
        workers: Optional[int] = None,
    ) -> None:
        self._nodes = nodes
        self._initial_counters = initial_counters
        self._workers = workers

    def __len__(self) -> int:
        return len(self._nodes)

    def run(self, *args: Any) -> None:
        """Invoke every node's work with ``args``, respecting dependencies.

        Blocks until all reachable nodes have finished. If any work raises,
        nodes depending on it are skipped and the first error is re-raised
        once the remaining tasks have completed.
        """
        if self._workers == 0:
            ctx = _RunContext(args, list(self._initial_counters), None)
            self._start(ctx)
            while ctx.pending:
                ctx.pending.popleft()()
            ctx.wait_group.wait()
        else:
            with ThreadPoolExecutor(max_workers=self._workers) as executor:
                ctx = _RunContext(args, list(self._initial_counters), executor)
                self._start(ctx)
                ctx.wait_group.wait()
        if ctx.errors:
            raise ctx.errors[0]

    def _start(self, ctx: _RunContext) -> None:
        try:
            self._invoke(ctx, _ROOT_INDEX)
        except BaseException as error:  # noqa: BLE001 - re-raised after run
            ctx.record(error)

    def _scheduled(self, ctx: _RunContext, index: int) -> None:
        try:
            self._invoke(ctx, index)
        except BaseException as error:  # noqa: BLE001 - re-raised after run
            ctx.record(error)
        finally:
            ctx.wait_group.done()

    def _notify(self, ctx: _RunContext, index: int) -> bool:
        """Record one finished dependency; True once the node may run."""
        counter_index = self._nodes[index].counter_index
        if counter_index is None:
            return True
        with ctx.counter_lock:
            ctx.counters[counter_index] -= 1
            return ctx.counters[counter_index] == 0

    def _invoke(self, ctx: _RunContext, index: Optional[int]) -> None:
        # All ready dependees but the last are scheduled; the last one runs
        # directly on this thread, iteratively to keep long chains flat.
        while index is not None:
            node = self._nodes[index]
            if node.work is not None:
                node.work(*ctx.args)
            to_invoke: Optional[int] = None
            for out in node.outs:
                if self._notify(ctx, out):
                    if to_invoke is not None:
                        ready = to_invoke
                        ctx.submit(lambda ready=ready: self._scheduled(ctx, ready))
                    to_invoke = out
            index = to_invoke


class DAGNodeBuilder:
    """A handle to a node of a graph under construction."""

    __slots__ = ("_builder", "index")

    def __init__(self, builder: "DAGBuilder", index: int) -> None:
        self._builder = builder
        self.index = index

    def then(self, work: Work) -> "DAGNodeBuilder":
        """Add a node running ``work`` after this node, and return it."""
        node = self._builder.node(work)
        self._builder.add_dependency(self, node)
        return node

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DAGNodeBuilder):
            return NotImplemented
        return self._builder is other._builder and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self._builder), self.index))

    def __repr__(self) -> str:
        return f"DAGNodeBuilder(index={self.index})"


class DAGBuilder:
    """Builds a :class:`DAG`.

    ``workers`` is the number of worker threads a run uses: None lets the
    executor choose, 0 runs every task on the calling thread.
    """

    def __init__(self, workers: Optional[int] = None) -> None:
        if workers is not None and workers < 0:
            raise ValueError(f"workers must not be negative, got {workers}")
        self._workers = workers
        self._nodes: list[_Node] = [_Node()]
        self._num_ins: list[int] = [0]
        self._built = False

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError("the DAG has already been built")

    def _check_owned(self, node: DAGNodeBuilder) -> None:
        if node._builder is not self:
            raise ValueError(f"{node!r} belongs to a different builder")

    def root(self) -> DAGNodeBuilder:
        """Return the root node, which has no dependencies."""
        self._check_open()
        return DAGNodeBuilder(self, _ROOT_INDEX)

    def node(self, work: Work, after: Iterable[DAGNodeBuilder] = ()) -> DAGNodeBuilder:
        """Add a node running ``work`` once every node in ``after`` completes.

        A node with no dependencies never runs unless it is later attached to
        the graph with :meth:`add_dependency` or :meth:`DAGNodeBuilder.then`.
        """
        self._check_open()
        parents = list(after)
        for parent in parents:
            self._check_owned(parent)
        index = len(self._nodes)
        self._nodes.append(_Node(work=work))
        self._num_ins.append(0)
        child = DAGNodeBuilder(self, index)
        for parent in parents:
            self.add_dependency(parent, child)
        return child

    def add_dependency(self, parent: DAGNodeBuilder, child: DAGNodeBuilder) -> None:
        """Make ``child`` wait for ``parent`` to complete."""
        self._check_open()
        self._check_owned(parent)
        self._check_owned(child)
        self._num_ins[child.index] += 1
        self._nodes[parent.index].outs.append(child.index)

    def build(self) -> DAG:
        """Return the finished graph. The builder cannot be used afterwards."""
        self._check_open()
        self._built = True
        initial_counters: list[int] = []
        for node, num_ins in zip(self._nodes, self._num_ins):
            if num_ins > 1:
                node.counter_index = len(initial_counters)
                initial_counters.append(num_ins)
        return DAG(self._nodes, initial_counters, self._workers)