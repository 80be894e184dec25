import pytest

from taskweave.bench import (
    benchmark_args,
    do_some_work,
    multi_queue_executor,
    single_queue_executor,
)

MASK = 0xFFFFFFFF


@pytest.mark.parametrize("x", [0, 1, 123, 0x1020, 0xDEADBEEF, MASK])
def test_do_some_work_only_keeps_input_bits(x):
    result = do_some_work(x)
    assert result & ~x & MASK == 0
    assert 0 <= result <= MASK


@pytest.mark.parametrize("x", [5, 123, 0xABCDEF])
def test_do_some_work_wraps_to_32_bits(x):
    assert do_some_work(x) == do_some_work(x + (1 << 32))


def test_do_some_work_pinned_values():
    assert do_some_work(1) == 0
    assert do_some_work(MASK) == 0x3FFFFFFF


def test_do_some_work_zero():
    assert do_some_work(0) == 0


def test_benchmark_args_power_of_two_cpus():
    assert benchmark_args(512, 8, False) == [
        (512, 0),
        (512, 1),
        (512, 2),
        (512, 4),
        (512, 8),
    ]


def test_benchmark_args_adds_non_power_of_two_cpu_count():
    args = benchmark_args(512, 6, False)
    threads = [t for _, t in args]
    assert threads[-1] == 6
    assert threads.count(6) == 1
    assert all(tasks == 512 for tasks, _ in args)


def test_benchmark_args_full_lists_every_thread_count():
    assert [t for _, t in benchmark_args(64, 5, True)] == list(range(0, 6))


@pytest.mark.parametrize("threads", [0, 1, 4])
def test_single_queue_executor_runs_every_task(threads):
    assert single_queue_executor(20, threads) == 20


@pytest.mark.parametrize("threads", [0, 1, 3, 8])
def test_multi_queue_executor_runs_every_task(threads):
    assert multi_queue_executor(20, threads) == 20


def test_executors_with_no_tasks():
    assert single_queue_executor(0, 2) == 0
    assert multi_queue_executor(0, 2) == 0


def test_executors_reject_negative_arguments():
    with pytest.raises(ValueError):
        single_queue_executor(-1, 1)
    with pytest.raises(ValueError):
        multi_queue_executor(1, -1)