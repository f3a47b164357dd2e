import threading

import pytest

from router_inventory.tasks import RouterTaskRegistry, TaskCancelled


def test_one_task_per_router():
    registry = RouterTaskRegistry()
    task = registry.start("alu-01")
    with pytest.raises(RuntimeError):
        registry.start("alu-01")

    # other routers are independent
    other = registry.start("alu-02")
    assert registry.running() == ["alu-01", "alu-02"]

    task.finish("done")
    other.finish()
    assert registry.start("alu-01") is not task


def test_wait_blocks_until_finished():
    registry = RouterTaskRegistry()
    assert registry.wait("nothing-running", timeout=0)

    task = registry.start("alu-01")
    assert not registry.wait("alu-01", timeout=0)

    threading.Timer(0.05, task.finish).start()
    assert registry.wait("alu-01", timeout=5)
    assert task.done.result() is None


def test_failed_task_counts_as_finished():
    registry = RouterTaskRegistry()
    task = registry.start("alu-01")
    task.fail(ValueError("boom"))
    assert registry.wait("alu-01", timeout=0)
    assert isinstance(task.done.exception(), ValueError)


def test_cancel():
    registry = RouterTaskRegistry()
    assert not registry.cancel("alu-01")

    task = registry.start("alu-01")
    task.raise_if_cancelled()
    assert registry.cancel("alu-01")
    assert task.cancelled
    with pytest.raises(TaskCancelled):
        task.raise_if_cancelled()


def test_cancel_all():
    registry = RouterTaskRegistry()
    tasks = [registry.start(name) for name in ("a", "b")]
    registry.cancel_all()
    assert all(t.cancelled for t in tasks)
