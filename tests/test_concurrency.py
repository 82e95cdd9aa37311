"""Concurrent resolution, mutation and snapshotting of gauge children."""
import threading

from gaugekit.gauge import Gauge

THREADS = 8


def queue_depth():
    return (
        Gauge.new_builder()
        .name("queue_depth")
        .label_names("queue")
        .documentation("Items waiting per queue.")
        .build()
    )


def run_threads(target, count=THREADS):
    barrier = threading.Barrier(count)

    def worker(index):
        barrier.wait()
        target(index)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


def test_concurrent_apply_converges_on_one_child():
    gauge = queue_depth()
    resolved = [None] * THREADS

    def resolve(index):
        resolved[index] = gauge.new_partial().label_pair("queue", "ingest").apply()

    run_threads(resolve)

    assert all(child is resolved[0] for child in resolved)
    assert len(gauge) == 1


def test_concurrent_increments_are_not_lost():
    gauge = queue_depth()
    child = gauge.new_partial().label_pair("queue", "ingest").apply()
    per_thread = 2000

    def bump(index):
        for _ in range(per_thread):
            child.increment()
            child.increment(2)
            child.decrement()

    run_threads(bump)

    assert child.value == THREADS * per_thread * 2


def test_cloned_partials_in_threads():
    gauge = (
        Gauge.new_builder()
        .name("cache_entries")
        .label_names("system", "data_type")
        .documentation("Cache entries.")
        .build()
    )
    parent = gauge.new_partial().label_pair("system", "cache")

    def record(index):
        local = parent.clone()
        local.label_pair("data_type", f"type-{index}").apply().set(index)

    run_threads(record)

    values = {point.labels["data_type"]: point.value for point in gauge.snapshot()}
    assert values == {f"type-{i}": float(i) for i in range(THREADS)}
    assert parent.labels() == {"system": "cache"}


def test_snapshot_tolerates_concurrent_inserts():
    gauge = queue_depth()
    stop = threading.Event()
    errors = []

    def insert():
        i = 0
        while not stop.is_set():
            gauge.new_partial().label_pair("queue", f"q{i}").apply().set(i)
            i += 1

    writer = threading.Thread(target=insert)
    writer.start()
    try:
        sizes = []
        for _ in range(200):
            try:
                sizes.append(len(gauge.snapshot()))
            except RuntimeError as e:
                errors.append(e)
    finally:
        stop.set()
        writer.join()

    assert errors == []
    # The registry only grows, so successive snapshots never shrink
    assert sizes == sorted(sizes)
    assert len(gauge.snapshot()) == len(gauge)


def test_reset_all_during_mutation():
    gauge = queue_depth()
    children = [gauge.new_partial().label_pair("queue", f"q{i}").apply() for i in range(4)]

    def mutate(index):
        if index == 0:
            for _ in range(100):
                gauge.reset_all()
        else:
            for _ in range(1000):
                children[index % 4].increment()

    run_threads(mutate, count=4)
    gauge.reset_all()

    assert [child.value for child in children] == [0.0] * 4
