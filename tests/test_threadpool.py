""" Confirm that the concurrent.futures.ThreadPoolExecutor still behaves
    the way the dispatcher expects it to: submit() queues excess work
    instead of blocking the caller, and never runs more than max_workers
    jobs at once.
"""

import concurrent.futures
import threading
import time


def test_submit_does_not_block():

    gate = threading.Event()
    workers = concurrent.futures.ThreadPoolExecutor(max_workers=2)

    begin = time.time()
    futures = [workers.submit(gate.wait, 5) for number in range(6)]
    elapsed = time.time() - begin

    # The reader thread calls submit(); if it blocked here, no replies
    # could be read while the workers are busy.

    assert elapsed < 0.5

    try:
        futures[-1].result(timeout=0.1)
    except concurrent.futures.TimeoutError:
        pass
    else:
        raise RuntimeError('expected a timeout from a queued job')

    gate.set()
    concurrent.futures.wait(futures, timeout=5)

    for future in futures:
        assert future.result() == True

    workers.shutdown()


def test_concurrency_limit():

    lock = threading.Lock()
    running = list()
    peak = list()

    def job():
        lock.acquire()
        running.append(None)
        peak.append(len(running))
        lock.release()

        time.sleep(0.02)

        lock.acquire()
        running.pop()
        lock.release()

    workers = concurrent.futures.ThreadPoolExecutor(max_workers=3)
    futures = [workers.submit(job) for number in range(12)]
    concurrent.futures.wait(futures, timeout=5)
    workers.shutdown()

    assert len(peak) == 12
    assert max(peak) <= 3


def test_submit_after_shutdown():

    workers = concurrent.futures.ThreadPoolExecutor(max_workers=1)
    workers.shutdown()

    try:
        workers.submit(time.sleep, 0)
    except RuntimeError:
        pass
    else:
        raise RuntimeError('expected submit() to refuse work after shutdown')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
