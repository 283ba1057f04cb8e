"""
Concurrent proxy scanner.

Pipeline:
    task generator -> bounded task queue -> worker threads
        -> bounded result queue -> result sink

The generator runs in the calling thread and blocks when the task queue is
full. Workers stop on an end-of-input marker, which is pushed once per
worker only after the last task. The result queue is closed only after every
worker has been joined, so every match reaches the sink.
"""

import logging
import queue
import threading
from typing import Iterable, Optional, Sequence, TextIO, Tuple

from .core import ProbeOutcome, ProxyProtocol, ResultRecord, ScanConfig, ScanSummary, Task
from .export import ResultSink
from .probes import Probe, probes_for
from .targets import AddressSpace

logger = logging.getLogger(__name__)

# End-of-input marker for both queues
_CLOSED = object()


class ProxyScanner:
    """
    Probes every address:port pair for an open HTTP, SOCKS4 or SOCKS5 proxy.

    Usage:
        scanner = ProxyScanner(ScanConfig(workers=64))
        record = scanner.probe_task(Task("1.2.3.4", 1080))

        with open_output(config.output_dir) as output:
            summary = scanner.run(addresses, ports, output)
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        probes: Optional[Sequence[Tuple[ProxyProtocol, Probe]]] = None
    ):
        self.config = config or ScanConfig()
        self.probes = tuple(probes) if probes is not None else probes_for(self.config)

    # =========================================================================
    # Single Task
    # =========================================================================

    def probe_task(self, task: Task) -> Optional[ResultRecord]:
        """Run the probes in priority order; the first match wins."""
        logger.debug(f"[*] Testing {task.address}")

        for protocol, probe in self.probes:
            outcome = ProbeOutcome(
                matched=probe(task.host, task.port,
                              self.config.connect_timeout, self.config.read_timeout),
                protocol=protocol
            )
            if outcome.matched:
                logger.info(f"[+] {task.address} → {protocol.value}")
                return ResultRecord.from_task(task, outcome.protocol)

        return None

    # =========================================================================
    # Full Scan
    # =========================================================================

    def scan(self, space: AddressSpace, output: TextIO) -> ScanSummary:
        """Scan a prepared AddressSpace."""
        return self.run(space.addresses, space.ports, output)

    def run(
        self,
        addresses: Iterable[str],
        ports: Sequence[int],
        output: TextIO
    ) -> ScanSummary:
        """
        Scan ``addresses x ports`` and stream matches to ``output``.

        Returns:
            ScanSummary with task and match counts

        Raises:
            OutputError: a result could not be written
        """
        workers = self.config.workers
        tasks: queue.Queue = queue.Queue(maxsize=self.config.task_queue_size)
        results: queue.Queue = queue.Queue(maxsize=self.config.result_buffer)
        abort = threading.Event()

        summary = ScanSummary()
        sink = ResultSink(output, summary, on_error=lambda e: abort.set())
        sink_thread = threading.Thread(
            target=sink.consume, args=(results, _CLOSED),
            name="proxyscan-sink", daemon=True
        )
        sink_thread.start()

        threads = []
        for i in range(workers):
            t = threading.Thread(
                target=self._worker, args=(tasks, results, abort),
                name=f"proxyscan-worker-{i}", daemon=True
            )
            t.start()
            threads.append(t)

        logger.info(f"Scanning with {workers} workers")

        summary.tasks = self._generate(addresses, ports, tasks, abort)

        # Close the task queue: one marker per worker, after the last task
        for _ in range(workers):
            tasks.put(_CLOSED)
        for t in threads:
            t.join()

        results.put(_CLOSED)
        sink_thread.join()

        summary.finalize()

        if sink.error is not None:
            raise sink.error

        logger.info(
            f"Scan complete: {summary.found} found in {summary.tasks} tasks "
            f"({summary.duration_seconds:.1f}s)"
        )
        return summary

    # =========================================================================
    # Pipeline Stages
    # =========================================================================

    @staticmethod
    def _generate(
        addresses: Iterable[str],
        ports: Sequence[int],
        tasks: queue.Queue,
        abort: threading.Event
    ) -> int:
        """Push the cartesian product into ``tasks``. Blocks while it is full."""
        count = 0
        for host in addresses:
            for port in ports:
                if abort.is_set():
                    logger.warning(f"Scan aborted after {count} tasks")
                    return count
                tasks.put(Task(host, port))
                count += 1
        return count

    def _worker(self, tasks: queue.Queue, results: queue.Queue, abort: threading.Event):
        while True:
            task = tasks.get()
            if task is _CLOSED:
                return
            if abort.is_set():
                continue

            try:
                record = self.probe_task(task)
            except Exception as e:
                logger.error(f"Probe chain failed for {task.address}: {e}")
                continue

            if record is not None:
                results.put(record)
