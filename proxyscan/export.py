"""
Result output for the proxy scanner.

Provides:
- ResultSink: the single consumer writing confirmed proxies as they arrive
- open_output: creation of the output directory and result file
"""

import logging
import queue
from pathlib import Path
from typing import Any, Callable, Optional, TextIO

from .core import OutputError, ResultRecord, ScanSummary

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "proxies.txt"


def open_output(output_dir: str = ".", filename: str = DEFAULT_FILENAME) -> TextIO:
    """
    Create ``output_dir`` if needed and open a fresh result file in it.

    Raises:
        OutputError: directory or file cannot be created
    """
    path = Path(output_dir) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, 'w', encoding='utf-8')
    except OSError as e:
        raise OutputError(f"Cannot create output file: {e}", str(path)) from e


class ResultSink:
    """
    Streams result records to a text stream, one line each.

    Every line is flushed as soon as it is written so an interrupted scan
    keeps everything found so far.
    """

    def __init__(
        self,
        stream: TextIO,
        summary: Optional[ScanSummary] = None,
        on_error: Optional[Callable[[OutputError], None]] = None
    ):
        self.stream = stream
        self.summary = summary if summary is not None else ScanSummary()
        self.error: Optional[OutputError] = None
        self._on_error = on_error

    def on_result(self, record: ResultRecord):
        """Write and flush one record."""
        try:
            self.stream.write(record.format() + "\n")
            self.stream.flush()
        except Exception as e:
            raise OutputError(f"Cannot write result {record}: {e}",
                              getattr(self.stream, 'name', None)) from e
        self.summary.add(record)

    def consume(self, results: queue.Queue, sentinel: Any):
        """
        Drain ``results`` until ``sentinel`` arrives.

        After a write failure the remaining records are discarded so
        producers never block on a full queue; the failure is kept in
        ``self.error``.
        """
        while True:
            record = results.get()
            if record is sentinel:
                break
            if self.error is not None:
                continue
            try:
                self.on_result(record)
            except OutputError as e:
                logger.error(str(e))
                self.error = e
                if self._on_error:
                    self._on_error(e)
