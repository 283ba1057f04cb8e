"""
Core types, enums, and structured results for the proxy scanner.

This module provides the foundation shared by every stage of a scan:
- Scan tasks and result records
- Categorized error types
- Protocol constants (SOCKS4 / SOCKS5)
- The immutable scan configuration
- Exception classes
"""

import os
import time
from dataclasses import dataclass, field, asdict
from enum import Enum, auto
from typing import Optional, Dict, Any


# =============================================================================
# Error Categories
# =============================================================================

class ErrorCategory(Enum):
    """Categorized probe failures, used for diagnostics only."""

    NONE = auto()                    # No error
    TIMEOUT_CONNECT = auto()         # Connection timeout
    TIMEOUT_READ = auto()            # Read/recv timeout
    NETWORK_UNREACHABLE = auto()     # Network/host unreachable
    CONNECTION_REFUSED = auto()      # Connection actively refused
    CONNECTION_RESET = auto()        # Connection reset by peer
    SHORT_REPLY = auto()             # Peer closed or replied too few bytes
    REJECTED = auto()                # Well-formed reply, request not granted
    UNKNOWN = auto()                 # Uncategorized error


class ProxyProtocol(Enum):
    """Detectable proxy protocols, in probe priority order."""

    HTTP = "HTTP"
    SOCKS4 = "SOCKS4"
    SOCKS5 = "SOCKS5"


# =============================================================================
# Protocol Constants
# =============================================================================

class Socks4:
    """SOCKS4 protocol constants."""

    VERSION = 0x04
    CMD_CONNECT = 0x01

    REPLY_GRANTED = 0x5A
    REPLY_REJECTED = 0x5B


class Socks5:
    """SOCKS5 protocol constants (RFC 1928)."""

    VERSION = 0x05

    # Authentication methods
    AUTH_NONE = 0x00
    AUTH_NO_ACCEPTABLE = 0xFF

    # Commands
    CMD_CONNECT = 0x01

    # Address types
    ATYP_DOMAIN = 0x03

    REPLY_SUCCESS = 0x00


# Probe destinations
DEFAULT_HTTP_TARGET = "www.google.com"
DEFAULT_SOCKS4_TARGET_IP = "142.250.74.68"
DEFAULT_SOCKS5_TARGET = "www.google.com"
DEFAULT_TARGET_PORT = 80


def default_workers() -> int:
    """Twice the available hardware parallelism."""
    return (os.cpu_count() or 1) * 2


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class ScanConfig:
    """Scanner configuration. Built once, never mutated."""

    # Timeouts (seconds)
    connect_timeout: float = 3.0
    read_timeout: Optional[float] = None  # follows connect_timeout

    # Concurrency
    workers: int = field(default_factory=default_workers)
    queue_factor: int = 2
    result_buffer: int = 100

    # Accepted for compatibility, not consumed by the scanner
    refresh_interval: int = 60

    # Output
    output_dir: str = "."
    log_level: str = "info"

    # Probe targets
    http_target: str = DEFAULT_HTTP_TARGET
    socks4_target_ip: str = DEFAULT_SOCKS4_TARGET_IP
    socks5_target: str = DEFAULT_SOCKS5_TARGET
    target_port: int = DEFAULT_TARGET_PORT

    def __post_init__(self):
        if self.read_timeout is None:
            object.__setattr__(self, "read_timeout", self.connect_timeout)
        if self.workers < 1:
            raise ConfigurationError(f"workers must be at least 1, got {self.workers}")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ConfigurationError("timeouts must be positive")
        if self.queue_factor < 1 or self.result_buffer < 1:
            raise ConfigurationError("queue sizes must be at least 1")

    @property
    def task_queue_size(self) -> int:
        return self.workers * self.queue_factor

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# Scan Units
# =============================================================================

@dataclass(frozen=True)
class Task:
    """One address:port pair awaiting probing."""

    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of a single probe invocation."""

    matched: bool
    protocol: ProxyProtocol


@dataclass(frozen=True)
class ResultRecord:
    """
    A confirmed proxy.

    Formats as ``<ip>:<port> - <PROTOCOL>``, the line written to the output
    stream.
    """

    host: str
    port: int
    protocol: ProxyProtocol

    @classmethod
    def from_task(cls, task: Task, protocol: ProxyProtocol) -> "ResultRecord":
        return cls(host=task.host, port=task.port, protocol=protocol)

    def format(self) -> str:
        return f"{self.host}:{self.port} - {self.protocol.value}"

    def __str__(self) -> str:
        return self.format()


@dataclass
class ScanSummary:
    """Aggregated counters from a completed scan."""

    tasks: int = 0
    matches: Dict[ProxyProtocol, int] = field(
        default_factory=lambda: {p: 0 for p in ProxyProtocol}
    )

    # Timing
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    duration_seconds: Optional[float] = None

    @property
    def found(self) -> int:
        return sum(self.matches.values())

    def add(self, record: ResultRecord):
        self.matches[record.protocol] += 1

    def finalize(self):
        """Mark scan as complete and calculate duration."""
        self.end_time = time.time()
        self.duration_seconds = self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": self.tasks,
            "found": self.found,
            "matches": {p.value: n for p, n in self.matches.items()},
            "duration_seconds": self.duration_seconds,
        }


# =============================================================================
# Exception Classes
# =============================================================================

class ScannerError(Exception):
    """Base exception for scanner errors."""


class ConfigurationError(ScannerError):
    """Nothing useful can be scanned with the given configuration or input."""


class OutputError(ScannerError):
    """Results cannot be recorded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
