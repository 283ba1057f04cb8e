"""
Proxy Scanner v1.0.0
====================

Probes IPv4 ranges for open HTTP, SOCKS4 and SOCKS5 proxies.

Features:
- CIDR and port-range expansion
- Bounded task queue with a fixed pool of worker threads
- Raw-socket HTTP / SOCKS4 / SOCKS5 detection with per-phase timeouts
- Streaming, flush-per-line result output
- YAML/JSON config file support

Quick Start:
    from proxyscan import ProxyScanner, ScanConfig, build_address_space, open_output

    space = build_address_space(["10.0.0.0/24"], ["1080-1085", "8080"])
    config = ScanConfig(workers=64, connect_timeout=2.0, read_timeout=2.0)

    with open_output("results") as output:
        summary = ProxyScanner(config).scan(space, output)

CLI Usage:
    python -m proxyscan --workers 64 --timeout 2 --output-dir results
"""

__version__ = "1.0.0"

# =============================================================================
# Core Types
# =============================================================================

from .core import (
    # Scan units
    Task,
    ProbeOutcome,
    ResultRecord,
    ScanSummary,
    ScanConfig,

    # Enums
    ErrorCategory,
    ProxyProtocol,

    # Protocol constants
    Socks4,
    Socks5,

    # Exceptions
    ScannerError,
    ConfigurationError,
    OutputError,
)

# =============================================================================
# Pipeline
# =============================================================================

from .targets import (
    AddressSpace,
    build_address_space,
    expand_cidr,
    expand_cidrs,
    expand_ports,
    parse_port_spec,
    load_lines,
)
from .probes import PROBES, check_http, check_socks4, check_socks5, probes_for
from .scanner import ProxyScanner
from .export import ResultSink, open_output

# =============================================================================
# Logging
# =============================================================================

from .logger import setup_logger, get_logger, set_level

__all__ = [
    "__version__",

    # Core types
    "Task",
    "ProbeOutcome",
    "ResultRecord",
    "ScanSummary",
    "ScanConfig",
    "ErrorCategory",
    "ProxyProtocol",
    "Socks4",
    "Socks5",

    # Exceptions
    "ScannerError",
    "ConfigurationError",
    "OutputError",

    # Address space
    "AddressSpace",
    "build_address_space",
    "expand_cidr",
    "expand_cidrs",
    "expand_ports",
    "parse_port_spec",
    "load_lines",

    # Probes
    "PROBES",
    "check_http",
    "check_socks4",
    "check_socks5",
    "probes_for",

    # Scanning
    "ProxyScanner",
    "ResultSink",
    "open_output",

    # Logging
    "setup_logger",
    "get_logger",
    "set_level",
]
