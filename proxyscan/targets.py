"""
Address space building: CIDR blocks to addresses, port specifiers to ports.

Malformed entries are skipped with a warning. An empty result on either
side is a configuration error, since nothing can be scanned.
"""

import ipaddress
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple

from .core import ConfigurationError, Task

logger = logging.getLogger(__name__)

MIN_PORT = 0
MAX_PORT = 65535


@dataclass(frozen=True)
class AddressSpace:
    """Ordered addresses and ports to be crossed into scan tasks."""

    addresses: Tuple[str, ...]
    ports: Tuple[int, ...]

    @property
    def task_count(self) -> int:
        return len(self.addresses) * len(self.ports)

    def tasks(self) -> Iterator[Task]:
        """Address-major cartesian product."""
        for host in self.addresses:
            for port in self.ports:
                yield Task(host, port)


def load_lines(filepath: str) -> List[str]:
    """
    Load non-empty, non-comment lines from a text file.

    Raises:
        ConfigurationError: the file cannot be read
    """
    lines = []
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    lines.append(line)
    except OSError as e:
        raise ConfigurationError(f"Error reading {filepath}: {e}") from e
    return lines


def expand_cidr(cidr: str) -> List[str]:
    """
    Expand a CIDR block into every address it covers.

    Network and broadcast addresses are included. Host bits set in the base
    address are masked off, so ``10.0.0.1/30`` covers ``10.0.0.0-10.0.0.3``.

    Raises:
        ValueError: malformed block, or an IPv6 block
    """
    network = ipaddress.ip_network(cidr.strip(), strict=False)
    if network.version != 4:
        raise ValueError(f"IPv6 is not supported: {cidr}")
    return [str(ip) for ip in network]


def parse_port_spec(spec: str) -> List[int]:
    """
    Parse ``"80"`` or an inclusive ``"start-end"`` range.

    Raises:
        ValueError: not a number, reversed range, or out of 0..65535
    """
    spec = spec.strip()

    if '-' in spec:
        parts = spec.split('-')
        if len(parts) != 2:
            raise ValueError(f"range must be start-end: {spec!r}")
        start, end = int(parts[0]), int(parts[1])
        if start > end:
            raise ValueError(f"range start exceeds end: {spec!r}")
    else:
        start = end = int(spec)

    if start < MIN_PORT or end > MAX_PORT:
        raise ValueError(f"port out of range: {spec!r}")

    return list(range(start, end + 1))


def expand_cidrs(cidrs: Iterable[str]) -> List[str]:
    """Expand CIDR blocks in order, skipping invalid ones."""
    addresses = []
    for cidr in cidrs:
        try:
            addresses.extend(expand_cidr(cidr))
        except ValueError as e:
            logger.warning(f"Skipping invalid CIDR {cidr}: {e}")
    return addresses


def expand_ports(specs: Iterable[str]) -> List[int]:
    """Expand port specifiers in order, skipping invalid ones."""
    ports = []
    for spec in specs:
        try:
            ports.extend(parse_port_spec(spec))
        except ValueError as e:
            logger.warning(f"Skipping invalid port {spec}: {e}")
    return ports


def build_address_space(cidrs: Iterable[str], port_specs: Iterable[str]) -> AddressSpace:
    """
    Expand CIDR and port input into an AddressSpace.

    Raises:
        ConfigurationError: no valid address or no valid port
    """
    addresses = expand_cidrs(cidrs)
    if not addresses:
        raise ConfigurationError("No valid IPs found from CIDRs")

    ports = expand_ports(port_specs)
    if not ports:
        raise ConfigurationError("No valid ports found")

    logger.debug(f"Address space: {len(addresses)} addresses x {len(ports)} ports")
    return AddressSpace(tuple(addresses), tuple(ports))
