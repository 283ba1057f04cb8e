#!/usr/bin/env python3
"""
Command-line interface for the proxy scanner.

Reads CIDR blocks and port specifiers from two text files, probes every
address:port pair for an open HTTP, SOCKS4 or SOCKS5 proxy and writes
matches to ``<output-dir>/proxies.txt``.

Usage:
    # Scan Cidr.txt x Ports.txt in the current directory
    python -m proxyscan

    # More workers, shorter timeout, results elsewhere
    python -m proxyscan --workers 200 --timeout 2 --output-dir results/

    # Settings from a YAML (or JSON) file; flags still win
    python -m proxyscan --config scan.yaml --log-level debug
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import build_config, load_config, merge_settings
from .core import ConfigurationError, OutputError
from .export import open_output
from .logger import LEVELS, setup_logger
from .scanner import ProxyScanner
from .targets import build_address_space, load_lines

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='proxyscan',
        description='Scan IP ranges for open HTTP, SOCKS4 and SOCKS5 proxies',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Input files:
  Cidr.txt     one CIDR block per line, e.g. 10.0.0.0/24
  Ports.txt    one port or start-end range per line, e.g. 1080-1085

Examples:
  %(prog)s                                  Scan with defaults
  %(prog)s --workers 200 --timeout 2        Faster, less patient
  %(prog)s --config scan.yaml               Load settings from file
        '''
    )

    # Flags default to None so config-file values can fill the gaps
    parser.add_argument('--timeout', type=float,
                        help='Connection timeout in seconds (default: 3)')
    parser.add_argument('--read-timeout', type=float,
                        help='Read timeout in seconds (default: same as --timeout)')
    parser.add_argument('--workers', type=int,
                        help='Number of concurrent workers (default: 2 x CPUs)')
    parser.add_argument('--refresh-interval', type=int,
                        help='Interval to re-test proxies in minutes (accepted, unused)')
    parser.add_argument('--output-dir',
                        help='Directory for proxies.txt (default: .)')
    parser.add_argument('--log-level', choices=list(LEVELS),
                        help='Log level (default: info)')
    parser.add_argument('--log-file',
                        help='Also write a full debug log to this file')
    parser.add_argument('--config',
                        help='YAML or JSON config file (optional)')
    parser.add_argument('--cidr-file',
                        help='CIDR list (default: Cidr.txt)')
    parser.add_argument('--ports-file',
                        help='Port list (default: Ports.txt)')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # Provisional until the config file's log level is known
    setup_logger(
        level=LEVELS[args.log_level or 'info'],
        log_file=args.log_file,
        compact=args.log_level != 'debug'
    )

    try:
        file_settings = load_config(args.config) if args.config else {}
        settings = merge_settings(vars(args), file_settings)
        config = build_config(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    setup_logger(
        level=LEVELS[config.log_level],
        log_file=args.log_file,
        compact=config.log_level != 'debug'
    )
    logger.debug(f"Config: {config.to_dict()}")
    logger.debug(f"Refresh interval {config.refresh_interval}m is not used by a single scan")

    try:
        space = build_address_space(
            load_lines(settings['cidr_file']),
            load_lines(settings['ports_file'])
        )
        logger.info(
            f"Loaded {len(space.addresses)} addresses x {len(space.ports)} ports "
            f"= {space.task_count} tasks"
        )

        with open_output(config.output_dir) as output:
            logger.info(f"Writing results to {output.name}")
            summary = ProxyScanner(config).scan(space, output)

    except (ConfigurationError, OutputError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted; results found so far are saved")
        return 130

    for protocol, count in summary.matches.items():
        if count:
            logger.info(f"{protocol.value}: {count}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
