#!/usr/bin/env python3
"""
Command-line interface for Quire - parallel Markdown pipeline.
"""

import os
import sys
import argparse
from typing import List, Optional

from . import __version__
from .benchmark import DEFAULT_COUNTS, create_sample_posts, run_benchmark, write_report
from .core import Quire
from .errors import QuireError
from .settings import QuireSettings


def parse_counts(value: str) -> List[int]:
    """argparse type for comma-separated positive post counts."""
    try:
        counts = [int(item) for item in value.split(',') if item.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid count list: {value!r}")
    if not counts or any(count < 1 for count in counts):
        raise argparse.ArgumentTypeError(f"counts must be positive integers: {value!r}")
    return counts


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='Quire - parallel Markdown pipeline')
    parser.add_argument('--content', type=str,
                        help='Content directory containing markdown files')
    parser.add_argument('--workers', type=int,
                        help='Number of workers (default: number of CPUs)')
    parser.add_argument('--executor', type=str, choices=['process', 'thread'],
                        help='Run workers as processes or threads')
    parser.add_argument('--prefetch', type=int,
                        help='Tasks queued per worker')
    parser.add_argument('--parallel-threshold', type=int,
                        help='Minimum number of files before the worker pool is used')
    parser.add_argument('--gfm-plugins', type=str,
                        help='Comma-separated list of Mistune plugins for GFM syntax')
    parser.add_argument('--no-math', dest='math', action='store_const', const=False,
                        help='Leave math as TeX instead of rendering MathML')
    parser.add_argument('--no-highlight', dest='highlight', action='store_const', const=False,
                        help='Disable syntax highlighting of code blocks')
    parser.add_argument('--no-toc', dest='collect_headings', action='store_const', const=False,
                        help='Do not collect headings for tables of contents')
    parser.add_argument('--json', type=str,
                        help='Write the ordered documents to this JSON file')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file')
    parser.add_argument('--generate', type=int, metavar='N',
                        help='Write N stress-test posts into the content directory')
    parser.add_argument('--benchmark', type=parse_counts, nargs='?', metavar='COUNTS',
                        const=list(DEFAULT_COUNTS),
                        help='Build batches of stress-test posts (default: 100,500,1000) and report timings')
    parser.add_argument('--report', type=str, default='performance-report.md',
                        help='Markdown file the benchmark results are appended to')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    args = parser.parse_args(argv)

    settings_loader = QuireSettings()

    # Handle init command
    if args.init:
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")
        return

    settings_loader.load_settings()

    # Command line arguments take precedence
    args_dict = {k: v for k, v in vars(args).items() if v is not None}
    final_settings = settings_loader.merge_with_args(args_dict)

    content_dir = os.path.expanduser(final_settings['content'])
    final_settings['content'] = content_dir

    if args.generate:
        create_sample_posts(content_dir, args.generate)
        return

    try:
        if args.benchmark:
            rows = run_benchmark(args.benchmark, final_settings)
            report_path = write_report(args.report, rows)
            print(f"Benchmark results written to {report_path}")
            return

        generator = Quire.from_settings(final_settings)
        generator.build()

        if args.json:
            generator.write_json(args.json)
    except (QuireError, IOError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
