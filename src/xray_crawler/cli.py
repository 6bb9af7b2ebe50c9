"""
CLI module for xray_crawler.

Runs the scrape jobs described in a JSON configuration file and writes each
job's result to its output file.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import JobConfig, load_config
from .node import Node, Xray

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_node(x: Xray, job: JobConfig) -> Node:
    """
    Build the node for a job.

    Args:
        x: Xray instance
        job: Job configuration

    Returns:
        Node configured with the job's pagination options
    """
    node = x.build(job.url, job.scope, job.selector)
    if job.paginate:
        node.paginate(job.paginate)
    if job.limit is not None:
        node.limit(job.limit)
    return node


async def run_jobs(
    config_path: str,
    output_dir: Optional[str] = None,
    dry_run: bool = False,
    verbose: bool = False
) -> None:
    """
    Main orchestration function.

    Args:
        config_path: Path to configuration file
        output_dir: Directory that relative job outputs are written to
        dry_run: If True, only log the jobs without fetching anything
        verbose: Enable verbose logging
    """
    setup_logging(verbose)

    try:
        config = load_config(config_path)
        x = Xray(options=config.options)

        succeeded = 0
        for job in config.jobs:
            output = Path(output_dir) / job.output if output_dir else Path(job.output)
            if dry_run:
                logger.info(f"Would scrape {job.url} -> {output}")
                continue

            logger.info(f"Scraping {job.url}")
            path = await build_node(x, job).write(output)
            logger.info(f"Saved {job.url} -> {path}")
            succeeded += 1

        logger.info(f"Scraping completed successfully ({succeeded} job(s))")

    except Exception as e:
        logger.error(f"Scraping failed: {e}")
        sys.exit(1)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Schema-driven HTML extraction with pagination",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  xray-crawler run jobs.json
  xray-crawler run jobs.json --output-dir output/ --dry-run
  xray-crawler run jobs.json --verbose
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    run_parser = subparsers.add_parser('run', help='Run the scrape jobs')
    run_parser.add_argument('config_file', help='Path to JSON configuration file')
    run_parser.add_argument('--output-dir', '-o', default=None,
                            help='Directory for job outputs given as relative paths')
    run_parser.add_argument('--dry-run', action='store_true',
                            help='Print jobs only, don\'t fetch anything')
    run_parser.add_argument('--verbose', '-v', action='store_true',
                            help='Enable verbose logging')

    args = parser.parse_args()

    if args.command == 'run':
        asyncio.run(run_jobs(
            config_path=args.config_file,
            output_dir=args.output_dir,
            dry_run=args.dry_run,
            verbose=args.verbose
        ))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
