"""
triplelink CLI - Command-line interface for triple-link co-expression clustering.

Commands:
    triplelink cluster  - Build the gene graph, prune weak genes, extract clusters
    triplelink edges    - Print the retained (optionally pruned) edge list
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for triplelink."""
    parser = argparse.ArgumentParser(
        prog="triplelink",
        description="Triple-link clustering of co-expressed genes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  cluster   Build the gene graph, prune weak genes and extract clusters
  edges     Print the retained (optionally pruned) edge list

Examples:
  triplelink cluster --genes genes.txt --expression expression.csv --keep-top-n 10
  triplelink cluster --correlation corr.csv --three-sigma 0.85 --output results/run1
  triplelink edges --expression expression.csv --prune
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Import and register subcommands
    from triplelink.cli import cluster, edges
    cluster.register_parser(subparsers)
    edges.register_parser(subparsers)

    raw_args = list(args) if args is not None else sys.argv[1:]
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Raw arguments let config merging tell explicit flags from defaults
    parsed_args.cli_args = raw_args[raw_args.index(parsed_args.command) + 1:]

    # Dispatch to subcommand
    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
