"""
triplelink edges command - Export the retained co-expression edge list.

Prints the edges kept by top-N retention as ``gene_u<TAB>gene_v<TAB>band``,
optionally after weak vertex pruning. Useful for inspecting the graph that
clustering would start from, or for loading it into other network tools.

Usage:
    triplelink edges --expression expression.csv --keep-top-n 5
    triplelink edges --correlation corr.csv --prune --output results/edges
"""

import argparse
import logging
import sys

from triplelink.cli.cluster import (
    CLI_ERRORS,
    add_input_arguments,
    load_inputs,
    resolve_config,
    setup_logging,
)

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the edges subcommand."""
    parser = subparsers.add_parser(
        "edges",
        help="Print the retained sigma-band edge list",
        description=(
            "Build the top-N sigma-band co-expression graph and print its edges. "
            "With --prune, weakly linked genes are removed first."
        )
    )
    add_input_arguments(parser)
    parser.add_argument("--prune", action="store_true",
                        help="Remove weak vertices before printing")
    parser.set_defaults(func=run_edges, command_parser=parser)


def run_edges(args: argparse.Namespace) -> int:
    """Execute the edges command."""
    from triplelink.io.writers import format_edges, write_edges
    from triplelink.pipeline import build_pruned_graph

    setup_logging(args.verbose)

    try:
        config = resolve_config(args)
        matrix, gene_names = load_inputs(config)
        graph = build_pruned_graph(matrix, config, prune=args.prune)
    except CLI_ERRORS as e:
        logger.error(str(e))
        return 1

    sys.stdout.write(format_edges(graph, gene_names))
    sys.stdout.flush()
    logger.info(f"{graph.n_edges} edges among {graph.n_vertices} genes")

    if config.output is not None:
        path = write_edges(graph, gene_names, config.output / "edges.tsv")
        logger.info(f"Saved: {path}")

    return 0
