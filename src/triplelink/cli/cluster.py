"""
triplelink cluster command - Triple-link co-expression clustering.

Builds the top-N sigma-band gene graph from an expression matrix (or a
precomputed correlation matrix), prunes weakly linked genes and extracts
clusters one at a time until the graph is exhausted.

Clusters are printed to stdout, one per line with tab-separated gene names
in the order genes joined the cluster. Logging goes to stderr.

Usage:
    triplelink cluster --genes genes.txt --expression expression.csv --keep-top-n 10
    triplelink cluster --correlation corr.csv --output results/run1
    triplelink cluster --config run.yaml --three-sigma 0.85
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Tuple

from triplelink.cli._validators import _correlation, _non_negative_int, _positive_int
from triplelink.cli.config import (
    ClusteringConfig,
    config_from_args,
    load_config,
    merge_config_with_args,
    validate_config,
)
from triplelink.core.matrix import UpperTriangularMatrix
from triplelink.io.loaders import GeneNotFoundError
from triplelink.network.builder import HIGH_BAND, MED_BAND

logger = logging.getLogger(__name__)

CLI_ERRORS = (FileNotFoundError, ValueError, GeneNotFoundError)


def add_input_arguments(parser: argparse.ArgumentParser) -> None:
    """Input, graph and clustering flags shared by ``cluster`` and ``edges``."""
    defaults = ClusteringConfig()

    # Input/output
    parser.add_argument("--genes", "-g", type=Path, default=None,
                        help="Gene list, one name per line; defines gene order")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--expression", "-e", type=Path, default=None,
                        help="Expression matrix CSV/TSV (genes x samples)")
    source.add_argument("--correlation", type=Path, default=None,
                        help="Precomputed square gene x gene correlation matrix CSV/TSV")
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="YAML/JSON config file (CLI flags override it)")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Output directory (optional; stdout only when omitted)")

    # Graph construction
    parser.add_argument("--keep-top-n", "-n", type=_positive_int, default=defaults.keep_top_n,
                        help=f"Edges kept per gene, strongest first (default: {defaults.keep_top_n})")
    parser.add_argument("--one-sigma", type=_correlation, default=defaults.one_sigma,
                        help=f"Minimum correlation for an edge (default: {defaults.one_sigma})")
    parser.add_argument("--two-sigma", type=_correlation, default=None,
                        help="Correlation for band 2 (default: midway between one and three sigma)")
    parser.add_argument("--three-sigma", type=_correlation, default=defaults.three_sigma,
                        help=f"Correlation for band 3 (default: {defaults.three_sigma})")
    parser.add_argument("--method", choices=["pearson", "spearman"], default=defaults.method,
                        help=f"Correlation method for --expression (default: {defaults.method})")
    parser.add_argument("--workers", type=_positive_int, default=defaults.workers,
                        help="Threads for top-N edge selection (default: 1)")

    # Clustering
    parser.add_argument("--high-cutoff", type=_non_negative_int, default=HIGH_BAND,
                        help=f"Weight for the high link marker (default: {HIGH_BAND})")
    parser.add_argument("--med-cutoff", type=_non_negative_int, default=MED_BAND,
                        help=f"Weight for the medium link marker (default: {MED_BAND})")

    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging and progress bar")


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the cluster subcommand."""
    parser = subparsers.add_parser(
        "cluster",
        help="Triple-link clustering of co-expressed genes",
        description=(
            "Build a top-N sigma-band co-expression graph, prune weakly linked "
            "genes and extract triple-link clusters. Clusters are printed to "
            "stdout, one per line."
        )
    )
    add_input_arguments(parser)
    parser.set_defaults(func=run_cluster, command_parser=parser)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


def resolve_config(args: argparse.Namespace) -> ClusteringConfig:
    """
    Merge the config file (if any) into the CLI arguments and validate.

    Raises:
        FileNotFoundError: If the config file does not exist
        ValueError: If the config or any argument is invalid
    """
    if args.config:
        logger.info(f"Loading configuration from: {args.config}")
        config = load_config(args.config)
        validate_config(config)
        args = merge_config_with_args(
            config, args,
            cli_args=getattr(args, "cli_args", None),
            parser=getattr(args, "command_parser", None),
        )

    config = config_from_args(args)
    if config.expression is None and config.correlation is None:
        raise ValueError("One of --expression or --correlation is required (via CLI or config file)")
    if config.expression is not None and config.correlation is not None:
        raise ValueError("--expression and --correlation are mutually exclusive")
    return config


def load_inputs(config: ClusteringConfig) -> Tuple[UpperTriangularMatrix, List[str]]:
    """
    Load the gene list and the correlation source named by ``config``.

    Returns:
        (upper-triangular correlation matrix, gene names in index order)
    """
    from triplelink.io.loaders import (
        load_correlation_matrix,
        load_expression_matrix,
        load_gene_list,
    )

    gene_names = None
    if config.genes is not None:
        gene_names = load_gene_list(config.genes)
        logger.info(f"Gene list: {len(gene_names)} genes from {config.genes}")

    if config.correlation is not None:
        logger.info(f"Loading correlation matrix: {config.correlation}")
        return load_correlation_matrix(config.correlation, gene_names)

    from triplelink.utils.correlation_matrix import correlation_upper_triangle

    logger.info(f"Loading expression matrix: {config.expression}")
    expression = load_expression_matrix(config.expression, gene_names)
    logger.info(f"Matrix: {expression.n_genes} genes x {expression.n_samples} samples")
    if expression.n_genes < 2:
        raise ValueError(f"At least 2 genes are required, got {expression.n_genes}")

    matrix = correlation_upper_triangle(expression.data, method=config.method)
    return matrix, expression.gene_names


def run_cluster(args: argparse.Namespace) -> int:
    """Execute the cluster command."""
    from triplelink.io.writers import format_clusters, write_clusters, write_run_summary
    from triplelink.pipeline import discover_modules

    setup_logging(args.verbose)

    try:
        config = resolve_config(args)
        matrix, gene_names = load_inputs(config)
        result = discover_modules(matrix, gene_names, config, progress=args.verbose)
    except CLI_ERRORS as e:
        logger.error(str(e))
        return 1

    sys.stdout.write(format_clusters(result.clusters, gene_names))
    sys.stdout.flush()

    logger.info(
        f"Found {len(result.clusters)} clusters covering {result.n_clustered_genes} "
        f"of {len(gene_names)} genes"
    )

    if config.output is not None:
        paths = write_clusters(result.clusters, gene_names, config.output)
        paths.append(write_run_summary(config.output, result.summary()))
        for path in paths:
            logger.info(f"Saved: {path}")

    return 0
