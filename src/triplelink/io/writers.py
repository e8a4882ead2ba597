"""
Writers for clusters, edge lists and run summaries.

Clusters are reported by gene name in the order genes joined them, one
cluster per line. A long-format CSV (one row per gene) is written alongside
for loading into pandas/R. Every file is written atomically: content goes to
a temporary file in the destination directory and is moved into place with
``os.replace()``, so an interrupted run never leaves a truncated output.

Output files (``write_clusters``):
    clusters.txt  tab-separated gene names, one cluster per line
    clusters.csv  cluster_id, position, gene_index, gene

Examples:
    >>> from triplelink.io.writers import format_clusters
    >>> print(format_clusters(clusters, ["A", "B", "C", "D"]), end="")
    A	B	C
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from triplelink.clustering.triple_link import Cluster
from triplelink.core.graph import WeightedGraph

__all__ = [
    'format_clusters',
    'format_edges',
    'clusters_to_frame',
    'edges_to_frame',
    'write_clusters',
    'write_edges',
    'write_run_summary',
]

CLUSTER_COLUMNS = ['cluster_id', 'position', 'gene_index', 'gene']
EDGE_COLUMNS = ['gene_u', 'gene_v', 'weight']


def _atomic_write_text(path: Path, content: str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(path.parent), suffix=".tmp", delete=False, encoding="utf-8"
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def format_clusters(clusters: Sequence[Cluster], gene_names: Sequence[str]) -> str:
    """One line per cluster, gene names separated by tabs."""
    return "".join("\t".join(c.names(gene_names)) + "\n" for c in clusters)


def format_edges(graph: WeightedGraph, gene_names: Sequence[str]) -> str:
    """One line per live edge: ``gene_u<TAB>gene_v<TAB>weight``."""
    return "".join(
        f"{gene_names[e.u]}\t{gene_names[e.v]}\t{e.weight}\n" for e in graph.iter_edges()
    )


def clusters_to_frame(clusters: Sequence[Cluster], gene_names: Sequence[str]) -> pd.DataFrame:
    """Long-format table with one row per clustered gene."""
    rows: List[Dict[str, Any]] = []
    for cluster_id, cluster in enumerate(clusters, start=1):
        for position, index in enumerate(cluster.members):
            rows.append({
                'cluster_id': cluster_id,
                'position': position,
                'gene_index': index,
                'gene': gene_names[index],
            })
    return pd.DataFrame(rows, columns=CLUSTER_COLUMNS)


def edges_to_frame(graph: WeightedGraph, gene_names: Sequence[str]) -> pd.DataFrame:
    return pd.DataFrame(
        [(gene_names[e.u], gene_names[e.v], e.weight) for e in graph.iter_edges()],
        columns=EDGE_COLUMNS,
    )


def write_clusters(
    clusters: Sequence[Cluster],
    gene_names: Sequence[str],
    output_dir: Path,
) -> List[Path]:
    """
    Write ``clusters.txt`` and ``clusters.csv`` into ``output_dir``.

    Returns:
        Paths written
    """
    output_dir = Path(output_dir)
    text_path = output_dir / "clusters.txt"
    csv_path = output_dir / "clusters.csv"

    _atomic_write_text(text_path, format_clusters(clusters, gene_names))
    _atomic_write_text(csv_path, clusters_to_frame(clusters, gene_names).to_csv(index=False))
    return [text_path, csv_path]


def write_edges(graph: WeightedGraph, gene_names: Sequence[str], path: Path) -> Path:
    """Write the live edge list as TSV with a header row."""
    path = Path(path)
    _atomic_write_text(path, edges_to_frame(graph, gene_names).to_csv(sep="\t", index=False))
    return path


def write_run_summary(output_dir: Path, summary: Dict[str, Any]) -> Path:
    """Write ``run.json`` (parameters and graph statistics) into ``output_dir``."""
    path = Path(output_dir) / "run.json"
    _atomic_write_text(path, json.dumps(summary, indent=2, default=str) + "\n")
    return path
