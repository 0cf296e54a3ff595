"""
Text tables, YAML and CSV output for evaluation results.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO, Union

import pandas as pd
import yaml

from .errors import InvalidInputError
from .query_result import QueryResult, RetrievalStatistics

PathLike = Union[str, Path]

SUMMARY_COLUMNS = [
    'query',
    'ranked',
    'precision',
    'recall',
    'f_measure',
    'average_precision',
    'eleven_point_average',
]


def format_contingency_table(stats: RetrievalStatistics) -> str:
    """Render the retrieved/relevant contingency table of a statistics record."""
    tp = stats.true_positives
    fp = stats.false_positives
    tn = stats.true_negatives
    fn = stats.false_negatives

    rule = "-" * 57
    lines = [
        "\t\t| Relevant\t| Nonrelevant\t| Total",
        rule,
        f"Retrieved\t| {tp} \t\t| {fp} \t\t| {tp + fp} ",
        f"Not Retrieved\t| {fn} \t\t| {tn} \t\t| {fn + tn} ",
        rule,
        f"\t\t| {tp + fn} \t\t| {fp + tn} \t\t| {tp + fp + tn + fn}",
    ]
    return "\n".join(lines) + "\n"


def format_ranked_table(result: QueryResult) -> str:
    """Render per-rank relevance, precision and recall of a ranked result."""
    lines = [
        f"Query: {result.query.text}",
        "Index\tRelevant\tPrecision\tRecall\tScore\t\tDocument ID",
    ]
    for index, (row, doc) in enumerate(zip(result.statistics(), result.documents), start=1):
        relevant = "[X]" if row.relevant else "[ ]"
        score = "" if doc.score is None else f"{doc.score:g}"
        lines.append(
            f"{index}\t{relevant}\t\t{row.precision:.3f}\t\t{row.recall:.3f}\t{score}\t\t{doc.id}"
        )
    return "\n".join(lines) + "\n"


def format_eleven_point_table(result: QueryResult) -> str:
    """Render the 11-point interpolated precision of a ranked result."""
    data = result.eleven_point_precision()
    lines = ["Recall\tInterpolated Precision"]
    for recall, precision in data.points.items():
        lines.append(f"{recall:.1f}\t{precision:.3f}")
    lines.append("-" * 38)
    lines.append(f"Avg.\t{data.average:.3f}")
    return "\n".join(lines) + "\n"


def write_yaml(data: Mapping[str, Any], path: PathLike) -> Path:
    """Write a mapping to a YAML file, creating the parent directory if needed."""
    if data is None or path is None:
        raise InvalidInputError("Must pass filename and data in order to write to file!")

    output_dir = Path(path).parent
    if str(output_dir) != '.':
        os.makedirs(output_dir, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(_plain(data), f, sort_keys=False, allow_unicode=True)
    return Path(path)


def _plain(value: Any) -> Any:
    # YAML safe_dump only knows builtin types
    if isinstance(value, RetrievalStatistics):
        return _plain(value.as_dict())
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if hasattr(value, 'item'):
        return value.item()
    return value


def save_summary_csv(rows: List[Dict[str, Any]], output_path: PathLike) -> Path:
    """
    Save one summary row per query to a CSV file.

    Args:
        rows: Dictionaries with the keys in ``SUMMARY_COLUMNS``; missing
            metrics (e.g. average precision of an unranked result) are left empty.
        output_path: Path to output CSV file.
    """
    output_dir = Path(output_path).parent
    if str(output_dir) != '.':
        os.makedirs(output_dir, exist_ok=True)

    df = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    df.to_csv(output_path, index=False)
    return Path(output_path)


class Reporter:
    """Prints progress and diagnostic tables when running verbosely."""

    def __init__(self, verbose: bool = False, stream: Optional[TextIO] = None):
        self.verbose = verbose
        self.stream = stream if stream is not None else sys.stdout

    def log(self, message: str) -> None:
        if self.verbose:
            print(message, file=self.stream)
