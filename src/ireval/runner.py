"""
Load a gold standard and a query result set, compute all metrics and
write them to disk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from .config import EvaluationConfig
from .errors import UndefinedMetricError
from .gold_standard import GoldStandard
from .loaders import load_gold_standard, load_query_result_set
from .query_result import QueryResultSet
from .reporting import (
    Reporter,
    format_contingency_table,
    format_eleven_point_table,
    format_ranked_table,
    save_summary_csv,
    write_yaml,
)


@dataclass
class EvaluationReport:
    statistics: Dict[str, Any] = field(default_factory=dict)
    average_precision: Dict[str, float] = field(default_factory=dict)
    eleven_point: Dict[str, Dict[float, float]] = field(default_factory=dict)
    mean_average_precision: Optional[float] = None
    kappa: Optional[float] = None
    output_files: List[Path] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        return {
            "queries": len(self.statistics),
            "mean_average_precision": self.mean_average_precision,
            "kappa": self.kappa,
            "average_precision": dict(self.average_precision),
            "output_files": [str(path) for path in self.output_files],
        }


def load_inputs(config: EvaluationConfig, reporter: Reporter) -> QueryResultSet:
    """Load the gold standard and the query results named in ``config``."""
    reporter.log(f"Loading gold standard file '{config.gold_standard_file}' ...")
    gold_standard = load_gold_standard(config.gold_standard_file, config.format)
    reporter.log(
        f"Gold standard loaded from {config.gold_standard_file} contains:\n"
        f"  - {len(gold_standard.queries)} queries\n"
        f"  - {len(gold_standard.documents)} documents\n"
        f"  - {len(gold_standard.judgements)} judgements, made by\n"
        f"  - {len(gold_standard.users)} users"
    )

    reporter.log(f"Loading query result set from file '{config.query_result_set_file}' ...")
    result_set = load_query_result_set(config.query_result_set_file, gold_standard, config.format)
    reporter.log(f"Query results loaded from {config.query_result_set_file} contain {len(result_set)} query results")
    return result_set


def _annotator_agreement(gold_standard: GoldStandard, reporter: Reporter) -> Optional[float]:
    if len(gold_standard.users) < 2:
        return None
    for (first, second), value in gold_standard.pairwise_kappas().items():
        reporter.log(f"Kappa for User {first} and {second}: {value}")
    try:
        kappa = gold_standard.kappa()
    except UndefinedMetricError as exc:
        reporter.log(str(exc))
        return None
    reporter.log(f"Average pairwise kappa: {kappa}")
    return kappa


def evaluate_result_set(result_set: QueryResultSet, config: EvaluationConfig, reporter: Reporter) -> EvaluationReport:
    """Compute statistics for every result of ``result_set`` and write the output files."""
    report = EvaluationReport()
    summary_rows = []

    results = result_set.query_results
    for result in tqdm(results, desc="Evaluating queries", disable=not config.verbose):
        query = result.query.text
        if config.cleanup:
            removed = result.cleanup()
            reporter.log(f"Removed {removed} documents without judgements from result for '{query}'")

        row: Dict[str, Any] = {"query": query, "ranked": result.ranked}
        if len(result) == 0:
            reporter.log(f"Skipping '{query}': no judged documents retrieved")
            report.statistics[query] = []
            if result.ranked:
                # Still counted by MAP
                report.average_precision[query] = result.average_precision()
                row["average_precision"] = report.average_precision[query]
            summary_rows.append(row)
            continue

        statistics = result.statistics()
        overall = result.calculate()
        report.statistics[query] = (
            [rank.as_dict() for rank in statistics] if result.ranked else statistics.as_dict()
        )
        row["precision"] = overall.precision
        row["recall"] = overall.recall
        try:
            row["f_measure"] = result.f_measure()
        except UndefinedMetricError:
            row["f_measure"] = None

        if result.ranked:
            report.average_precision[query] = result.average_precision()
            eleven_point = result.eleven_point_precision()
            report.eleven_point[query] = dict(eleven_point.points)
            row["average_precision"] = report.average_precision[query]
            row["eleven_point_average"] = eleven_point.average
            reporter.log(format_ranked_table(result))
            reporter.log(format_eleven_point_table(result))
        else:
            reporter.log(f"Query: {query}")
            reporter.log(format_contingency_table(overall))
        summary_rows.append(row)

    if result_set.ranked_results:
        report.mean_average_precision = result_set.mean_average_precision()
        reporter.log(f"The mean average precision was {report.mean_average_precision}")

    report.kappa = _annotator_agreement(result_set.gold_standard, reporter)

    report.output_files.append(write_yaml(report.statistics, config.output_path("statistics.yml")))
    report.output_files.append(write_yaml(report.average_precision, config.output_path("avg_precision.yml")))
    if config.write_csv:
        report.output_files.append(save_summary_csv(summary_rows, config.output_path("summary.csv")))

    reporter.log("Finished calculating all results.")
    return report


def evaluate(config: EvaluationConfig, reporter: Optional[Reporter] = None) -> EvaluationReport:
    """
    Run a complete evaluation as described by ``config``.

    Args:
        config: Input files, their format and the output prefix.
        reporter: Destination of verbose diagnostics; built from
            ``config.verbose`` when omitted.

    Returns:
        An EvaluationReport with all computed metrics and written files.
    """
    config.validate()
    if reporter is None:
        reporter = Reporter(verbose=config.verbose)
    result_set = load_inputs(config, reporter)
    return evaluate_result_set(result_set, config, reporter)
