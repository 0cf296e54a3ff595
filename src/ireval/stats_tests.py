"""
Statistical tests for comparing two sets of query results.

Both sets are scored per query by average precision; queries present in
both sets are compared with a paired t-test and a bootstrap confidence
interval of the difference.
"""

from typing import Dict, List, Optional, Tuple

import numpy as np
from scipy import stats

from .errors import UndefinedMetricError
from .query_result import QueryResultSet


def per_query_average_precision(result_set: QueryResultSet) -> Dict[str, float]:
    """
    Compute the average precision of every ranked result.

    Args:
        result_set: The query results to score.

    Returns:
        Dictionary mapping query string to average precision.
    """
    return result_set.average_precisions()


def _paired_differences(baseline: QueryResultSet, system: QueryResultSet) -> np.ndarray:
    baseline_scores = per_query_average_precision(baseline)
    system_scores = per_query_average_precision(system)

    common_queries = sorted(set(baseline_scores.keys()) & set(system_scores.keys()))
    if len(common_queries) < 2:
        raise UndefinedMetricError("Need at least 2 common queries for a paired comparison")

    return np.array([system_scores[query] - baseline_scores[query] for query in common_queries])


def paired_t_test(baseline: QueryResultSet, system: QueryResultSet) -> Tuple[float, float, float]:
    """
    Perform a paired t-test on the per-query average precision of two result sets.

    Args:
        baseline: Results of the baseline system.
        system: Results of the system being evaluated.

    Returns:
        Tuple of (t-statistic, p-value, mean_difference) where mean_difference
        is system_score - baseline_score.
    """
    differences = _paired_differences(baseline, system)

    t_stat, p_value = stats.ttest_1samp(differences, 0.0)
    mean_difference = np.mean(differences)

    return float(t_stat), float(p_value), float(mean_difference)


def bootstrap_ci(
    baseline: QueryResultSet,
    system: QueryResultSet,
    n_bootstrap: int = 1000,
    confidence: float = 0.95,
    seed: Optional[int] = None,
) -> Tuple[float, float, float]:
    """
    Compute a bootstrap confidence interval for the difference between two result sets.

    Args:
        baseline: Results of the baseline system.
        system: Results of the system being evaluated.
        n_bootstrap: Number of bootstrap samples.
        confidence: Confidence level (e.g., 0.95 for 95% CI).
        seed: Random seed for reproducibility.

    Returns:
        Tuple of (mean_difference, lower_bound, upper_bound) for the confidence interval.
    """
    differences = _paired_differences(baseline, system)
    n_queries = len(differences)
    rng = np.random.default_rng(seed)

    bootstrap_means: List[float] = []
    for _ in range(n_bootstrap):
        # Resample with replacement
        indices = rng.integers(0, n_queries, size=n_queries)
        bootstrap_means.append(np.mean(differences[indices]))

    alpha = 1 - confidence
    lower_bound = np.percentile(bootstrap_means, 100 * alpha / 2)
    upper_bound = np.percentile(bootstrap_means, 100 * (1 - alpha / 2))
    mean_difference = np.mean(differences)

    return float(mean_difference), float(lower_bound), float(upper_bound)


def compare_result_sets(
    baseline: QueryResultSet,
    system: QueryResultSet,
    n_bootstrap: int = 1000,
    confidence: float = 0.95,
    seed: Optional[int] = None,
) -> Dict[str, float]:
    """
    Compare two result sets and return statistical test results.

    Returns:
        Dictionary with statistical test results:
        - 'baseline_map': Mean average precision of the baseline
        - 'system_map': Mean average precision of the system
        - 'mean_difference': mean per-query difference (system - baseline)
        - 't_statistic': t-statistic from paired t-test
        - 'p_value': p-value from paired t-test
        - 'ci_lower': Lower bound of bootstrap CI
        - 'ci_upper': Upper bound of bootstrap CI
        - 'confidence_level': the confidence level used
    """
    t_stat, p_value, mean_diff = paired_t_test(baseline, system)
    _, ci_lower, ci_upper = bootstrap_ci(baseline, system, n_bootstrap, confidence, seed)

    return {
        'baseline_map': baseline.mean_average_precision(),
        'system_map': system.mean_average_precision(),
        'mean_difference': mean_diff,
        't_statistic': t_stat,
        'p_value': p_value,
        'ci_lower': ci_lower,
        'ci_upper': ci_upper,
        'confidence_level': confidence,
    }
