"""
Evaluation of information retrieval experiments against human relevance judgements.
"""
from .errors import (
    EvaluationError,
    InvalidInputError,
    LoaderError,
    UndefinedMetricError,
    UnsupportedOperationError,
)
from .gold_standard import (
    Document,
    GoldStandard,
    Judgement,
    Query,
    User,
    coerce_relevance,
)
from .query_result import (
    RECALL_LEVELS,
    ElevenPointPrecision,
    QueryResult,
    QueryResultSet,
    ResultDocument,
    RetrievalStatistics,
)
from .loaders import (
    load_gold_standard,
    load_gold_standard_plaintext,
    load_gold_standard_qrels,
    load_gold_standard_yaml,
    load_query_result_set,
    load_query_result_set_run,
    load_query_result_set_yaml,
    load_query_result_yaml,
    load_run_file,
)

__version__ = "0.3.0"

__all__ = [
    'EvaluationError',
    'InvalidInputError',
    'LoaderError',
    'UndefinedMetricError',
    'UnsupportedOperationError',
    'Document',
    'GoldStandard',
    'Judgement',
    'Query',
    'User',
    'coerce_relevance',
    'RECALL_LEVELS',
    'ElevenPointPrecision',
    'QueryResult',
    'QueryResultSet',
    'ResultDocument',
    'RetrievalStatistics',
    'load_gold_standard',
    'load_gold_standard_plaintext',
    'load_gold_standard_qrels',
    'load_gold_standard_yaml',
    'load_query_result_set',
    'load_query_result_set_run',
    'load_query_result_set_yaml',
    'load_query_result_yaml',
    'load_run_file',
]
