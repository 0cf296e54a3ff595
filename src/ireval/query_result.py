"""
Query results and the metrics computed from them.

A QueryResult holds the documents retrieved for one query, in rank order,
and scores them against a GoldStandard:
- precision, recall and the contingency table
- F-measure
- per-rank precision/recall, average precision and 11-point
  interpolated precision (ranked results only)

A QueryResultSet combines several results evaluated against the same gold
standard and computes the mean average precision.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

import numpy as np

from .errors import InvalidInputError, UndefinedMetricError, UnsupportedOperationError
from .gold_standard import Document, GoldStandard, Query

RECALL_LEVELS = tuple(level / 10 for level in range(11))


@dataclass(frozen=True)
class ResultDocument:
    """A retrieved document. The score is informational; rank is the list position."""

    id: str
    score: Optional[float] = None

    @property
    def document(self) -> Document:
        return Document(self.id)


@dataclass(frozen=True)
class RetrievalStatistics:
    """
    Precision, recall and contingency counts for a set of retrieved documents.

    For a prefix of a ranked result, ``document`` and ``relevant`` describe the
    last document of the prefix.
    """

    precision: float
    recall: float
    true_positives: int
    false_positives: int
    true_negatives: int
    false_negatives: int
    document: Optional[str] = None
    relevant: Optional[bool] = None

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.document is None:
            del data["document"]
            del data["relevant"]
        return data


@dataclass(frozen=True)
class ElevenPointPrecision:
    """Interpolated precision at the recall levels 0.0, 0.1, ..., 1.0."""

    points: Dict[float, float]
    average: float

    def values(self) -> List[float]:
        return list(self.points.values())


class QueryResult:
    """
    The documents retrieved for one query.

    A ranked result takes the order in which documents were added as their
    rank; an unranked result treats them as a set. Operations that need a
    ranking raise UnsupportedOperationError on unranked results.
    """

    def __init__(
        self,
        query: Any,
        gold_standard: GoldStandard,
        ranked: bool = True,
        documents: Optional[Iterable[Union[str, Mapping[str, Any], ResultDocument]]] = None,
    ):
        if query is None:
            raise InvalidInputError("Can not create a query result without a query string.")
        if gold_standard is None:
            raise InvalidInputError("Can not create a query result without a gold standard.")

        self.query = Query(str(query))
        self.gold_standard = gold_standard
        self.ranked = bool(ranked)
        self._documents: List[ResultDocument] = []
        self._statistics: Optional[List[RetrievalStatistics]] = None

        for item in documents or ():
            if isinstance(item, ResultDocument):
                self._append(item)
            elif isinstance(item, Mapping):
                self.add_document(item.get("document"), item.get("score"), id=item.get("id"))
            else:
                self.add_document(item)

    @property
    def documents(self) -> List[ResultDocument]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __repr__(self) -> str:
        kind = "ranked" if self.ranked else "unranked"
        return f"QueryResult({self.query.text!r}, {kind}, documents={len(self._documents)})"

    def _append(self, document: ResultDocument) -> None:
        self._documents.append(document)
        self._statistics = None

    def add_document(
        self,
        document: Any = None,
        score: Optional[float] = None,
        *,
        id: Any = None,
    ) -> ResultDocument:
        """
        Append a retrieved document; call order defines the rank.

        The identifier may be given either as ``document`` or as ``id``.

        Raises:
            InvalidInputError: If neither identifier is given.
        """
        document_id = document if document is not None else id
        if document_id is None:
            raise InvalidInputError(
                "Can not add a document to a query result without a document identifier."
            )
        result_document = ResultDocument(str(document_id), None if score is None else float(score))
        self._append(result_document)
        return result_document

    def cleanup(self) -> int:
        """
        Drop every document that has no judgement for this query.

        Unjudged documents are excluded from evaluation instead of being
        counted as nonrelevant. Returns the number of documents removed.
        """
        kept = [
            doc
            for doc in self._documents
            if self.gold_standard.contains_judgement(doc.id, self.query.text)
        ]
        removed = len(self._documents) - len(kept)
        if removed:
            self._documents = kept
            self._statistics = None
        return removed

    def calculate(self, documents: Optional[Sequence[ResultDocument]] = None) -> RetrievalStatistics:
        """
        Compute precision, recall and the contingency table for ``documents``.

        Args:
            documents: The retrieved documents to score. Defaults to all
                documents of this result. When a sub-sequence is given, the
                last document and its relevance are reported as well.

        Raises:
            UndefinedMetricError: If no documents were retrieved.
        """
        prefix = documents is not None
        if documents is None:
            documents = self._documents

        standard = self.gold_standard
        query = self.query.text

        all_items = len(standard.document_ids())
        retrieved_items = len(documents)
        not_retrieved_items = all_items - retrieved_items
        if retrieved_items == 0:
            raise UndefinedMetricError(
                f"Precision is undefined for query {query!r}: no documents were retrieved."
            )

        retrieved_relevant = sum(1 for doc in documents if standard.is_relevant(doc.id, query))
        retrieved_nonrelevant = retrieved_items - retrieved_relevant

        retrieved_ids = {doc.id for doc in documents}
        not_retrieved_relevant = sum(
            1 for doc_id in standard.relevant_document_ids(query) if doc_id not in retrieved_ids
        )
        not_retrieved_nonrelevant = not_retrieved_items - not_retrieved_relevant

        relevant_items = retrieved_relevant + not_retrieved_relevant
        precision = retrieved_relevant / retrieved_items
        recall = retrieved_relevant / relevant_items if relevant_items != 0 else 0.0

        last_document = None
        last_relevant = None
        if prefix:
            last_document = documents[-1].id
            last_relevant = standard.is_relevant(last_document, query)

        return RetrievalStatistics(
            precision=precision,
            recall=recall,
            true_positives=retrieved_relevant,
            false_positives=retrieved_nonrelevant,
            true_negatives=not_retrieved_nonrelevant,
            false_negatives=not_retrieved_relevant,
            document=last_document,
            relevant=last_relevant,
        )

    def _require_ranked(self, operation: str) -> None:
        if not self.ranked:
            raise UnsupportedOperationError(
                f"{operation} is only available for ranked results (query {self.query.text!r})."
            )

    def statistics(
        self, max_rank: Optional[int] = None
    ) -> Union[List[RetrievalStatistics], RetrievalStatistics]:
        """
        Statistics for this result, computed once and cached.

        For a ranked result this is a list with one entry per rank ``i``,
        computed over the top ``i`` documents; ``max_rank`` limits the list
        (``None``, 0 or anything beyond the result size means all ranks).
        For an unranked result it is a single entry over all documents.

        Raises:
            InvalidInputError: If ``max_rank`` is negative.
        """
        if max_rank is not None and max_rank < 0:
            raise InvalidInputError(f"max_rank must not be negative, got {max_rank}")
        if not self.ranked:
            if max_rank:
                self._require_ranked("Per-rank statistics")
            if self._statistics is None:
                self._statistics = [self.calculate()]
            return self._statistics[0]

        if self._statistics is None:
            self._statistics = [
                self.calculate(self._documents[:rank]) for rank in range(1, len(self._documents) + 1)
            ]
        if not max_rank or max_rank > len(self._statistics):
            return list(self._statistics)
        return self._statistics[:max_rank]

    def f_measure(self, alpha: Optional[float] = None, beta: float = 1.0) -> float:
        """
        Weighted harmonic mean of precision and recall over all documents.

        See: http://nlp.stanford.edu/IR-book/html/htmledition/evaluation-of-unranked-retrieval-sets-1.html

        Args:
            alpha: Weight of precision in (0, 1]; takes precedence over beta.
            beta: Relative weight of recall (beta^2 = (1 - alpha) / alpha).

        Raises:
            InvalidInputError: If alpha is outside (0, 1].
            UndefinedMetricError: If precision and recall give a zero denominator.
        """
        results = self.calculate()
        precision = results.precision
        recall = results.recall

        if alpha is not None:
            alpha = float(alpha)
            if not 0 < alpha <= 1:
                raise InvalidInputError(f"alpha must be in (0, 1], got {alpha}")
            beta_squared = (1 - alpha) / alpha
        else:
            beta_squared = float(beta) ** 2

        denominator = beta_squared * precision + recall
        if denominator == 0:
            raise UndefinedMetricError(
                f"F-measure is undefined for query {self.query.text!r}: precision and recall are zero."
            )
        return ((beta_squared + 1) * precision * recall) / denominator

    def average_precision(self) -> float:
        """
        Sum of the precision at each relevant retrieved rank, divided by the
        number of documents relevant to the query in the gold standard.
        """
        self._require_ranked("Average precision")
        total_relevant = len(self.gold_standard.relevant_document_ids(self.query.text))
        if total_relevant == 0:
            return 0.0
        ranks = self.statistics()
        return sum(rank.precision for rank in ranks if rank.relevant) / total_relevant

    def eleven_point_precision(self) -> ElevenPointPrecision:
        """
        Interpolated precision at the 11 standard recall levels.

        Each level takes the precision at the first observed recall that is
        equal to or higher than the level, or 0 if there is none.
        See: http://nlp.stanford.edu/IR-book/html/htmledition/evaluation-of-ranked-retrieval-results-1.html
        """
        self._require_ranked("11-point precision")

        recall_levels: Dict[float, float] = {}
        for rank in self.statistics():
            recall_levels[rank.recall] = rank.precision

        points: Dict[float, float] = {}
        for level in RECALL_LEVELS:
            points[level] = 0.0
            for recall, precision in recall_levels.items():
                if recall >= level:
                    points[level] = precision
                    break

        return ElevenPointPrecision(points=points, average=sum(points.values()) / len(RECALL_LEVELS))


class QueryResultSet:
    """Several query results evaluated against the same gold standard."""

    def __init__(self, gold_standard: GoldStandard, query_results: Optional[Iterable[QueryResult]] = None):
        if gold_standard is None:
            raise InvalidInputError("Can not create a query result set without a gold standard.")
        self.gold_standard = gold_standard
        self._query_results: List[QueryResult] = []
        for result in query_results or ():
            self.add_result(result)

    @property
    def query_results(self) -> List[QueryResult]:
        return list(self._query_results)

    @property
    def ranked_results(self) -> List[QueryResult]:
        return [result for result in self._query_results if result.ranked]

    def __len__(self) -> int:
        return len(self._query_results)

    def __iter__(self) -> Iterator[QueryResult]:
        return iter(self._query_results)

    def add_result(self, result: QueryResult) -> QueryResult:
        if result.gold_standard is not self.gold_standard:
            raise InvalidInputError(
                f"Query result for {result.query.text!r} uses a different gold standard."
            )
        self._query_results.append(result)
        return result

    def new_result(
        self,
        query: Any,
        ranked: bool = True,
        documents: Optional[Iterable[Union[str, Mapping[str, Any], ResultDocument]]] = None,
    ) -> QueryResult:
        """Create a result bound to this set's gold standard and add it."""
        return self.add_result(QueryResult(query, self.gold_standard, ranked=ranked, documents=documents))

    def average_precisions(self) -> Dict[str, float]:
        return {result.query.text: result.average_precision() for result in self.ranked_results}

    def mean_average_precision(self) -> float:
        """
        Mean of the average precision over all ranked results.

        Raises:
            UndefinedMetricError: If the set holds no ranked result.
        """
        ranked = self.ranked_results
        if not ranked:
            raise UndefinedMetricError("Mean average precision is undefined without ranked results.")
        return float(np.mean([result.average_precision() for result in ranked]))
