"""
Gold standard of human relevance judgements.

A gold standard holds the judgements made for the cartesian product of
documents and queries, optionally attributed to the users (annotators)
who made them. It answers whether a document is relevant for a query by
majority vote and measures inter-annotator agreement with Cohen's kappa.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from .errors import InvalidInputError, UndefinedMetricError

JudgementKey = Tuple[str, str]

_TRUE_STRINGS = {"true", "t", "yes", "y", "1", "relevant"}
_FALSE_STRINGS = {"false", "f", "no", "n", "0", "nonrelevant", "non-relevant"}


@dataclass(frozen=True)
class Document:
    """A judged resource, identified by its id only."""

    id: str


@dataclass(frozen=True)
class Query:
    """A query, identified by its query string."""

    text: str


@dataclass(frozen=True, eq=False)
class Judgement:
    """
    One assertion that a document is (or is not) relevant to a query.

    Two judgements compare equal when they refer to the same document and
    query, regardless of the relevance value or the user who made them.
    """

    document: Document
    query: Query
    relevant: bool
    user: Optional[Hashable] = None

    @property
    def key(self) -> JudgementKey:
        return (self.document.id, self.query.text)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Judgement):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass
class User:
    """An annotator and the judgements they made, at most one per pair."""

    id: Hashable
    _judgements: Dict[JudgementKey, Judgement] = field(default_factory=dict, repr=False)

    @property
    def judgements(self) -> List[Judgement]:
        return list(self._judgements.values())

    def add_judgement(self, judgement: Judgement) -> bool:
        # Repeated judgements for the same pair are not useful for kappa.
        if judgement.key in self._judgements:
            return False
        self._judgements[judgement.key] = judgement
        return True

    def judgement_for(self, key: JudgementKey) -> Optional[Judgement]:
        return self._judgements.get(key)

    def __len__(self) -> int:
        return len(self._judgements)


@dataclass
class VoteTally:
    relevant: int = 0
    nonrelevant: int = 0

    def add(self, relevant: bool) -> None:
        if relevant:
            self.relevant += 1
        else:
            self.nonrelevant += 1

    @property
    def total(self) -> int:
        return self.relevant + self.nonrelevant

    @property
    def majority(self) -> bool:
        # Ties resolve to relevant.
        return self.total > 0 and self.relevant >= self.nonrelevant


def coerce_relevance(value: Any) -> Optional[bool]:
    """
    Normalize a relevance value coming from a judgement record.

    Args:
        value: ``None`` (unspecified), a bool, a numeric grade (relevant
            when > 0) or a string such as ``"true"``/``"false"``/``"1"``.

    Returns:
        ``True``, ``False`` or ``None`` for unspecified relevance.

    Raises:
        InvalidInputError: If the value cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return None
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        try:
            return float(text) > 0
        except ValueError:
            pass
    raise InvalidInputError(f"Unrecognised relevance value: {value!r}")


class GoldStandard:
    """
    Judgements for documents and queries, optionally made by several users.

    Documents and queries are deduplicated by id / query string. Every
    judgement is kept (one per user and call), while each user keeps at most
    one judgement per document/query pair.
    """

    def __init__(self, triples: Optional[Iterable[Mapping[str, Any]]] = None):
        self._documents: Dict[str, Document] = {}
        self._queries: Dict[str, Query] = {}
        self._judgements: List[Judgement] = []
        self._users: Dict[Hashable, User] = {}
        # query string -> document id -> votes
        self._votes: Dict[str, Dict[str, VoteTally]] = {}

        if triples is not None:
            for triple in triples:
                self.add_triple(triple)

    @property
    def documents(self) -> List[Document]:
        return list(self._documents.values())

    @property
    def queries(self) -> List[Query]:
        return list(self._queries.values())

    @property
    def judgements(self) -> List[Judgement]:
        return list(self._judgements)

    @property
    def users(self) -> Dict[Hashable, User]:
        return dict(self._users)

    def document_ids(self) -> List[str]:
        return list(self._documents.keys())

    def add_judgement(
        self,
        document: Any,
        query: Any,
        relevant: Any = None,
        user: Optional[Hashable] = None,
    ) -> Optional[Judgement]:
        """
        Add a judgement (document, query, relevance) to the gold standard.

        A judgement with unspecified relevance only registers the document
        and query as known; no judgement or vote is recorded.

        Args:
            document: The document id.
            query: The query string.
            relevant: Relevance value, see :func:`coerce_relevance`.
            user: Optional id of the user who made the judgement.

        Returns:
            The recorded Judgement, or None for unspecified relevance.

        Raises:
            InvalidInputError: If the document id or query string is missing.
        """
        if document is None or query is None:
            raise InvalidInputError(
                "Need at least a document and a query for creating a judgement."
            )
        relevance = coerce_relevance(relevant)

        doc = self._documents.setdefault(str(document), Document(str(document)))
        qry = self._queries.setdefault(str(query), Query(str(query)))
        if relevance is None:
            return None

        judgement = Judgement(document=doc, query=qry, relevant=relevance, user=user)
        if user is not None:
            if user not in self._users:
                self._users[user] = User(user)
            self._users[user].add_judgement(judgement)

        self._judgements.append(judgement)
        self._votes.setdefault(qry.text, {}).setdefault(doc.id, VoteTally()).add(relevance)
        return judgement

    def add_triple(self, triple: Mapping[str, Any]) -> Optional[Judgement]:
        """Add a judgement from a ``{document, query, relevant, user}`` record."""
        return self.add_judgement(
            triple.get("document", triple.get("document_id")),
            triple.get("query"),
            triple.get("relevant"),
            triple.get("user"),
        )

    def _tally(self, document: Any, query: Any) -> Optional[VoteTally]:
        return self._votes.get(str(query), {}).get(str(document))

    def is_relevant(self, document: Any, query: Any) -> bool:
        """Majority vote over all judgements for the pair; ties count as relevant."""
        tally = self._tally(document, query)
        return tally is not None and tally.majority

    def relevant_document_ids(self, query: Any) -> List[str]:
        return [doc_id for doc_id, tally in self._votes.get(str(query), {}).items() if tally.majority]

    def contains_judgement(self, document: Any, query: Any) -> bool:
        return self._tally(document, query) is not None

    def contains_document(self, document: Any) -> bool:
        return str(document) in self._documents

    def contains_query(self, query: Any) -> bool:
        return str(query) in self._queries

    def contains_user(self, user: Hashable) -> bool:
        return user in self._users

    def pairwise_kappa(self, first: Hashable, second: Hashable) -> Optional[float]:
        """
        Cohen's kappa for two users over the pairs both of them judged.

        Pairs are aligned by (document, query) in the first user's order.
        Returns None if the users have no judged pair in common.

        Raises:
            InvalidInputError: If either user is unknown.
        """
        for user in (first, second):
            if user not in self._users:
                raise InvalidInputError(f"Unknown user: {user!r}")
        user1 = self._users[first]
        user2 = self._users[second]

        positive_agreements = 0
        negative_agreements = 0
        negative_disagreements = 0  # first says relevant, second nonrelevant
        positive_disagreements = 0  # first says nonrelevant, second relevant
        for judgement in user1.judgements:
            other = user2.judgement_for(judgement.key)
            if other is None:
                continue
            if judgement.relevant:
                if other.relevant:
                    positive_agreements += 1
                else:
                    negative_disagreements += 1
            elif other.relevant:
                positive_disagreements += 1
            else:
                negative_agreements += 1

        total_count = (
            positive_agreements + negative_agreements + negative_disagreements + positive_disagreements
        )
        if total_count == 0:
            return None

        p_agreed = (positive_agreements + negative_agreements) / total_count
        # Pooled marginals
        p_nonrelevant = (
            positive_disagreements + negative_agreements * 2 + negative_disagreements
        ) / (total_count * 2)
        p_relevant = 1 - p_nonrelevant
        p_chance = p_nonrelevant ** 2 + p_relevant ** 2

        if p_agreed == p_chance:
            return 0.0
        return (p_agreed - p_chance) / (1 - p_chance)

    def pairwise_kappas(self) -> Dict[Tuple[Hashable, Hashable], float]:
        """Kappa for every unordered pair of distinct users with common judgements."""
        kappas = {}
        for first, second in combinations(self._users.keys(), 2):
            value = self.pairwise_kappa(first, second)
            if value is not None:
                kappas[(first, second)] = value
        return kappas

    def kappa(self) -> float:
        """
        Average pairwise Cohen's kappa over all pairs of users.

        See: http://nlp.stanford.edu/IR-book/html/htmledition/assessing-relevance-1.html

        Raises:
            UndefinedMetricError: If no pair of users has a judgement in common.
        """
        kappas = self.pairwise_kappas()
        if not kappas:
            raise UndefinedMetricError("Kappa is undefined: no two users judged a common pair.")
        return float(np.mean(list(kappas.values())))

    def __repr__(self) -> str:
        return (
            f"GoldStandard(queries={len(self._queries)}, documents={len(self._documents)}, "
            f"judgements={len(self._judgements)}, users={len(self._users)})"
        )
