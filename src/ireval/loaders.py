"""
Loading gold standards and query result sets from files.

Supported gold standard formats:
- YAML: a list of queries, each with judged documents
- plain: tab-separated ``query  document  relevant  [user]`` lines
- TREC qrels: ``qid iter docid rel`` (or ``qid docid rel``)

Supported result formats:
- YAML: a list of queries, each with a ``ranked`` flag and documents
- run files: CSV (``qid,docid,score``) or TREC (``qid Q0 docid rank score tag``)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .errors import EvaluationError, LoaderError
from .gold_standard import GoldStandard, coerce_relevance
from .query_result import QueryResult, QueryResultSet

PathLike = Union[str, Path]
FORMATS = ("yaml", "plain")


def _read_yaml(path: PathLike) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise LoaderError(f"Error while parsing the YAML document {path}: {exc}") from exc


def _expect_list(data: Any, path: PathLike) -> List[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise LoaderError(f"Expected a list of entries in {path}, got {type(data).__name__}")
    return data


def _coerce_flag(value: Any) -> bool:
    # "false", "no", 0 and a missing value all mean False
    return bool(coerce_relevance(value))


def load_gold_standard_yaml(path: PathLike, gold_standard: Optional[GoldStandard] = None) -> GoldStandard:
    """
    Load judgements from a YAML file.

    Expected format::

        - query: 12th air force germany 1957
          documents:
          - id: g5701s.ict21311
            judgements: []
          - id: g5701s.ict21313
            judgements:
            - relevant: false
              user: 2

    A document without judgements is registered as known for the query.

    Args:
        path: Path to the YAML file.
        gold_standard: Gold standard to add to (a new one by default).

    Returns:
        The populated GoldStandard.
    """
    standard = gold_standard if gold_standard is not None else GoldStandard()

    for index, entry in enumerate(_expect_list(_read_yaml(path), path)):
        try:
            query = entry.get("query")
            for doc in entry.get("documents") or []:
                document = doc.get("id", doc.get("document"))
                judgements = doc.get("judgements") or []
                if not judgements:
                    standard.add_judgement(document, query, None)
                    continue
                for judgement in judgements:
                    standard.add_judgement(
                        document, query, judgement.get("relevant"), judgement.get("user")
                    )
        except (AttributeError, EvaluationError) as exc:
            raise LoaderError(f"Error while parsing entry {index + 1} of {path}: {exc}") from exc

    return standard


def load_gold_standard_plaintext(path: PathLike, gold_standard: Optional[GoldStandard] = None) -> GoldStandard:
    """
    Load judgements from a tab-separated file.

    Every line holds ``query<TAB>document<TAB>relevant``, optionally followed
    by ``<TAB>user``. Lines with another number of columns are skipped.
    """
    standard = gold_standard if gold_standard is not None else GoldStandard()

    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, start=1):
            info = line.rstrip("\r\n").split("\t")
            if len(info) not in (3, 4):
                continue
            user = info[3] if len(info) == 4 and info[3] else None
            try:
                standard.add_judgement(info[1], info[0], info[2], user)
            except EvaluationError as exc:
                raise LoaderError(f"Error while parsing line {line_num} of {path}: {exc}") from exc

    return standard


def load_gold_standard_qrels(path: PathLike, gold_standard: Optional[GoldStandard] = None) -> GoldStandard:
    """
    Load judgements from a TREC qrels file.

    Expected format: ``qid iter docid relevance`` or ``qid docid relevance``
    (space or tab separated). A document is relevant when its grade is > 0.
    """
    standard = gold_standard if gold_standard is not None else GoldStandard()

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            parts = line.split()
            if len(parts) < 3:
                continue
            qid = parts[0]
            docid = parts[-2]
            try:
                relevance = int(parts[-1])
            except ValueError:
                # Header line
                continue
            standard.add_judgement(docid, qid, relevance > 0)

    return standard


def load_query_result_set_yaml(path: PathLike, gold_standard: GoldStandard) -> QueryResultSet:
    """
    Load query results from a YAML file.

    Expected format::

        - query: Test query
          ranked: true
          documents:
            - id: first_document.txt
              score: 95
            - id: second_document.txt
              score: 38
    """
    result_set = QueryResultSet(gold_standard)

    for index, entry in enumerate(_expect_list(_read_yaml(path), path)):
        try:
            result = QueryResult(entry.get("query"), gold_standard, ranked=_coerce_flag(entry.get("ranked")))
            for doc in entry.get("documents") or []:
                result.add_document(doc.get("document"), doc.get("score"), id=doc.get("id"))
        except (AttributeError, EvaluationError) as exc:
            raise LoaderError(f"Error while parsing entry {index + 1} of {path}: {exc}") from exc
        result_set.add_result(result)

    return result_set


def load_query_result_yaml(
    path: PathLike,
    query: str,
    gold_standard: GoldStandard,
    ranked: bool = True,
) -> QueryResult:
    """
    Load the documents of a single query result from a YAML list of
    ``{document: <id>, score: <score>}`` entries.
    """
    result = QueryResult(query, gold_standard, ranked=ranked)
    for index, entry in enumerate(_expect_list(_read_yaml(path), path)):
        try:
            result.add_document(entry.get("document"), entry.get("score"), id=entry.get("id"))
        except (AttributeError, EvaluationError) as exc:
            raise LoaderError(f"Error while parsing entry {index + 1} of {path}: {exc}") from exc
    return result


def load_run_file(filepath: PathLike) -> Dict[str, List[Tuple[str, float]]]:
    """
    Load a retrieval run file in CSV or TREC format.

    Expected CSV format: qid,docid,score (header optional)
    Expected TREC format: qid Q0 docid rank score runname

    Args:
        filepath: Path to the run file.

    Returns:
        Dictionary mapping query_id to list of (doc_id, score) tuples,
        sorted by score in descending order.
    """
    run: Dict[str, List[Tuple[str, float]]] = {}

    with open(filepath, 'r', encoding='utf-8') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            if ',' in line:
                parts = [p.strip() for p in line.split(',')]
                if len(parts) < 3:
                    continue
                qid, docid, score_field = parts[0], parts[1], parts[2]
            else:
                parts = line.split()
                # TREC format first (6 fields), then plain "qid docid score"
                if len(parts) >= 6:
                    qid, docid, score_field = parts[0], parts[2], parts[4]
                elif len(parts) >= 3:
                    qid, docid, score_field = parts[0], parts[1], parts[2]
                else:
                    continue

            try:
                score = float(score_field)
            except ValueError:
                # Header line
                continue

            run.setdefault(qid, []).append((docid, score))

    # sort is stable, equal scores keep file order
    for qid in run:
        run[qid].sort(key=lambda x: x[1], reverse=True)

    return run


def load_query_result_set_run(path: PathLike, gold_standard: GoldStandard) -> QueryResultSet:
    """Load a run file; every query becomes a ranked result ordered by score."""
    result_set = QueryResultSet(gold_standard)
    for qid, ranking in load_run_file(path).items():
        documents = [{"id": doc_id, "score": score} for doc_id, score in ranking]
        result_set.new_result(qid, ranked=True, documents=documents)
    return result_set


def load_gold_standard(path: PathLike, fmt: str = "yaml") -> GoldStandard:
    """Load a gold standard in the given format (``yaml`` or ``plain``)."""
    if fmt == "yaml":
        return load_gold_standard_yaml(path)
    if fmt == "plain":
        return load_gold_standard_plaintext(path)
    raise LoaderError(f"Unsupported format '{fmt}'. Choose one of: {', '.join(FORMATS)}")


def load_query_result_set(path: PathLike, gold_standard: GoldStandard, fmt: str = "yaml") -> QueryResultSet:
    """Load a query result set in the given format (``yaml`` or ``plain`` run files)."""
    if fmt == "yaml":
        return load_query_result_set_yaml(path, gold_standard)
    if fmt == "plain":
        return load_query_result_set_run(path, gold_standard)
    raise LoaderError(f"Unsupported format '{fmt}'. Choose one of: {', '.join(FORMATS)}")
