"""In-process index engine evaluating a subset of the Elasticsearch query DSL.

Supported clauses: bool (must, filter, must_not), match_all, multi_match
(best_fields, fuzziness AUTO or an integer, field boosts), term and
range. Text is analyzed like the standard analyzer: lowercased and split
on anything that is not a letter or digit. Keyword sub-fields
("name.keyword") resolve to the raw source value.
"""

import copy
import math
import re
from typing import Any

import structlog

from itemsync.errors import IndexEngineError
from itemsync.search.engine import IndexHealth, RawHit, RawQueryResult

logger = structlog.get_logger()

_TOKEN_PATTERN = re.compile(r"[^\W_]+")

_DEFAULT_SIZE = 10


def analyze(text: str) -> list[str]:
    """Split text into lowercase alphanumeric tokens."""
    return _TOKEN_PATTERN.findall(text.lower())


def auto_fuzziness(term: str) -> int:
    """Allowed edits for a term under fuzziness AUTO (0..2, 3..5, 6+)."""
    if len(term) <= 2:
        return 0
    if len(term) <= 5:
        return 1
    return 2


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance counting an adjacent transposition as one edit."""
    rows = len(a) + 1
    cols = len(b) + 1
    dist = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        dist[i][0] = i
    for j in range(cols):
        dist[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            dist[i][j] = min(
                dist[i - 1][j] + 1,
                dist[i][j - 1] + 1,
                dist[i - 1][j - 1] + cost,
            )
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                dist[i][j] = min(dist[i][j], dist[i - 2][j - 2] + 1)
    return dist[-1][-1]


def _source_value(source: dict[str, Any], field: str) -> Any:
    if field.endswith(".keyword"):
        field = field[: -len(".keyword")]
    return source.get(field)


def _parse_field(entry: str) -> tuple[str, float]:
    name, _, boost = entry.partition("^")
    return name, float(boost) if boost else 1.0


def _term_score(term: str, tokens: list[str], fuzziness: int | str | None) -> float:
    """Best match weight of one query term against a field's tokens."""
    if term in tokens:
        return 1.0
    if fuzziness in (None, 0, "0"):
        return 0.0
    allowed = auto_fuzziness(term) if fuzziness == "AUTO" else int(fuzziness)
    best = 0.0
    for token in tokens:
        if abs(len(token) - len(term)) > allowed:
            continue
        distance = edit_distance(term, token)
        if distance <= allowed:
            best = max(best, 1.0 - distance / (len(term) + 1))
    return best


def _field_score(
    terms: list[str],
    text: Any,
    fuzziness: int | str | None,
    operator: str,
) -> float:
    if not isinstance(text, str):
        return 0.0
    tokens = analyze(text)
    if not tokens:
        return 0.0
    weights = [_term_score(term, tokens, fuzziness) for term in terms]
    if operator == "and" and not all(weights):
        return 0.0
    # Shorter fields rank higher for the same matches, as with BM25
    return sum(weights) / math.sqrt(len(tokens))


def _in_range(value: Any, bounds: dict[str, Any]) -> bool:
    if value is None:
        return False
    checks = {
        "gte": lambda b: value >= b,
        "gt": lambda b: value > b,
        "lte": lambda b: value <= b,
        "lt": lambda b: value < b,
    }
    return all(checks[op](bound) for op, bound in bounds.items() if op in checks)


class MemoryIndexEngine:
    """Dictionary-backed index engine for development and tests.

    Mirrors the Elasticsearch engine's observable behavior closely
    enough for the query builder and synchronizer to run unchanged:
    writes are visible immediately (as with refresh=true).
    """

    def __init__(self, index: str = "items") -> None:
        self.index = index
        self._mapping: dict[str, Any] | None = None
        self._docs: dict[str, dict[str, Any]] = {}

    async def ensure_index(self, mapping: dict[str, Any]) -> bool:
        if self._mapping is not None:
            return False
        self._mapping = copy.deepcopy(mapping)
        logger.info("memory_index_created", index=self.index)
        return True

    async def put(self, doc_id: str, document: dict[str, Any]) -> None:
        self._docs[doc_id] = copy.deepcopy(document)

    async def update(
        self,
        doc_id: str,
        fields: dict[str, Any],
        upsert: dict[str, Any] | None = None,
    ) -> None:
        current = self._docs.get(doc_id)
        if current is None:
            if upsert is None:
                raise IndexEngineError(f"update: document missing [{doc_id}]")
            self._docs[doc_id] = copy.deepcopy(upsert)
            return
        current.update(copy.deepcopy(fields))

    async def delete(self, doc_id: str) -> None:
        self._docs.pop(doc_id, None)

    async def get(self, doc_id: str) -> dict[str, Any] | None:
        """Stored source for a document id, or None."""
        document = self._docs.get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def query(self, body: dict[str, Any]) -> RawQueryResult:
        clause = body.get("query", {"match_all": {}})
        matches: list[tuple[str, float]] = []
        for doc_id, source in self._docs.items():
            matched, score = self._evaluate(clause, source)
            if matched:
                matches.append((doc_id, score))

        for key in reversed(body.get("sort", [])):
            matches = self._sorted(matches, key)

        size = body.get("size", _DEFAULT_SIZE)
        return RawQueryResult(
            total=len(matches),
            hits=[
                RawHit(id=doc_id, score=score, source=copy.deepcopy(self._docs[doc_id]))
                for doc_id, score in matches[:size]
            ],
        )

    async def document_ids(self) -> set[str]:
        return set(self._docs)

    async def health(self) -> IndexHealth:
        shards = 1 if self._mapping is not None else 0
        return IndexHealth(
            status="green",
            node_count=1,
            active_primary_shards=shards,
            active_shards=shards,
        )

    async def close(self) -> None:
        self._docs.clear()

    def _sorted(
        self,
        matches: list[tuple[str, float]],
        key: str | dict[str, Any],
    ) -> list[tuple[str, float]]:
        if isinstance(key, str):
            field, order = key, "desc" if key == "_score" else "asc"
        else:
            ((field, options),) = key.items()
            order = options.get("order", "asc") if isinstance(options, dict) else options

        reverse = order == "desc"
        if field == "_score":
            return sorted(matches, key=lambda m: m[1], reverse=reverse)

        present = [m for m in matches if _source_value(self._docs[m[0]], field) is not None]
        missing = [m for m in matches if _source_value(self._docs[m[0]], field) is None]
        present.sort(
            key=lambda m: _source_value(self._docs[m[0]], field),
            reverse=reverse,
        )
        return present + missing

    def _evaluate(self, clause: dict[str, Any], source: dict[str, Any]) -> tuple[bool, float]:
        if len(clause) != 1:
            raise IndexEngineError(f"query: expected one clause, got {sorted(clause)}")
        ((kind, params),) = clause.items()

        if kind == "match_all":
            return True, float(params.get("boost", 1.0))

        if kind == "bool":
            score = 0.0
            for sub in params.get("must", []):
                matched, sub_score = self._evaluate(sub, source)
                if not matched:
                    return False, 0.0
                score += sub_score
            for sub in params.get("filter", []):
                if not self._evaluate(sub, source)[0]:
                    return False, 0.0
            for sub in params.get("must_not", []):
                if self._evaluate(sub, source)[0]:
                    return False, 0.0
            return True, score

        if kind == "multi_match":
            terms = analyze(params["query"])
            fuzziness = params.get("fuzziness")
            operator = params.get("operator", "or").lower()
            best = 0.0
            for entry in params.get("fields", []):
                field, boost = _parse_field(entry)
                score = _field_score(terms, source.get(field), fuzziness, operator)
                best = max(best, score * boost)
            return best > 0, best

        if kind == "term":
            ((field, expected),) = params.items()
            if isinstance(expected, dict):
                expected = expected["value"]
            return _source_value(source, field) == expected, 0.0

        if kind == "range":
            ((field, bounds),) = params.items()
            return _in_range(_source_value(source, field), bounds), 0.0

        raise IndexEngineError(f"query: unsupported clause [{kind}]")
