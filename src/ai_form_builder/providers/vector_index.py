"""
Optional external vector index for form memory.

The managed index lives in the same Supabase project as the document store
(pgvector): rows in `form_embeddings`, nearest-neighbour search via the
`match_form_embeddings` SQL function:

    create function match_form_embeddings(
      query_embedding vector, match_count int, filter_owner_id text
    ) returns table (id text, similarity float) ...

When the index is not configured every operation is a no-op and callers
rank locally instead. Misconfiguration is a normal state, not an error.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from ai_form_builder.settings import Settings

logger = logging.getLogger(__name__)


class VectorIndex(Protocol):
    enabled: bool

    def upsert(self, item_id: str, owner_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None: ...

    def query(self, owner_id: str, vector: Sequence[float], k: int) -> List[Tuple[str, float]]: ...


class NullVectorIndex:
    enabled = False

    def upsert(self, item_id: str, owner_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        return None

    def query(self, owner_id: str, vector: Sequence[float], k: int) -> List[Tuple[str, float]]:
        return []


class SupabaseVectorIndex:
    enabled = True

    def __init__(self, client: Any, *, table: str = "form_embeddings", match_fn: str = "match_form_embeddings") -> None:
        self.client = client
        self.table = table
        self.match_fn = match_fn

    def upsert(self, item_id: str, owner_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        if not item_id or not vector:
            return
        row = {
            "id": str(item_id),
            "owner_id": str(owner_id),
            "embedding": [float(x) for x in vector],
            "metadata": dict(metadata or {}),
        }
        try:
            self.client.table(self.table).upsert(row).execute()
            logger.info("[vector-index] upsert id=%s owner=%s dim=%s", item_id, owner_id, len(row["embedding"]))
        except Exception as e:
            logger.warning("[vector-index] upsert failed id=%s err=%r", item_id, e)

    def query(self, owner_id: str, vector: Sequence[float], k: int) -> List[Tuple[str, float]]:
        if not vector or k <= 0:
            return []
        params = {
            "query_embedding": [float(x) for x in vector],
            "match_count": int(k),
            "filter_owner_id": str(owner_id),
        }
        try:
            result = self.client.rpc(self.match_fn, params).execute()
        except Exception as e:
            logger.warning("[vector-index] query failed owner=%s err=%r", owner_id, e)
            return []

        out: List[Tuple[str, float]] = []
        for row in result.data or []:
            if not isinstance(row, dict) or not row.get("id"):
                continue
            try:
                score = float(row.get("similarity") or row.get("score") or 0.0)
            except (TypeError, ValueError):
                score = 0.0
            out.append((str(row["id"]), score))
            if len(out) >= k:
                break
        return out


def build_vector_index(settings: Settings, client: Optional[Any]) -> VectorIndex:
    if not settings.use_vector_index:
        return NullVectorIndex()
    if client is None:
        logger.warning("[vector-index] AI_FORM_USE_VECTOR_INDEX is on but Supabase is not configured; ranking locally")
        return NullVectorIndex()
    return SupabaseVectorIndex(client, table=settings.vector_table, match_fn=settings.vector_match_fn)


__all__ = ["NullVectorIndex", "SupabaseVectorIndex", "VectorIndex", "build_vector_index"]
