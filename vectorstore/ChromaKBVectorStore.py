# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2025-11-16
# Description: ChromaKBVectorStore
# -----------------------------------------------------------------------------
import asyncio
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import chromadb
from chromadb import ClientAPI
from chromadb.api.models import Collection

from config.Config import Config
from document.KBDocument import KBDocument, KBDocumentMetadata
from embedding.EmbeddingRecord import EmbeddingRecord
from settings import CHUNKS_COLLECTION, DOCUMENTS_COLLECTION
from utility.errors import StoreError
from utility.logging_utils import get_class_logger
from vectorstore.KBVectorStore import ChunkMatch, KBVectorStore

# Documents live in their own collection and are looked up by id only;
# Chroma still wants a vector per record.
_PLACEHOLDER_VECTOR = [1.0]


@dataclass
class ChromaKBVectorStore(KBVectorStore):
    cfg: Optional[Config] = None
    client: Any = None
    documents_collection: str = DOCUMENTS_COLLECTION
    chunks_collection: str = CHUNKS_COLLECTION
    logger: Any = None

    def __post_init__(self) -> None:
        self.logger = self.logger or get_class_logger(self.__class__)

        if self.client is None:
            self.client = self._build_client()

        self.documents: Collection = self.client.get_or_create_collection(name=self.documents_collection)
        self.chunks: Collection = self.client.get_or_create_collection(
            name=self.chunks_collection,
            metadata={"hnsw:space": "cosine"},
        )
        self.logger.info(
            "Chroma collections ready: documents='%s', chunks='%s'",
            self.documents_collection,
            self.chunks_collection,
        )

    def _build_client(self) -> ClientAPI:
        if self.cfg is None:
            raise ValueError("ChromaKBVectorStore needs either a Config or a Chroma client")

        if self.cfg.uses_chroma_cloud:
            self.logger.info(
                "Initialising Chroma Cloud client "
                f"(tenant={self.cfg.chroma_tenant}, database={self.cfg.chroma_database})"
            )
            return chromadb.CloudClient(
                tenant=self.cfg.chroma_tenant,
                database=self.cfg.chroma_database,
                api_key=self.cfg.chroma_api_key,
            )

        self.logger.info("Initialising local Chroma client (path=%s)", self.cfg.chroma_path)
        return chromadb.PersistentClient(path=self.cfg.chroma_path)

    # ------------------------------------------------------------------
    # Metadata helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _flatten(meta: Dict[str, Any]) -> Dict[str, Any]:
        """Chroma metadata takes scalars only: drop None, JSON-encode the rest."""
        flat: Dict[str, Any] = {}
        for k, v in meta.items():
            if v is None:
                continue
            if isinstance(v, (str, int, float, bool)):
                flat[k] = v
            elif isinstance(v, datetime):
                flat[k] = v.isoformat()
            else:
                flat[k] = json.dumps(v)
        return flat

    # ------------------------------------------------------------------
    # KBVectorStore
    # ------------------------------------------------------------------
    async def test_connection(self) -> bool:
        """
        Simple health check: can we talk to Chroma and our collections?
        """
        def _count() -> int:
            return self.documents.count() + self.chunks.count()

        try:
            # count() is cheap and exercises the connection + auth
            await asyncio.to_thread(_count)
            return True
        except Exception as e:
            self.logger.error("Chroma connection failed: %s", e)
            return False

    async def insert_document(self, metadata: KBDocumentMetadata, content: str) -> KBDocument:
        doc_id = str(uuid.uuid4())
        doc = KBDocument(
            doc_id=doc_id,
            name=metadata.name,
            doc_type=metadata.doc_type,
            content=content,
            size=metadata.size,
            description=metadata.description,
            category=metadata.category,
            tags=list(metadata.tags),
            created_at=datetime.now(timezone.utc),
        )
        row_meta = self._flatten({
            "name": doc.name,
            "doc_type": doc.doc_type,
            "size": doc.size,
            "description": doc.description,
            "category": doc.category,
            "tags": doc.tags,
            "embeddings_generated": False,
            "embeddings_count": 0,
            "created_at": doc.created_at,
        })

        def _add() -> None:
            self.documents.add(
                ids=[doc_id],
                documents=[content],
                embeddings=[_PLACEHOLDER_VECTOR],
                metadatas=[row_meta],
            )

        try:
            await asyncio.to_thread(_add)
        except Exception as e:
            self.logger.error("Failed to insert document '%s': %s", metadata.name, e)
            raise StoreError(f"Failed to save document: {e}") from e

        self.logger.info("Inserted document '%s' as doc_id '%s'", doc.name, doc_id)
        return doc

    async def insert_chunk_embeddings(self, doc_id: str, records: Sequence[EmbeddingRecord]) -> int:
        if not records:
            return 0

        ids: List[str] = []
        documents: List[str] = []
        embeddings: List[List[float]] = []
        metadatas: List[Dict[str, Any]] = []

        for rec in records:
            if rec.doc_id != doc_id:
                raise ValueError(
                    f"Record doc_id '{rec.doc_id}' does not match insert doc_id '{doc_id}'"
                )

            vec = rec.vector
            if hasattr(vec, "tolist"):
                vec = vec.tolist()

            ids.append(rec.record_id)
            documents.append(rec.text)
            embeddings.append(vec)
            metadatas.append(self._flatten({
                **rec.metadata,
                "doc_id": doc_id,
                "chunk_index": rec.chunk_index,
                "content_length": len(rec.text),
            }))

        def _upsert() -> None:
            self.chunks.upsert(ids=ids, documents=documents, embeddings=embeddings, metadatas=metadatas)

        try:
            await asyncio.to_thread(_upsert)
        except Exception as e:
            self.logger.error("Failed to store %d fragments for doc_id '%s': %s", len(records), doc_id, e)
            raise StoreError(f"Failed to store embeddings: {e}") from e

        self.logger.info(
            "Upserted %d fragments for doc_id '%s' into Chroma collection '%s'",
            len(records),
            doc_id,
            self.chunks_collection,
        )
        return len(records)

    async def update_document_counters(
            self,
            doc_id: str,
            *,
            embeddings_generated: bool,
            embeddings_count: int,
            last_embedded_at: datetime,
    ) -> None:
        def _update() -> None:
            res = self.documents.get(ids=[doc_id], include=["metadatas"])
            if not res.get("ids"):
                raise KeyError(f"Unknown doc_id '{doc_id}'")
            meta = dict(res["metadatas"][0] or {})
            meta.update(self._flatten({
                "embeddings_generated": embeddings_generated,
                "embeddings_count": embeddings_count,
                "last_embedded_at": last_embedded_at,
            }))
            self.documents.update(ids=[doc_id], metadatas=[meta])

        try:
            await asyncio.to_thread(_update)
        except Exception as e:
            self.logger.error("Failed to update counters for doc_id '%s': %s", doc_id, e)
            raise StoreError(f"Failed to update document status: {e}") from e

    async def match_chunks(
            self,
            query_vector: Sequence[float],
            *,
            threshold: float,
            limit: int,
            category: Optional[str] = None,
    ) -> List[ChunkMatch]:
        vec = query_vector.tolist() if hasattr(query_vector, "tolist") else list(query_vector)
        query_kwargs: Dict[str, Any] = {
            "query_embeddings": [vec],
            "n_results": limit,
            "include": ["documents", "metadatas", "distances"],
        }
        if category:
            self.logger.debug("Applying category filter (category=%s)", category)
            query_kwargs["where"] = {"category": category}

        try:
            res = await asyncio.to_thread(self.chunks.query, **query_kwargs)
        except Exception as e:
            self.logger.error("Error during match_chunks execution: %s", e, exc_info=True)
            raise StoreError(f"Search failed: {e}") from e

        # single query: take the first list of each key
        ids0 = (res.get("ids") or [[]])[0]
        docs0 = (res.get("documents") or [[]])[0]
        metas0 = (res.get("metadatas") or [[]])[0]
        dists0 = (res.get("distances") or [[]])[0]

        matches: List[ChunkMatch] = []
        for i in range(len(ids0)):
            md = dict(metas0[i] or {}) if i < len(metas0) else {}
            # cosine space: distance = 1 - similarity
            sim = 1.0 - float(dists0[i])
            if sim < threshold:
                continue
            matches.append(ChunkMatch(
                doc_id=str(md.get("doc_id", "")),
                chunk_index=int(md.get("chunk_index", 0)),
                content=docs0[i] if i < len(docs0) else "",
                similarity=sim,
                metadata=md,
            ))

        self.logger.info(
            "Chroma search complete: %d/%d candidates above threshold %.2f",
            len(matches),
            len(ids0),
            threshold,
        )
        return matches

    async def get_documents_metadata(self, doc_ids: Sequence[str]) -> Dict[str, Dict[str, Any]]:
        unique_ids = list(dict.fromkeys(doc_ids))
        if not unique_ids:
            return {}

        try:
            res = await asyncio.to_thread(self.documents.get, ids=unique_ids, include=["metadatas"])
        except Exception as e:
            self.logger.error("Failed to fetch metadata for %d documents: %s", len(unique_ids), e)
            raise StoreError(f"Failed to fetch document metadata: {e}") from e

        out: Dict[str, Dict[str, Any]] = {}
        for doc_id, meta in zip(res.get("ids") or [], res.get("metadatas") or []):
            meta = meta or {}
            out[doc_id] = {
                "name": meta.get("name", ""),
                "category": meta.get("category"),
                "tags": json.loads(meta.get("tags", "[]")),
                "description": meta.get("description"),
            }
        return out

    async def delete_by_doc_id(self, doc_id: str) -> int:
        """
        Delete a document and all of its fragments.
        Returns the number of fragments actually deleted.
        """
        self.logger.info("Deleting doc_id '%s' and its fragments", doc_id)

        def _delete() -> int:
            # 1) Fetch all fragment IDs for this doc_id (ids only)
            res: Dict[str, Any] = self.chunks.get(where={"doc_id": {"$eq": doc_id}}, include=[])
            # preserves order while de-duplicating
            ids = list(dict.fromkeys(res.get("ids", []) or []))
            # 2) Delete those specific IDs, then the parent row
            if ids:
                self.chunks.delete(ids=ids)
            self.documents.delete(ids=[doc_id])
            return len(ids)

        try:
            deleted_count = await asyncio.to_thread(_delete)
        except Exception as e:
            self.logger.error("Failed to delete doc_id '%s': %s", doc_id, e)
            raise StoreError(f"Failed to delete document: {e}") from e

        self.logger.info("Deleted %d fragments for doc_id '%s'", deleted_count, doc_id)
        return deleted_count
