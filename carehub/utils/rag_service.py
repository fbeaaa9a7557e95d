"""
Policy Assistant (retrieval-augmented answers over the policy corpus)

FLOW OVERVIEW
- search_relevant_content(query, limit)
  1) Embed the query with the configured embedding model.
  2) similarity_search(): cosine similarity against every stored policy embedding,
     keep rows above match_threshold, best first, at most match_count.
  3) Record the outcome in rag_system_status; any failure returns [].
- generate_response(query, context)
  • No context → fixed "not enough information" answer, low confidence.
  • Otherwise build the policy context prompt, call the chat model and classify
    confidence from the average similarity (> 0.8 high, > 0.6 medium, else low).
- get_response_with_context(query): search then generate.
- is_system_ready() / get_system_stats(): corpus readiness and sync statistics.

All public methods catch, log and return fallbacks; nothing here raises to the route.
"""

import logging
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import numpy as np
from sqlalchemy import func

from ..models import db, PolicyEmbedding, RagSystemStatus
from .llm_client import llm_client
from .prom_metrics import observe_rag_query, observe_rag_search

MATCH_THRESHOLD = 0.1
DEFAULT_MATCH_COUNT = 5
HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6

NO_CONTEXT_ANSWER = (
    "I don't have enough information in the policy documents to answer this question accurately. "
    "Please consult with a compliance officer or refer to the policy documents directly."
)
NO_COMPLETION_ANSWER = 'I apologize, but I could not generate a response.'
ERROR_ANSWER = "I'm sorry, I encountered an error while processing your request. Please try again."

SYSTEM_PROMPT = """You are a compliance AI assistant for an aged care organization. Your role is to provide accurate, helpful answers based on the organization's policy documents.

Guidelines:
- Always base your answers on the provided policy context
- If the context doesn't contain relevant information, clearly state this and suggest consulting the full policy document
- Be concise but comprehensive
- Use professional, helpful tone
- If asked about specific procedures, provide step-by-step guidance when available
- Always cite which policy document your information comes from"""


@dataclass
class SearchResult:
    id: str
    notion_page_id: str
    title: str
    content: str
    metadata: Dict[str, Any]
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class RAGResponse:
    """Answer returned to the policy assistant"""

    def __init__(self, answer: str, sources: List[SearchResult] = None,
                 confidence: str = 'low', processing_time: int = 0):
        self.answer = answer
        self.sources = sources or []
        self.confidence = confidence
        self.processing_time = processing_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'answer': self.answer,
            'sources': [source.to_dict() for source in self.sources],
            'confidence': self.confidence,
            'processingTime': self.processing_time
        }


def classify_confidence(average_similarity: float) -> str:
    if average_similarity > HIGH_CONFIDENCE:
        return 'high'
    if average_similarity > MEDIUM_CONFIDENCE:
        return 'medium'
    return 'low'


def build_context_text(context: List[SearchResult]) -> str:
    return '\n\n---\n\n'.join(
        f"Policy: {item.title}\nContent: {item.content}" for item in context
    )


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


class RAGService:
    """Search the embedded policy corpus and synthesize answers."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def similarity_search(self, query_embedding: List[float],
                          match_threshold: float = MATCH_THRESHOLD,
                          match_count: int = DEFAULT_MATCH_COUNT) -> List[SearchResult]:
        """Cosine similarity of the query against every stored embedding."""
        query_vector = np.asarray(query_embedding, dtype=float)
        query_norm = np.linalg.norm(query_vector)
        if query_norm == 0:
            return []

        rows = PolicyEmbedding.query.filter(PolicyEmbedding.embedding.isnot(None)).all()
        scored = []
        for row in rows:
            doc_vector = np.asarray(row.embedding, dtype=float)
            if doc_vector.shape != query_vector.shape:
                self.logger.warning(
                    f"Vector length mismatch for {row.notion_page_id}: {doc_vector.shape} vs {query_vector.shape}"
                )
                continue
            doc_norm = np.linalg.norm(doc_vector)
            if doc_norm == 0:
                continue
            similarity = float(np.dot(query_vector, doc_vector) / (query_norm * doc_norm))
            if similarity > match_threshold:
                scored.append((similarity, row))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            SearchResult(
                id=row.id,
                notion_page_id=row.notion_page_id,
                title=row.title,
                content=row.content,
                metadata=row.page_metadata or {},
                similarity=similarity
            )
            for similarity, row in scored[:match_count]
        ]

    def search_relevant_content(self, query: str, limit: int = DEFAULT_MATCH_COUNT) -> List[SearchResult]:
        start_time = time.time()
        try:
            self.logger.info(f"Searching for relevant content: {query!r}")
            query_embedding = llm_client.create_embedding(query)
            results = self.similarity_search(query_embedding, MATCH_THRESHOLD, limit)

            processing_time = _elapsed_ms(start_time)
            observe_rag_search(processing_time / 1000.0, results[0].similarity if results else None)

            if not results:
                self.logger.info('No similar content found')
                self.log_system_status('search', 'success', 'No similar content found',
                                       {'query': query, 'resultsCount': 0})
                return []

            self.logger.info(f"Found {len(results)} relevant results in {processing_time}ms")
            self.log_system_status('search', 'success', f"Found {len(results)} results", {
                'query': query,
                'resultsCount': len(results),
                'processingTime': processing_time
            })
            return results
        except Exception as e:
            self.logger.error(f"RAG search error: {str(e)}", exc_info=True)
            db.session.rollback()
            self.log_system_status('search', 'error', f"Search failed: {str(e)}", {'query': query})
            return []

    def generate_response(self, query: str, context: List[SearchResult]) -> RAGResponse:
        start_time = time.time()
        try:
            if not context:
                response = RAGResponse(NO_CONTEXT_ANSWER, [], 'low', _elapsed_ms(start_time))
                self.log_system_status('generation', 'success', 'No context available', {
                    'query': query,
                    'responseLength': len(response.answer),
                    'processingTime': response.processing_time
                })
                observe_rag_query(response.confidence)
                return response

            average_similarity = sum(item.similarity for item in context) / len(context)
            confidence = classify_confidence(average_similarity)

            user_prompt = (
                f'Based on the following policy documents, please answer this question: "{query}"\n\n'
                f"Policy Documents:\n{build_context_text(context)}\n\n"
                "Please provide a helpful, accurate response based on the policy information above."
            )
            answer = llm_client.chat_completion(
                [
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': user_prompt}
                ],
                max_tokens=500,
                temperature=0.3
            ) or NO_COMPLETION_ANSWER

            response = RAGResponse(answer, context, confidence, _elapsed_ms(start_time))
            self.log_system_status('generation', 'success', 'Generated response', {
                'query': query,
                'responseLength': len(answer),
                'processingTime': response.processing_time,
                'confidence': confidence
            })
            observe_rag_query(confidence)
            return response
        except Exception as e:
            self.logger.error(f"Response generation error: {str(e)}", exc_info=True)
            db.session.rollback()
            self.log_system_status('generation', 'error', f"Generation failed: {str(e)}", {'query': query})
            observe_rag_query('low')
            return RAGResponse(ERROR_ANSWER, [], 'low', _elapsed_ms(start_time))

    def get_response_with_context(self, query: str) -> RAGResponse:
        self.logger.info(f"Getting response with context for: {query!r}")
        relevant_content = self.search_relevant_content(query)
        return self.generate_response(query, relevant_content)

    def is_system_ready(self) -> bool:
        try:
            return db.session.query(PolicyEmbedding.id).first() is not None
        except Exception as e:
            self.logger.error(f"System readiness check error: {str(e)}")
            return False

    def get_system_stats(self) -> Dict[str, Any]:
        try:
            total_policies = db.session.query(func.count(PolicyEmbedding.id)).scalar() or 0
            successful_syncs = RagSystemStatus.query.filter_by(operation_type='sync', status='success').count()
            total_errors = RagSystemStatus.query.filter_by(status='error').count()
            last_policy_update = db.session.query(func.max(PolicyEmbedding.created_at)).scalar()
            last_sync_attempt = db.session.query(func.max(RagSystemStatus.created_at)).filter(
                RagSystemStatus.operation_type == 'sync'
            ).scalar()
            return {
                'totalPolicies': total_policies,
                'successfulSyncs': successful_syncs,
                'totalErrors': total_errors,
                'lastPolicyUpdate': last_policy_update.isoformat() if last_policy_update else None,
                'lastSyncAttempt': last_sync_attempt.isoformat() if last_sync_attempt else None
            }
        except Exception as e:
            self.logger.error(f"Stats retrieval error: {str(e)}")
            return {
                'totalPolicies': 0,
                'successfulSyncs': 0,
                'totalErrors': 0,
                'lastPolicyUpdate': None,
                'lastSyncAttempt': None
            }

    def log_system_status(self, operation_type: str, status: str, message: str,
                          metadata: Optional[Dict[str, Any]] = None) -> None:
        try:
            db.session.add(RagSystemStatus(
                operation_type=operation_type,
                status=status,
                message=message,
                status_metadata=metadata or {}
            ))
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            self.logger.error(f"Error logging system status: {str(e)}")


# Global instance
rag_service = RAGService()
