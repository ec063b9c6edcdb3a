# 依赖注入（检索网关、内容存储、配置服务都是进程级单例）
from functools import lru_cache

from tutor_kb.core.database import SessionLocal
from tutor_kb.rag.clients.base import IContentStore
from tutor_kb.rag.clients.sql_store import SqlContentStore
from tutor_kb.rag.knowledge_gateway import KnowledgeGateway
from tutor_kb.rag.strategies import AssertionRetriever, ChunkRetriever, MemoryRetriever
from tutor_kb.services.embedding_service import create_embedding_service
from tutor_kb.services.settings_service import RetrievalSettingsService


@lru_cache
def get_content_store() -> IContentStore:
    return SqlContentStore(SessionLocal)


@lru_cache
def get_settings_service() -> RetrievalSettingsService:
    return RetrievalSettingsService(SessionLocal)


@lru_cache
def get_knowledge_gateway() -> KnowledgeGateway:
    store = get_content_store()
    return KnowledgeGateway(
        strategies=[
            AssertionRetriever(store),
            ChunkRetriever(store),
            MemoryRetriever(store),
        ],
        embedding_service=create_embedding_service(),
    )
