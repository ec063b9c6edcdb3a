from tutor_kb.services.embedding_service import (
    EmbeddingService,
    IEmbeddingService,
    create_embedding_service,
)
from tutor_kb.services.settings_service import RetrievalSettingsService

__all__ = [
    "IEmbeddingService",
    "EmbeddingService",
    "create_embedding_service",
    "RetrievalSettingsService",
]
