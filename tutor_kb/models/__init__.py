from tutor_kb.models.caller import Caller
from tutor_kb.models.content import ContentAssertion, ContentSource, KnowledgeChunk
from tutor_kb.models.memory import CallerMemory
from tutor_kb.models.system_setting import SystemSetting

__all__ = [
    "Caller",
    "ContentSource",
    "ContentAssertion",
    "KnowledgeChunk",
    "CallerMemory",
    "SystemSetting",
]
