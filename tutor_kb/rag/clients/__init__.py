"""
内容存储客户端模块

封装断言、知识切片、学员记忆的只读查询
"""

from tutor_kb.rag.clients.base import (
    AssertionRecord,
    ChunkRecord,
    IContentStore,
    MemoryRecord,
)
from tutor_kb.rag.clients.sql_store import SqlContentStore

__all__ = [
    "AssertionRecord",
    "ChunkRecord",
    "MemoryRecord",
    "IContentStore",
    "SqlContentStore",
]
