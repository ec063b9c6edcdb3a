"""
教学内容数据模型

ContentSource（教材/资料来源）→ ContentAssertion（断言）/ KnowledgeChunk（知识切片）

向量列 embedding（pgvector）由入库流水线维护，不在 ORM 中映射，
检索时通过原生 SQL 访问。
"""

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from tutor_kb.models.base import Base


class ContentSource(Base):
    __tablename__ = "content_sources"

    id = Column(String(36), primary_key=True)
    slug = Column(String(128), nullable=False, unique=True)
    name = Column(String(255), nullable=False, comment="资料名称")
    # REGULATORY_STANDARD / ACCREDITED_MATERIAL / ... / UNVERIFIED
    trust_level = Column(String(32), nullable=False, default="UNVERIFIED", comment="可信等级")

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ContentAssertion(Base):
    """一条带标签的知识断言（离散的事实陈述）"""

    __tablename__ = "content_assertions"

    id = Column(String(36), primary_key=True)
    source_id = Column(String(36), ForeignKey("content_sources.id", ondelete="CASCADE"), nullable=False)

    assertion = Column(Text, nullable=False, comment="断言原文（跨检索模式的去重键）")
    category = Column(String(64), nullable=True, comment="类别：fact/definition/rule/example ...")
    chapter = Column(String(255), nullable=True, comment="所在章节")
    tags = Column(JSON, nullable=True, comment="标签列表")

    exam_relevance = Column(Float, nullable=True, comment="考试相关度 [0,1]")
    depth = Column(Integer, nullable=True, comment="内容深度，0/1 为概览，>=2 为细节")

    source = relationship("ContentSource", lazy="joined")

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class KnowledgeChunk(Base):
    __tablename__ = "knowledge_chunks"

    id = Column(String(36), primary_key=True)
    source_id = Column(String(36), ForeignKey("content_sources.id", ondelete="CASCADE"), nullable=True)
    # 非空时仅对该学员可见（例如学员上传的资料）
    caller_id = Column(String(36), ForeignKey("callers.id", ondelete="CASCADE"), nullable=True, index=True)

    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=False, comment="切片文本内容")
    chunk_index = Column(Integer, default=0, comment="在原文中的顺序索引")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
