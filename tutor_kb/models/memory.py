from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.sql import func

from tutor_kb.models.base import Base


class CallerMemory(Base):
    """通话中沉淀下来的学员记忆（偏好、事实、事件等）"""

    __tablename__ = "caller_memories"

    id = Column(String(36), primary_key=True)
    caller_id = Column(String(36), ForeignKey("callers.id", ondelete="CASCADE"), nullable=False, index=True)

    key = Column(String(255), nullable=False)
    value = Column(Text, nullable=False)
    # FACT / PREFERENCE / EVENT / TOPIC / RELATIONSHIP / CONTEXT
    category = Column(String(32), nullable=False, default="CONTEXT")
    confidence = Column(Float, nullable=False, default=0.5, comment="置信度，检索时按此排序")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
