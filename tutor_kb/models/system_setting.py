from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from tutor_kb.models.base import Base


class SystemSetting(Base):
    """键值配置表，value 为 JSON 字符串（由管理后台写入）"""

    __tablename__ = "system_settings"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
