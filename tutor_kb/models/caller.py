from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from tutor_kb.models.base import Base


class Caller(Base):
    __tablename__ = "callers"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=True, comment="学员姓名")
    # 来电号码（入库前已去除空白），用于语音平台回调时识别学员
    phone = Column(String(32), nullable=True, index=True, comment="来电号码")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
