# 数据库连接池生成器
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from tutor_kb.core.config import settings


def _engine_options(url: str) -> dict:
    # sqlite 不支持连接池参数，只给 PostgreSQL 配置
    if url.startswith("sqlite"):
        return {}
    # pool_recycle=3600: 每 1 小时回收重连，防止长连接被服务端断开
    # pool_pre_ping=True: 每次从池子里拿连接前，先 ping 一下数据库，确保连接是活的
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# 每次检索请求通过它产生新的数据库会话（会话在工作线程中使用，用完即关）
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# 所有的 Model 都要继承这个类
Base = declarative_base()
