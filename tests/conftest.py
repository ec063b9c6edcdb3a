import os

# 单测不连接真实 PostgreSQL / OpenAI
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "")
