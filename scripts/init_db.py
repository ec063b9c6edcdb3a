"""Create knowledge-retrieval tables.

Usage:
  1) Ensure .env is configured for DB connection.
  2) Run: python scripts/init_db.py

This script only creates tables if they don't exist. On PostgreSQL it also
enables pgvector and adds the embedding columns used by vector search.
"""

from __future__ import annotations

from sqlalchemy import text

from tutor_kb import models as _models  # noqa: F401
from tutor_kb.core.database import Base, engine

# text-embedding-3-small
EMBEDDING_DIMENSIONS = 1536

_PGVECTOR_DDL = [
    "CREATE EXTENSION IF NOT EXISTS vector",
    f"ALTER TABLE content_assertions ADD COLUMN IF NOT EXISTS embedding vector({EMBEDDING_DIMENSIONS})",
    f"ALTER TABLE knowledge_chunks ADD COLUMN IF NOT EXISTS embedding vector({EMBEDDING_DIMENSIONS})",
]


def main() -> None:
    Base.metadata.create_all(bind=engine)
    if engine.dialect.name == "postgresql":
        with engine.begin() as conn:
            for statement in _PGVECTOR_DDL:
                conn.execute(text(statement))
        print("✅ pgvector extension and embedding columns ensured.")
    print("✅ Knowledge retrieval tables ensured (create_all executed).")


if __name__ == "__main__":
    main()
