"""
知识检索配置

默认值与管理后台 knowledge_retrieval.* 配置项保持一致，运行时由
RetrievalSettingsService 从 system_settings 表加载覆盖值
"""

from pydantic import BaseModel, ConfigDict, Field


class KnowledgeRetrievalSettings(BaseModel):
    """单次检索使用的配置（按值传入检索流水线）"""

    model_config = ConfigDict(frozen=True)

    # 取最近几条学员发言拼成查询
    query_message_count: int = Field(default=3, ge=0)

    # 各路召回上限与最终截断
    top_results: int = Field(default=10, ge=0)
    chunk_limit: int = Field(default=5, ge=0)
    assertion_limit: int = Field(default=5, ge=0)
    memory_limit: int = Field(default=3, ge=0)
    min_relevance: float = Field(default=0.3, ge=0.0, le=1.0)

    # 断言关键词打分权重（经验值，可在后台调整）
    lexical_weight: float = Field(default=0.7, ge=0.0)
    prior_weight: float = Field(default=0.3, ge=0.0)
    tag_weight: float = Field(default=1.5, ge=0.0)
    depth_boost: float = Field(default=0.05, ge=0.0)
    default_prior_relevance: float = Field(default=0.5, ge=0.0, le=1.0)

    # 记忆打分基础分
    memory_base_score: float = Field(default=0.3, ge=0.0, le=1.0)

    # 时延预算（毫秒）
    deadline_ms: int = Field(default=800, gt=0)
    embedding_timeout_ms: int = Field(default=400, gt=0)
