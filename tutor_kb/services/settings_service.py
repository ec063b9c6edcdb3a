"""
知识检索配置服务

从 system_settings 键值表读取 knowledge_retrieval.* 配置（JSON 值），
与默认值合并后缓存，默认 30 秒刷新一次
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, Optional

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from tutor_kb.core.cache import TimedCache
from tutor_kb.core.config import settings as app_settings
from tutor_kb.models.system_setting import SystemSetting
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings

SETTINGS_KEY_PREFIX = "knowledge_retrieval."


def settings_key(field_name: str) -> str:
    return f"{SETTINGS_KEY_PREFIX}{field_name}"


def default_retrieval_settings() -> KnowledgeRetrievalSettings:
    return KnowledgeRetrievalSettings(
        deadline_ms=app_settings.RETRIEVAL_DEADLINE_MS,
        embedding_timeout_ms=app_settings.EMBEDDING_TIMEOUT_MS,
    )


class RetrievalSettingsService:
    """
    检索配置读取

    单个配置项无法解析或不合法时只忽略该项（使用默认值），不影响其他配置项
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        ttl_seconds: Optional[float] = None,
        defaults: Optional[KnowledgeRetrievalSettings] = None,
    ):
        self._session_factory = session_factory
        self._defaults = defaults or default_retrieval_settings()
        ttl = app_settings.SETTINGS_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._cache: TimedCache[KnowledgeRetrievalSettings] = TimedCache(ttl, self._load)

    @property
    def defaults(self) -> KnowledgeRetrievalSettings:
        return self._defaults

    def get(self) -> KnowledgeRetrievalSettings:
        return self._cache.get()

    async def aget(self) -> KnowledgeRetrievalSettings:
        """在工作线程中读取（缓存命中时几乎无开销）"""
        return await asyncio.to_thread(self.get)

    def invalidate(self) -> None:
        """管理后台修改配置后调用，使下次读取立即生效"""
        self._cache.invalidate()

    def _load(self) -> KnowledgeRetrievalSettings:
        try:
            raw_values = self._read_rows()
        except Exception as e:
            logger.warning(f"[Settings] 读取 system_settings 失败，使用默认检索配置: {e}")
            return self._defaults

        base = self._defaults.model_dump()
        overrides: Dict[str, Any] = {}
        for field_name in KnowledgeRetrievalSettings.model_fields:
            key = settings_key(field_name)
            if key not in raw_values:
                continue
            try:
                value = json.loads(raw_values[key])
                KnowledgeRetrievalSettings.model_validate({**base, field_name: value})
            except (ValueError, ValidationError) as e:
                logger.warning(f"[Settings] 配置项 {key} 不合法，使用默认值: {e}")
                continue
            overrides[field_name] = value

        loaded = KnowledgeRetrievalSettings.model_validate({**base, **overrides})
        if overrides:
            logger.info(f"[Settings] 已加载检索配置覆盖项: {sorted(overrides)}")
        return loaded

    def _read_rows(self) -> Dict[str, str]:
        with self._session_factory() as session:
            rows = session.execute(
                select(SystemSetting.key, SystemSetting.value).where(
                    SystemSetting.key.startswith(SETTINGS_KEY_PREFIX, autoescape=True)
                )
            ).all()
        return {key: value for key, value in rows}
