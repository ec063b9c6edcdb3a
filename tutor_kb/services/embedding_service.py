"""
Embedding 向量化服务

封装 OpenAI Embedding API 调用。向量化失败由检索网关捕获并降级为纯关键词检索
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger
from openai import AsyncOpenAI

from tutor_kb.core.config import settings
from tutor_kb.rag.exceptions import EmbeddingUnavailableError


class IEmbeddingService(ABC):
    """向量化服务接口"""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """文本向量化；失败时抛出异常"""
        pass


class EmbeddingService(IEmbeddingService):
    """
    OpenAI Embedding 服务

    负责将查询文本转换为向量表示
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        """初始化 OpenAI 客户端"""
        api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        api_base = settings.OPENAI_API_BASE if api_base is None else api_base
        self.model = model or settings.OPENAI_EMBEDDING_MODEL

        if client is not None:
            self.client = client
        else:
            client_params = {"api_key": api_key, "max_retries": 0}
            # 如果配置了自定义 API 端点
            if api_base:
                client_params["base_url"] = api_base
                logger.info(f"使用自定义 OpenAI API 端点: {api_base}")
            self.client = AsyncOpenAI(**client_params)

        logger.info(f"Embedding 服务初始化完成，使用模型: {self.model}")

    async def embed(self, text: str) -> List[float]:
        """
        文本向量化

        Args:
            text: 输入文本

        Returns:
            向量表示
        """
        try:
            logger.debug(f"[Embedding] 执行文本向量化: text_length={len(text)}")

            response = await self.client.embeddings.create(input=text, model=self.model)

            vector = response.data[0].embedding
            if not vector:
                raise EmbeddingUnavailableError("Embedding 服务返回空向量")

            logger.debug(f"[Embedding] 向量化完成: vector_dim={len(vector)}")
            return vector

        except EmbeddingUnavailableError:
            raise
        except Exception as e:
            logger.error(f"[Embedding] 文本向量化失败: {e}")
            raise EmbeddingUnavailableError(str(e)) from e


def create_embedding_service() -> Optional[IEmbeddingService]:
    """未配置 OPENAI_API_KEY 时返回 None，检索直接走关键词模式"""
    if not settings.OPENAI_API_KEY:
        logger.warning("[Embedding] 未配置 OPENAI_API_KEY，知识检索将只使用关键词模式")
        return None
    return EmbeddingService()
