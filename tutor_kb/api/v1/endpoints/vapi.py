"""
语音平台回调 API 端点

- knowledge-base：每轮对话调用的实时知识检索，任何失败都返回空 documents（HTTP 200）
- tools：通话中语音助手主动调用的工具（目前提供 lookup_teaching_point）
"""

import json
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from tutor_kb.api.deps import get_content_store, get_knowledge_gateway, get_settings_service
from tutor_kb.rag.clients.base import IContentStore
from tutor_kb.rag.knowledge_gateway import KnowledgeGateway
from tutor_kb.schemas.vapi_schema import (
    KnowledgeBaseRequest,
    KnowledgeBaseResponse,
    KnowledgeDocument,
    ToolCallResult,
    ToolCallsRequest,
    ToolCallsResponse,
)
from tutor_kb.services.settings_service import RetrievalSettingsService

router = APIRouter()

DEFAULT_TEACHING_POINT_LIMIT = 3


async def _resolve_caller_id(store: IContentStore, phone: Optional[str]) -> Optional[str]:
    if not phone:
        return None
    try:
        return await store.find_caller_id_by_phone(phone)
    except Exception as e:
        logger.warning(f"[API] 识别学员失败，按未识别处理: {e}")
        return None


@router.post("/knowledge-base", response_model=KnowledgeBaseResponse, tags=["语音知识检索"])
async def knowledge_base_request(
    request: Request,
    gateway: KnowledgeGateway = Depends(get_knowledge_gateway),
    store: IContentStore = Depends(get_content_store),
    settings_service: RetrievalSettingsService = Depends(get_settings_service),
):
    """
    实时知识检索

    **流程：**
    1. 取最近几条学员发言拼成查询
    2. 向量化（失败则降级为关键词检索）
    3. 并行召回：断言（向量 + 关键词混合）、知识切片、学员记忆
    4. 全局排序截断，返回 `{"documents": [{"content", "similarity"}]}`

    该接口在通话的每一轮都会被调用，失败时返回空列表而不是错误状态码
    """
    try:
        body = KnowledgeBaseRequest.model_validate(await request.json())

        settings = await settings_service.aget()
        caller_id = await _resolve_caller_id(store, body.customer_phone())

        items = await gateway.retrieve(body.turns(), caller_id=caller_id, settings=settings)

        logger.info(f"[API] 知识检索完成: caller={caller_id}, documents={len(items)}")
        return KnowledgeBaseResponse(
            documents=[
                KnowledgeDocument(content=item.content, similarity=item.relevance_score)
                for item in items
            ]
        )

    except Exception as e:
        logger.error(f"[API] 知识检索失败，返回空结果: {e}")
        return KnowledgeBaseResponse(documents=[])


# ----------------------------------------------------------------------
# 通话工具
# ----------------------------------------------------------------------


async def handle_lookup_teaching_point(
    args: Dict[str, Any], store: IContentStore
) -> Dict[str, Any]:
    """按主题查找教学要点（关键词匹配，按考试相关度排序）"""
    topic = args.get("topic")
    if not topic:
        return {"error": "topic is required"}

    try:
        limit = int(args.get("limit") or DEFAULT_TEACHING_POINT_LIMIT)
    except (TypeError, ValueError):
        limit = DEFAULT_TEACHING_POINT_LIMIT

    records = await store.search_assertions_by_keyword(str(topic), max(limit, 0))
    if not records:
        return {"found": False, "message": f'No teaching content found for "{topic}"'}

    return {
        "found": True,
        "count": len(records),
        "points": [
            {
                "content": record.assertion,
                "category": record.category,
                "chapter": record.chapter,
                "source": record.source_name,
                "examRelevance": record.exam_relevance,
            }
            for record in records
        ],
    }


TOOL_HANDLERS = {
    "lookup_teaching_point": handle_lookup_teaching_point,
}


def _parse_tool_call(tool_call: Dict[str, Any]):
    function = tool_call.get("function") or {}
    function_call = tool_call.get("functionCall") or {}
    func_name = function.get("name") or function_call.get("name") or tool_call.get("name")
    params = (
        function.get("arguments")
        or function_call.get("parameters")
        or tool_call.get("parameters")
        or {}
    )
    if isinstance(params, str):
        params = json.loads(params)
    tool_call_id = tool_call.get("id") or tool_call.get("toolCallId")
    return func_name, params, tool_call_id


@router.post("/tools", response_model=ToolCallsResponse, tags=["语音工具"])
async def tool_calls_request(
    request: Request,
    store: IContentStore = Depends(get_content_store),
):
    """
    通话工具调用

    请求：`{"message": {"type": "tool-calls", "toolCallList": [...]}}`
    响应：`{"results": [{"toolCallId", "result"}]}`
    """
    try:
        body = ToolCallsRequest.model_validate(await request.json())
    except Exception as e:
        logger.error(f"[API] 工具调用请求解析失败: {e}")
        return JSONResponse({"error": "Tool execution failed"}, status_code=400)

    results = []
    for tool_call in body.tool_calls():
        tool_call_id = tool_call.get("id") or tool_call.get("toolCallId")
        try:
            func_name, args, tool_call_id = _parse_tool_call(tool_call)
            handler = TOOL_HANDLERS.get(func_name)
            if handler is None:
                result = {"error": f"Unknown tool: {func_name}"}
            else:
                result = await handler(args, store)
        except Exception as e:
            logger.error(f"[API] 工具调用失败: {e}")
            result = {"error": "Tool execution failed"}
        results.append(ToolCallResult(toolCallId=tool_call_id, result=result))

    logger.info(f"[API] 工具调用完成: count={len(results)}")
    return ToolCallsResponse(results=results)


@router.get("/health", tags=["健康检查"])
async def health_check():
    """
    健康检查端点

    用于检查知识检索服务是否正常运行
    """
    return {"status": "healthy", "service": "knowledge-retrieval"}
