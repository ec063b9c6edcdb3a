"""
语音平台回调 Schema

请求体按平台格式宽松解析（忽略多余字段），响应体保持平台约定的结构
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tutor_kb.rag.models.conversation import ConversationTurn


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class VapiCustomer(_Lenient):
    number: Optional[str] = None


class VapiCall(_Lenient):
    customer: Optional[VapiCustomer] = None


class VapiChatMessage(_Lenient):
    role: str = ""
    content: Optional[str] = None
    # 部分事件用 message 字段承载文本
    message: Optional[str] = None

    @property
    def text(self) -> str:
        return self.content if self.content is not None else (self.message or "")


class KnowledgeBaseMessage(_Lenient):
    type: Optional[str] = None
    messages: List[VapiChatMessage] = Field(default_factory=list)
    call: Optional[VapiCall] = None


class KnowledgeBaseRequest(_Lenient):
    """knowledge-base-request 事件"""

    message: Optional[KnowledgeBaseMessage] = None
    call: Optional[VapiCall] = None

    def turns(self) -> List[ConversationTurn]:
        if self.message is None:
            return []
        return [ConversationTurn(role=m.role, text=m.text) for m in self.message.messages]

    def customer_phone(self) -> Optional[str]:
        for call in (self.message.call if self.message else None, self.call):
            if call and call.customer and call.customer.number:
                return call.customer.number
        return None


class KnowledgeDocument(BaseModel):
    content: str = Field(..., description="带来源标注的知识片段")
    similarity: float = Field(..., ge=0.0, le=1.0, description="相关度 [0,1]")


class KnowledgeBaseResponse(BaseModel):
    """空列表是合法响应，不代表出错"""

    documents: List[KnowledgeDocument] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "documents": [
                    {
                        "content": "[definition | Chapter 3 | Published Reference] The light reaction ...",
                        "similarity": 0.82,
                    },
                    {"content": "[Caller Memory] exam_date: next Friday", "similarity": 0.63},
                ]
            }
        }


class ToolCallsMessage(_Lenient):
    toolCallList: List[Dict[str, Any]] = Field(default_factory=list)
    call: Optional[VapiCall] = None


class ToolCallsRequest(_Lenient):
    """tool-calls 事件（toolCallList 可能在 message 内，也可能在顶层）"""

    message: Optional[ToolCallsMessage] = None
    toolCallList: List[Dict[str, Any]] = Field(default_factory=list)

    def tool_calls(self) -> List[Dict[str, Any]]:
        if self.message and self.message.toolCallList:
            return self.message.toolCallList
        return self.toolCallList


class ToolCallResult(BaseModel):
    toolCallId: Optional[str] = None
    result: Dict[str, Any]


class ToolCallsResponse(BaseModel):
    results: List[ToolCallResult] = Field(default_factory=list)
