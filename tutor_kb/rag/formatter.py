"""
片段格式化

- 创建时标注：断言带上 类别 / 章节 / 可信等级，知识切片带上标题
- 输出时渲染：学员记忆统一加 [Caller Memory] 前缀，其余内容原样输出

本模块不参与打分
"""

from typing import List, Optional

from tutor_kb.rag.clients.base import AssertionRecord, ChunkRecord, MemoryRecord
from tutor_kb.rag.models.candidate import ScoredItem, SourceType

CALLER_MEMORY_MARKER = "[Caller Memory]"

# 资料可信等级 -> 展示名称
TRUST_LEVEL_LABELS = {
    "REGULATORY_STANDARD": "Regulatory Standard",
    "ACCREDITED_MATERIAL": "Accredited Material",
    "PUBLISHED_REFERENCE": "Published Reference",
    "EXPERT_CURATED": "Expert Curated",
    "AI_ASSISTED": "AI Assisted",
    "UNVERIFIED": "Unverified",
}


def trust_label(trust_level: Optional[str]) -> Optional[str]:
    if not trust_level:
        return None
    return TRUST_LEVEL_LABELS.get(trust_level, trust_level)


def annotate_assertion(record: AssertionRecord) -> str:
    """[category | chapter | trust] assertion；缺失的部分省略"""
    parts = [p for p in (record.category, record.chapter, trust_label(record.trust_level)) if p]
    if not parts:
        return record.assertion
    return f"[{' | '.join(parts)}] {record.assertion}"


def annotate_chunk(record: ChunkRecord) -> str:
    if record.title:
        return f"[{record.title}] {record.content}"
    return record.content


def annotate_memory(record: MemoryRecord) -> str:
    return record.text


class SnippetFormatter:
    """把排序后的条目渲染成带来源标注的纯文本"""

    def render(self, item: ScoredItem) -> str:
        if item.source_type == SourceType.MEMORY and not item.content.startswith(CALLER_MEMORY_MARKER):
            return f"{CALLER_MEMORY_MARKER} {item.content}"
        return item.content

    def format(self, items: List[ScoredItem]) -> List[ScoredItem]:
        return [
            ScoredItem(
                content=self.render(item),
                relevance_score=item.relevance_score,
                source_type=item.source_type,
            )
            for item in items
        ]
