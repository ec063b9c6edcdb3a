"""
关键词打分

查询分词规则：转小写、非单词字符替换为空格、保留长度 > 2 的词。
内容存储适配器和各召回策略共用这里的分词与打分函数，保证同一份
数据无论走哪个适配器得到的分数一致。
"""

import math
import re
from typing import Iterable, List, Optional, Sequence

from tutor_kb.rag.models.candidate import clamp_score
from tutor_kb.rag.models.retrieval_settings import KnowledgeRetrievalSettings

_NON_WORD = re.compile(r"[^\w\s]")
MIN_WORD_LENGTH = 3
# 正文包含条件最多使用的查询词数量（标签匹配使用全部查询词）
MAX_CONTENT_TERMS = 5


def tokenize(text: Optional[str]) -> List[str]:
    """查询分词（保留顺序，去重）"""
    if not text:
        return []
    words = _NON_WORD.sub(" ", text.lower()).split()
    seen = set()
    result = []
    for word in words:
        if len(word) < MIN_WORD_LENGTH or word in seen:
            continue
        seen.add(word)
        result.append(word)
    return result


def count_content_matches(words: Sequence[str], text: Optional[str]) -> int:
    """统计出现在文本中的查询词数量（子串匹配，不区分大小写）"""
    if not text:
        return 0
    lowered = text.lower()
    return sum(1 for word in words if word in lowered)


def count_tag_matches(words: Sequence[str], tags: Optional[Iterable[str]]) -> int:
    """
    统计命中标签集合的查询词数量

    整个标签精确匹配（不区分大小写），"light-reaction" 不会命中 light
    """
    if not tags:
        return 0
    tag_set = {str(tag).lower() for tag in tags if tag}
    return sum(1 for word in words if word in tag_set)


def is_detailed(depth: Optional[int]) -> bool:
    # 未标注深度按细节内容处理
    return depth is None or depth >= 2


def assertion_keyword_score(
    content_matches: int,
    tag_matches: int,
    word_count: int,
    prior_relevance: Optional[float],
    depth: Optional[int],
    settings: KnowledgeRetrievalSettings,
) -> float:
    """
    断言关键词得分

    score = min(1, (content + tag_weight * tag) / words * lexical_weight
                   + prior * prior_weight + depth_boost)
    """
    if word_count <= 0:
        return 0.0
    prior = settings.default_prior_relevance if prior_relevance is None else prior_relevance
    lexical = (content_matches + settings.tag_weight * tag_matches) / word_count
    boost = settings.depth_boost if is_detailed(depth) else 0.0
    return clamp_score(lexical * settings.lexical_weight + prior * settings.prior_weight + boost)


def memory_keyword_score(match_count: int, word_count: int, base_score: float) -> float:
    """学员记忆得分：min(1, 命中数 / 词数 + 基础分)"""
    if word_count <= 0:
        return 0.0
    return clamp_score(match_count / word_count + base_score)


def chunk_keyword_score(words: Sequence[str], text: Optional[str]) -> float:
    """知识切片在无向量时的降级得分：命中词比例"""
    if not words:
        return 0.0
    return clamp_score(count_content_matches(words, text) / len(words))


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """1 - cosine_distance，与 pgvector 的 1 - (a <=> b) 一致"""
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
