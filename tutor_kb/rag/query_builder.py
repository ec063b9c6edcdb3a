"""
查询构建

从对话轮次中取最近 N 条学员发言，拼成一条检索查询
"""

from typing import Iterable, List

from tutor_kb.rag.models.conversation import ConversationTurn


class QueryBuilder:
    def __init__(self, query_message_count: int = 3):
        self.query_message_count = query_message_count

    def build(self, turns: Iterable[ConversationTurn], query_message_count: int = None) -> str:
        """
        Args:
            turns: 按时间顺序排列的对话轮次
            query_message_count: 覆盖默认的 N

        Returns:
            最近 N 条学员发言以单个空格拼接；没有学员发言时返回空串
        """
        count = self.query_message_count if query_message_count is None else query_message_count
        if count <= 0:
            return ""

        user_texts: List[str] = [
            turn.text.strip()
            for turn in turns
            if turn.is_user and turn.text and turn.text.strip()
        ]
        return " ".join(user_texts[-count:])
