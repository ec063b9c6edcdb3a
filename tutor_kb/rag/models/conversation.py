"""
对话轮次数据模型
"""

from dataclasses import dataclass

# 终端用户（学员）角色；其余角色（assistant/bot/system/tool）都视为语音助手侧
USER_ROLE = "user"


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    text: str

    @property
    def is_user(self) -> bool:
        return (self.role or "").strip().lower() == USER_ROLE
