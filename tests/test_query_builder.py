from __future__ import annotations

import unittest

from tutor_kb.rag.models.conversation import ConversationTurn
from tutor_kb.rag.query_builder import QueryBuilder


class QueryBuilderTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.builder = QueryBuilder()

    def test_last_n_user_turns_joined_by_space(self) -> None:
        turns = [
            ConversationTurn("user", "hello"),
            ConversationTurn("assistant", "Hi! What shall we study?"),
            ConversationTurn("user", "photosynthesis"),
            ConversationTurn("user", "  the light reaction "),
            ConversationTurn("assistant", "Sure."),
            ConversationTurn("user", "and chlorophyll"),
        ]
        self.assertEqual(
            self.builder.build(turns),
            "photosynthesis the light reaction and chlorophyll",
        )

    def test_override_count(self) -> None:
        turns = [ConversationTurn("user", "one"), ConversationTurn("user", "two")]
        self.assertEqual(self.builder.build(turns, query_message_count=1), "two")
        self.assertEqual(self.builder.build(turns, query_message_count=0), "")

    def test_blank_and_non_user_turns_ignored(self) -> None:
        turns = [
            ConversationTurn("system", "You are a tutor"),
            ConversationTurn("user", "   "),
            ConversationTurn("tool", "lookup result"),
        ]
        self.assertEqual(self.builder.build(turns), "")

    def test_role_is_case_insensitive(self) -> None:
        turns = [ConversationTurn(" User ", "mitosis"), ConversationTurn("bot", "ok")]
        self.assertEqual(self.builder.build(turns), "mitosis")

    def test_no_turns(self) -> None:
        self.assertEqual(self.builder.build([]), "")


if __name__ == "__main__":
    unittest.main()
