# conversation.py
# Append-only conversation history for one workflow invocation.

from typing import Iterable, Iterator

from api_scout.models import MessageItem


class ConversationLog:
    """
    Ordered, append-only sequence of message items.

    Nothing is ever removed, reordered or deduplicated. Readers always get
    the full accumulated history via snapshot(), never a live reference.
    """

    def __init__(self, items: Iterable[MessageItem] = ()) -> None:
        self._items: list[MessageItem] = list(items)

    @classmethod
    def seed(cls, user_text: str) -> "ConversationLog":
        return cls([MessageItem.user_text(user_text)])

    def append(self, items: Iterable[MessageItem]) -> None:
        self._items.extend(items)

    def snapshot(self) -> list[MessageItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[MessageItem]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"ConversationLog({len(self._items)} items)"
