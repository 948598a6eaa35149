"""Append-only conversation log for one orchestration run."""

from structask.llm.messages import Message


class Conversation:
    """Ordered message log, seeded from prior messages for follow-up turns.

    The seed list is copied; the caller's list is never mutated. Messages are
    never reordered, replaced or deduplicated.
    """

    def __init__(self, prior_messages=None):
        self._messages: list[Message] = list(prior_messages or [])
        self.is_fresh = not self._messages

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def extend(self, messages) -> None:
        for m in messages:
            self.append(m)

    def snapshot(self) -> list[Message]:
        return list(self._messages)

    def __iter__(self):
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index):
        return self._messages[index]
