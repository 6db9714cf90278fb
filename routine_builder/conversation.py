from __future__ import annotations

from typing import Dict, List

from .models import Message, Role


class ConversationLog:
    """Append-only, role-tagged history sent with every chat turn.

    The first entry is the persona system message; it is written once here and
    never removed. Nothing is edited or deleted after it is appended.
    """

    def __init__(self, persona: str) -> None:
        self._messages: List[Message] = [Message(role="system", content=persona)]

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def system_message(self) -> Message:
        return self._messages[0]

    def append(self, role: Role, content: str) -> Message:
        if role == "system":
            raise ValueError("The system message is fixed at initialization")
        message = Message(role=role, content=content)
        self._messages.append(message)
        return message

    def append_user(self, content: str) -> Message:
        return self.append("user", content)

    def append_assistant(self, content: str) -> Message:
        return self.append("assistant", content)

    def as_payload(self) -> List[Dict[str, str]]:
        # Exact wire shape for {"messages": [...]}.
        return [message.model_dump() for message in self._messages]
