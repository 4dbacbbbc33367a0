"""The message carried between peers: an id, a length and a payload."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Message:
    """A framed message; ``raw_data`` keeps the payload as first received."""

    data_len: int = 0
    msg_id: int = 0
    data: bytes = b""
    raw_data: bytes = field(default=b"", repr=False)

    def init(self, msg_id: int, data: bytes) -> None:
        """Reset the message to carry ``data`` under ``msg_id``."""
        self.msg_id = msg_id
        self.data = data
        self.raw_data = data
        self.data_len = len(data)


def new_msg_package(msg_id: int, data: bytes) -> Message:
    """Build a message whose length is taken from ``data``."""
    return Message(data_len=len(data), msg_id=msg_id, data=data, raw_data=data)


def new_message(data_len: int, data: bytes) -> Message:
    """Build a message with id 0 and an explicit length."""
    return Message(data_len=data_len, data=data, raw_data=data)


def new_message_by_msg_id(msg_id: int, data_len: int, data: bytes) -> Message:
    """Build a message with an explicit id and length."""
    return Message(data_len=data_len, msg_id=msg_id, data=data, raw_data=data)