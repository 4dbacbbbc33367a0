"""Packing and unpacking of messages with an 8-byte header."""

from __future__ import annotations

import enum
import struct

from zinx.message import Message

DEFAULT_HEADER_LEN = 8


class PacketTooLargeError(ValueError):
    """Raised when a header announces more data than the allowed packet size."""


class PackKind(str, enum.Enum):
    """The available wire formats."""

    TLV = "tlv"  # id, length, value; big-endian (the default)
    LTV = "ltv"  # length, id, value; little-endian (legacy)


class DataPack:
    """Big-endian TLV format: 4-byte id, 4-byte length, then the payload.

    ``max_packet_size`` of 0 means no limit is checked on unpack.
    """

    _header = struct.Struct(">II")
    _length_first = False

    def __init__(self, max_packet_size: int = 0) -> None:
        self.max_packet_size = max_packet_size

    @property
    def head_len(self) -> int:
        return DEFAULT_HEADER_LEN

    def pack(self, msg: Message) -> bytes:
        """Encode the header followed by the message data."""
        fields = (msg.data_len, msg.msg_id) if self._length_first else (msg.msg_id, msg.data_len)
        try:
            header = self._header.pack(*fields)
        except struct.error as exc:
            raise ValueError(f"cannot pack message header: {exc}") from exc
        return header + bytes(msg.data)

    def unpack(self, binary_data: bytes) -> Message:
        """Decode only the header; the returned message has empty data."""
        if len(binary_data) < self._header.size:
            raise ValueError(
                f"header needs {self._header.size} bytes, got {len(binary_data)}"
            )
        first, second = self._header.unpack_from(binary_data)
        data_len, msg_id = (first, second) if self._length_first else (second, first)
        if self.max_packet_size > 0 and data_len > self.max_packet_size:
            raise PacketTooLargeError("too large msg data received")
        return Message(data_len=data_len, msg_id=msg_id)


class DataPackLtv(DataPack):
    """Little-endian LTV format: 4-byte length, 4-byte id, then the payload."""

    _header = struct.Struct("<II")
    _length_first = True


def new_pack(kind: PackKind | str = PackKind.TLV, max_packet_size: int = 0) -> DataPack:
    """Return a packer for ``kind``; unknown kinds fall back to TLV."""
    try:
        resolved = PackKind(kind)
    except ValueError:
        resolved = PackKind.TLV
    if resolved is PackKind.LTV:
        return DataPackLtv(max_packet_size)
    return DataPack(max_packet_size)