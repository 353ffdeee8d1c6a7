"""SA-MP query wire protocol encoding and decoding."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from sampquery.bitstream import BitStream

if TYPE_CHECKING:
    from collections.abc import Callable

    TextDecoder = Callable[[bytes], str]


class Opcode(StrEnum):
    """Query opcodes, sent as a single ASCII byte."""

    INFO = "i"
    RULES = "r"
    PLAYERS_DETAILED = "d"
    PLAYERS = "c"


MAGIC = "SAMP"
DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 7777
# magic (4) + address octets (4) + port (2) + opcode (1), echoed in every reply
HEADER_SIZE = 11


@dataclass(frozen=True)
class ServerInfo:
    """Reply to an ``i`` query."""

    server_name: str
    game_mode_name: str
    players: int
    max_players: int
    language: str
    closed: bool


@dataclass(frozen=True)
class ServerRule:
    """One (name, value) pair from an ``r`` query."""

    name: str
    value: str


@dataclass(frozen=True)
class Player:
    """One player record from a ``d`` query."""

    id: int
    name: str
    score: int
    ping: int


@dataclass(frozen=True)
class PlayerScore:
    """One player record from a ``c`` query."""

    name: str
    score: int


QueryResult = ServerInfo | list[ServerRule] | list[Player] | list[PlayerScore]


def parse_address(address: str) -> tuple[int, int, int, int]:
    """Split a dotted-quad IPv4 address into its four octets.

    Raises:
        ValueError: If the address does not have exactly four numeric
            parts in the range 0-255.
    """
    parts = address.split(".")
    if len(parts) != 4:  # noqa: PLR2004
        msg = f"Expected a dotted-quad IPv4 address, got {address!r}"
        raise ValueError(msg)

    octets = []
    for part in parts:
        if not part.isdigit():
            msg = f"Non-numeric octet {part!r} in address {address!r}"
            raise ValueError(msg)
        value = int(part)
        if value > 0xFF:  # noqa: PLR2004
            msg = f"Octet {value} out of range in address {address!r}"
            raise ValueError(msg)
        octets.append(value)
    return octets[0], octets[1], octets[2], octets[3]


@dataclass(frozen=True)
class QueryRequest:
    """A single query request packet.

    Wire format: [b"SAMP"][octet x4][port_lo:u8][port_hi:u8][opcode:u8]
    """

    address: str
    port: int
    opcode: Opcode

    def encode(self) -> bytes:
        """Encode the request into bytes for transmission.

        Raises:
            ValueError: If the address is not a valid dotted quad.
        """
        stream = BitStream()
        stream.write_string(MAGIC)
        for octet in parse_address(self.address):
            stream.write_uint8(octet)
        stream.write_uint8(self.port & 0xFF)
        stream.write_uint8((self.port >> 8) & 0xFF)
        stream.write_uint8(ord(self.opcode.value))
        return stream.get_buffer()


def decode_info(reader: BitStream, decode: TextDecoder | None = None) -> ServerInfo:
    """Decode the payload of an ``i`` reply."""
    closed = reader.read_bool()
    players = reader.read_uint16()
    max_players = reader.read_uint16()
    server_name = reader.read_string(reader.read_uint32(), decode)
    game_mode_name = reader.read_string(reader.read_uint32(), decode)
    language = reader.read_string(reader.read_uint32(), decode)
    return ServerInfo(
        server_name=server_name,
        game_mode_name=game_mode_name,
        players=players,
        max_players=max_players,
        language=language,
        closed=closed,
    )


def decode_rules(
    reader: BitStream, decode: TextDecoder | None = None
) -> list[ServerRule]:
    """Decode the payload of an ``r`` reply, preserving wire order."""
    count = reader.read_uint16()
    rules: list[ServerRule] = []
    for _ in range(count):
        name = reader.read_string(reader.read_uint8(), decode)
        value = reader.read_string(reader.read_uint8(), decode)
        rules.append(ServerRule(name=name, value=value))
    return rules


def decode_players_detailed(
    reader: BitStream, decode: TextDecoder | None = None
) -> list[Player]:
    """Decode the payload of a ``d`` reply."""
    count = reader.read_uint16()
    players: list[Player] = []
    for _ in range(count):
        player_id = reader.read_uint8()
        name = reader.read_string(reader.read_uint8(), decode)
        score = reader.read_uint32()
        ping = reader.read_uint32()
        players.append(Player(id=player_id, name=name, score=score, ping=ping))
    return players


def decode_players(
    reader: BitStream, decode: TextDecoder | None = None
) -> list[PlayerScore]:
    """Decode the payload of a ``c`` reply."""
    count = reader.read_uint16()
    players: list[PlayerScore] = []
    for _ in range(count):
        name = reader.read_string(reader.read_uint8(), decode)
        score = reader.read_uint32()
        players.append(PlayerScore(name=name, score=score))
    return players


_DECODERS = {
    Opcode.INFO: decode_info,
    Opcode.RULES: decode_rules,
    Opcode.PLAYERS_DETAILED: decode_players_detailed,
    Opcode.PLAYERS: decode_players,
}


def decode_payload(
    opcode: Opcode, reader: BitStream, decode: TextDecoder | None = None
) -> QueryResult:
    """Decode a reply payload (header already stripped) for ``opcode``."""
    return _DECODERS[opcode](reader, decode)


def decode_reply(
    opcode: Opcode, data: bytes, decode: TextDecoder | None = None
) -> QueryResult:
    """Strip the echoed header from a raw reply and decode its payload.

    Raises:
        BitStreamError: If the reply is shorter than its fields require.
    """
    reader = BitStream.from_bytes(data).slice(HEADER_SIZE)
    return decode_payload(opcode, reader, decode)
