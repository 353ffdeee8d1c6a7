"""Asynchronous SA-MP query client: one UDP request/reply per transaction."""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sampquery.bitstream import BitStreamError
from sampquery.encoding import DEFAULT_CODEPAGE, decode_text, make_decoder
from sampquery.protocol import (
    DEFAULT_ADDRESS,
    DEFAULT_PORT,
    HEADER_SIZE,
    Opcode,
    Player,
    PlayerScore,
    QueryRequest,
    QueryResult,
    ServerInfo,
    ServerRule,
    decode_reply,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sampquery.protocol import TextDecoder

    Resolver = Callable[[str], Awaitable[str]]

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 2.0


class QueryError(Exception):
    """Base exception for query errors."""


class InvalidArgument(QueryError):  # noqa: N818
    """Raised when the caller supplies a malformed address, port or opcode."""


class ResolutionError(QueryError):
    """Raised when a host name cannot be resolved to an IPv4 address."""


class TransportError(QueryError):
    """Raised when the request cannot be sent."""


class HostUnavailable(QueryError):  # noqa: N818
    """Raised when no reply arrives before the timeout."""

    def __init__(self, address: str, port: int) -> None:
        super().__init__(f"[{address}:{port}] host unavailable")
        self.address = address
        self.port = port


class MalformedResponse(QueryError):  # noqa: N818
    """Raised when a reply is too short or its payload cannot be decoded."""


async def resolve_address(host: str) -> str:
    """Resolve a host name to the first IPv4 address it maps to."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(
            host, None, family=socket.AF_INET, type=socket.SOCK_DGRAM
        )
    except (OSError, UnicodeError) as e:
        msg = f"Failed to resolve {host}: {e}"
        raise ResolutionError(msg) from e
    if not infos:
        msg = f"No IPv4 address found for {host}"
        raise ResolutionError(msg)
    return infos[0][4][0]


class _QueryProtocol(asyncio.DatagramProtocol):
    """Resolves ``reply`` with the first datagram received on the socket."""

    def __init__(self, target: str) -> None:
        self.target = target
        self.reply: asyncio.Future[bytes] = asyncio.get_running_loop().create_future()

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        if self.reply.done():
            return
        self.reply.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if self.reply.done():
            return
        # ICMP port unreachable from the target: keep waiting for the timeout
        if isinstance(exc, ConnectionRefusedError):
            log.debug("[%s] port unreachable, waiting for timeout", self.target)
            return
        msg = f"[{self.target}] failed to send query: {exc}"
        self.reply.set_exception(TransportError(msg))

    def connection_lost(self, exc: Exception | None) -> None:
        if self.reply.done():
            return
        msg = f"[{self.target}] socket closed before reply: {exc}"
        self.reply.set_exception(TransportError(msg))


def _coerce_opcode(opcode: Opcode | str) -> Opcode:
    try:
        return Opcode(opcode)
    except ValueError:
        msg = f"Unknown opcode {opcode!r}"
        raise InvalidArgument(msg) from None


async def execute(  # noqa: PLR0913
    address: str | None,
    port: int | None,
    opcode: Opcode | str,
    timeout: float | None = None,
    *,
    decode: TextDecoder | None = decode_text,
    resolve: bool = False,
    resolver: Resolver | None = None,
) -> QueryResult:
    """Run one query transaction and return the decoded reply.

    Args:
        address: Target IPv4 address, or a host name when ``resolve`` is set.
            Defaults to the loopback address.
        port: Target UDP port. Defaults to 7777.
        opcode: One of ``i``, ``r``, ``d``, ``c``.
        timeout: Seconds to wait for the reply. Defaults to 2 seconds.
        decode: Turns raw string fields into text. None leaves them as bytes.
        resolve: Resolve ``address`` through ``resolver`` before querying.
        resolver: Async name resolver. Defaults to :func:`resolve_address`.

    Raises:
        InvalidArgument: If the address, port, opcode or timeout is malformed.
        ResolutionError: If name resolution was requested and failed.
        TransportError: If the socket cannot be opened or the send fails.
        HostUnavailable: If no reply arrives before the timeout.
        MalformedResponse: If the reply is short or cannot be decoded.
    """
    opcode = _coerce_opcode(opcode)
    address = address or DEFAULT_ADDRESS
    port = DEFAULT_PORT if port is None else port
    timeout = DEFAULT_TIMEOUT if timeout is None else timeout

    if not 0 < port <= 0xFFFF:  # noqa: PLR2004
        msg = f"Port {port} is out of range"
        raise InvalidArgument(msg)
    if timeout <= 0:
        msg = f"Timeout must be positive, got {timeout}"
        raise InvalidArgument(msg)

    if resolve:
        address = await (resolver or resolve_address)(address)

    try:
        packet = QueryRequest(address=address, port=port, opcode=opcode).encode()
    except ValueError as e:
        raise InvalidArgument(str(e)) from e

    target = f"{address}:{port}"
    loop = asyncio.get_running_loop()
    try:
        transport, protocol = await loop.create_datagram_endpoint(
            lambda: _QueryProtocol(target),
            remote_addr=(address, port),
            family=socket.AF_INET,
        )
    except OSError as e:
        msg = f"[{target}] failed to open socket: {e}"
        raise TransportError(msg) from e

    try:
        log.debug("[%s] sending %r query", target, opcode.value)
        transport.sendto(packet)
        try:
            async with asyncio.timeout(timeout):
                data = await protocol.reply
        except TimeoutError:
            log.debug("[%s] no reply within %.3fs", target, timeout)
            raise HostUnavailable(address, port) from None
    finally:
        transport.close()

    log.debug("[%s] received %d bytes", target, len(data))
    if len(data) < HEADER_SIZE:
        msg = f"[{target}] invalid message from socket ({len(data)} bytes)"
        raise MalformedResponse(msg)

    try:
        return decode_reply(opcode, data, decode)
    except (BitStreamError, ValueError) as e:
        msg = f"[{target}] failed to decode {opcode.value!r} reply: {e}"
        raise MalformedResponse(msg) from e


@dataclass(frozen=True)
class ServerStatus:
    """Combined info, rules and detailed player list of one server."""

    info: ServerInfo
    rules: list[ServerRule]
    players: list[Player]


class SampQuery:
    """Queries one SA-MP server, with per-call overrides of its defaults.

    Every method runs independent transactions; nothing is cached and no
    socket is kept between calls.
    """

    def __init__(
        self,
        address: str = DEFAULT_ADDRESS,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        resolve: bool = False,
        encoding: str | None = DEFAULT_CODEPAGE,
    ) -> None:
        self.address = address
        self.port = port
        self.timeout = timeout
        self.resolve = resolve
        try:
            self._decode = make_decoder(encoding)
        except LookupError as e:
            msg = f"Unknown text encoding {encoding!r}"
            raise InvalidArgument(msg) from e

    async def request(
        self,
        opcode: Opcode | str,
        *,
        address: str | None = None,
        port: int | None = None,
        timeout: float | None = None,
    ) -> QueryResult:
        """Run a single query, falling back to this client's defaults."""
        return await execute(
            address or self.address,
            port or self.port,
            opcode,
            timeout or self.timeout,
            decode=self._decode,
            resolve=self.resolve,
        )

    async def get_server_info(self, **overrides) -> ServerInfo:
        return await self.request(Opcode.INFO, **overrides)  # type: ignore[return-value]

    async def get_server_rules(self, **overrides) -> list[ServerRule]:
        return await self.request(Opcode.RULES, **overrides)  # type: ignore[return-value]

    async def get_server_players(self, **overrides) -> list[PlayerScore]:
        return await self.request(Opcode.PLAYERS, **overrides)  # type: ignore[return-value]

    async def get_server_players_detailed(self, **overrides) -> list[Player]:
        return await self.request(Opcode.PLAYERS_DETAILED, **overrides)  # type: ignore[return-value]

    async def get_server(self, **overrides) -> ServerStatus:
        """Fetch info, rules and detailed players, one query after another."""
        info = await self.get_server_info(**overrides)
        rules = await self.get_server_rules(**overrides)
        players = await self.get_server_players_detailed(**overrides)
        return ServerStatus(info=info, rules=rules, players=players)

    async def get_server_ping(self, **overrides) -> float:
        """Return the round-trip time of an info query in milliseconds."""
        start = time.perf_counter()
        await self.get_server_info(**overrides)
        return (time.perf_counter() - start) * 1000
