"""DHCP message layout, request validation and response construction."""

from __future__ import annotations

import enum
import socket
import struct
from dataclasses import dataclass

BOOTREQUEST = 1
BOOTREPLY = 2

OPTION_PAD = 0
OPTION_SUBNET = 1
OPTION_LEASE = 51
OPTION_MESSAGE_TYPE = 53
OPTION_SERVER_IDENTIFIER = 54
OPTION_END = 0xFF

HEADER_SIZE = 236
# DHCP header + magic (4) + type (1) + length (1) + message (1) + end marker
MESSAGE_SIZE_MIN = 244
# Maximum un-extended message size, RFC 2131 p. 10
MESSAGE_SIZE_MAX = 576
OPTIONS_SIZE = MESSAGE_SIZE_MAX - HEADER_SIZE

OPTION_MAGIC = bytes((0x63, 0x82, 0x53, 0x63))

ETHERNET = 1
SUBNET_MASK = "255.255.255.0"
# 42 days; the server does not track leases anyway.
LEASE_TIME = bytes((0x00, 0x37, 0x5F, 0x00))

_LAYOUT = struct.Struct("!BBBBIHH4s4s4s4s16s64s128s340s")


class MessageType(enum.IntEnum):
    """DHCP message types handled by the server."""

    DISCOVER = 1
    OFFER = 2
    REQUEST = 3
    ACK = 5


@dataclass
class DhcpMessage:
    """A BOOTP/DHCP message with a fixed-size options area (RFC 2131)."""

    op: int = 0
    htype: int = 0
    hlen: int = 0
    hops: int = 0
    xid: int = 0
    secs: int = 0
    flags: int = 0
    ciaddr: bytes = bytes(4)
    yiaddr: bytes = bytes(4)
    siaddr: bytes = bytes(4)
    giaddr: bytes = bytes(4)
    chaddr: bytes = bytes(16)
    sname: bytes = bytes(64)
    file: bytes = bytes(128)
    options: bytes = bytes(OPTIONS_SIZE)

    @classmethod
    def from_bytes(cls, data):
        """Decode a datagram, zero-filling it to the full message size."""
        raw = bytes(data[:MESSAGE_SIZE_MAX]).ljust(MESSAGE_SIZE_MAX, b"\0")
        return cls(*_LAYOUT.unpack(raw))

    def to_bytes(self):
        """Encode the message as the full fixed-size datagram."""
        return _LAYOUT.pack(
            self.op,
            self.htype,
            self.hlen,
            self.hops,
            self.xid,
            self.secs,
            self.flags,
            self.ciaddr,
            self.yiaddr,
            self.siaddr,
            self.giaddr,
            self.chaddr,
            self.sname,
            self.file,
            self.options,
        )


def mac_to_str(mac):
    """Format a 48-bit Ethernet address as colon-separated hex."""
    return ":".join(f"{byte:02x}" for byte in bytes(mac[:6]))


def is_invalid_request(request, request_len):
    """Return True if the request cannot be served."""
    if request.htype != ETHERNET:
        print(f"Received request for unsupported hardware type: {request.htype}")
        return True
    if request.op != BOOTREQUEST:
        return True
    if request.options[:4] != OPTION_MAGIC:
        return True
    return not MESSAGE_SIZE_MIN <= request_len <= MESSAGE_SIZE_MAX


def get_request_type(request, request_len):
    """Find a DISCOVER or REQUEST message type among the options, else None."""
    options = request.options
    limit = min(request_len - HEADER_SIZE, len(options))
    idx = 4
    # Up to three bytes from idx are read, so stay three bytes inside the data.
    while idx + 3 <= limit and options[idx] != OPTION_END:
        code = options[idx]
        if code == OPTION_PAD:
            idx += 1
            continue
        if code == OPTION_MESSAGE_TYPE:
            value = options[idx + 2]
            if value in (MessageType.DISCOVER, MessageType.REQUEST):
                return MessageType(value)
        idx += options[idx + 1] + 2
    return None


def _inet_aton(address):
    try:
        return socket.inet_aton(address)
    except OSError as exc:
        raise ValueError(f"invalid IPv4 address: {address!r}") from exc


def create_response(request, message_type, server_ip, client_ip):
    """Build an OFFER/ACK reply to a request, issuing client_ip."""
    server_id = _inet_aton(server_ip)
    subnet = _inet_aton(SUBNET_MASK)
    yiaddr = _inet_aton(client_ip)

    options = b"".join(
        (
            OPTION_MAGIC,
            bytes((OPTION_MESSAGE_TYPE, 1, int(message_type))),
            bytes((OPTION_SERVER_IDENTIFIER, 4)),
            server_id,
            bytes((OPTION_SUBNET, 4)),
            subnet,
            bytes((OPTION_LEASE, 4)),
            LEASE_TIME,
            bytes((OPTION_END,)),
        )
    ).ljust(OPTIONS_SIZE, b"\0")

    return DhcpMessage(
        op=BOOTREPLY,
        htype=request.htype,
        hlen=request.hlen,
        xid=request.xid,
        flags=0,
        yiaddr=yiaddr,
        giaddr=request.giaddr,
        chaddr=request.chaddr[: request.hlen].ljust(16, b"\0"),
        options=options,
    )