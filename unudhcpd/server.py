"""UDP server that answers every DHCP client with a single fixed address."""

from __future__ import annotations

import contextlib
import fcntl
import socket
import struct
from dataclasses import dataclass

from unudhcpd.protocol import (
    MESSAGE_SIZE_MAX,
    DhcpMessage,
    MessageType,
    create_response,
    get_request_type,
    is_invalid_request,
    mac_to_str,
)

SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
SIOCSARP = 0x8955
ATF_COM = 0x02
_UDP_PROTO = 17
_IFNAMSIZ = 16

_REPLY_TYPES = {
    MessageType.DISCOVER: MessageType.OFFER,
    MessageType.REQUEST: MessageType.ACK,
}

_RECEIVED_NAMES = {
    MessageType.DISCOVER: "DISCOVER",
    MessageType.REQUEST: "REQUEST",
}


@dataclass
class DhcpConfig:
    """Server settings."""

    iface: str
    server_ip: str = "172.16.1.1"
    client_ip: str = "172.16.1.2"
    server_port: int = 67


def _arp_request(iface, mac, ip):
    protocol_addr = struct.pack("=H2s4s8s", socket.AF_INET, b"", ip, b"")
    hardware_addr = struct.pack("=H14s", 0, bytes(mac[:14]))
    return b"".join(
        (
            protocol_addr,
            hardware_addr,
            struct.pack("=i", ATF_COM),
            bytes(16),
            struct.pack(f"{_IFNAMSIZ}s", iface.encode()),
        )
    )


class DhcpServer:
    """A DHCP server bound to one network interface."""

    def __init__(self, config):
        self.config = config
        self.sock = None

    def open(self):
        """Create the UDP socket, bind it to the interface and the port."""
        try:
            proto = socket.getprotobyname("udp")
        except OSError as exc:
            print(f"getprotobyname failed: {exc}")
            proto = _UDP_PROTO
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, proto)
        except OSError as exc:
            print(f"Unable to open UDP socket: {exc}")
            raise

        with contextlib.suppress(OSError):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        print(f"Trying to bind to interface: {self.config.iface}")
        try:
            sock.setsockopt(socket.SOL_SOCKET, SO_BINDTODEVICE, self.config.iface.encode())
        except OSError as exc:
            print(f"Unable to bind to interface: {exc}")
            sock.close()
            raise
        try:
            sock.bind(("", self.config.server_port))
        except OSError as exc:
            print(f"Unable to bind to UDP socket: {exc}")
            sock.close()
            raise
        self.sock = sock

    def close(self):
        """Close the socket if it is open."""
        if self.sock is not None:
            self.sock.close()
            self.sock = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *args):
        self.close()

    def add_arp_entry(self, mac, ip):
        """Add a completed ARP entry so the reply can reach an unconfigured client."""
        request = _arp_request(self.config.iface, mac, ip)
        try:
            fcntl.ioctl(self.sock.fileno(), SIOCSARP, request)
        except OSError as exc:
            print(f"Unable to add entry to ARP table: {exc}")
            raise

    def send_response(self, response, client_addr):
        """Send a reply to the configured client address on the client's port."""
        destination = (self.config.client_ip, client_addr[1])
        self.add_arp_entry(response.chaddr[: response.hlen], response.yiaddr)
        try:
            self.sock.sendto(response.to_bytes(), destination)
        except OSError as exc:
            print(f"Unable to send DHCP response: {exc}")
            raise

    def handle_receive(self, data, client_addr):
        """Answer one datagram; return the reply sent, or None."""
        request = DhcpMessage.from_bytes(data)
        if is_invalid_request(request, len(data)):
            return None
        request_type = get_request_type(request, len(data))
        if request_type is None:
            return None
        if request.hlen == 6:
            print(
                f"Received DHCP {_RECEIVED_NAMES[request_type]} from client: "
                f"{mac_to_str(request.chaddr)}"
            )
        try:
            response = create_response(
                request,
                _REPLY_TYPES[request_type],
                self.config.server_ip,
                self.config.client_ip,
            )
            self.send_response(response, client_addr)
        except (OSError, ValueError):
            return None
        return response

    def serve(self):
        """Receive and answer requests until the socket fails."""
        if self.sock is None:
            raise RuntimeError("server is not open")
        while True:
            try:
                data, client_addr = self.sock.recvfrom(MESSAGE_SIZE_MAX)
            except OSError as exc:
                print(f"Unable to receive from socket: {exc}")
                self.close()
                raise
            self.handle_receive(data, client_addr)


def start_server(config):
    """Open a server for config and serve until it fails with OSError."""
    print(
        "Trying to start server with parameters: "
        f"Server IP addr: {config.server_ip}:{config.server_port}, "
        f"client IP addr: {config.client_ip}, interface: {config.iface}"
    )
    with DhcpServer(config) as server:
        print("Server started!")
        server.serve()