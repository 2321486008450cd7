import socket
from unittest import mock

import pytest

from unudhcpd.protocol import (
    BOOTREQUEST,
    HEADER_SIZE,
    MESSAGE_SIZE_MIN,
    OPTION_MAGIC,
    OPTIONS_SIZE,
    DhcpMessage,
    MessageType,
)
from unudhcpd.server import SIOCSARP, SO_BINDTODEVICE, DhcpConfig, DhcpServer, start_server

MAC = bytes([2, 0, 0, 0, 0, 1])


class FakeSocket:
    def __init__(self, incoming=()):
        self.sent = []
        self.closed = False
        self.incoming = list(incoming)

    def fileno(self):
        return 3

    def sendto(self, data, addr):
        self.sent.append((data, addr))
        return len(data)

    def recvfrom(self, size):
        if not self.incoming:
            raise OSError("socket gone")
        return self.incoming.pop(0)

    def close(self):
        self.closed = True


def _request_bytes(kind):
    options = OPTION_MAGIC + bytes([53, 1, int(kind), 0xFF])
    message = DhcpMessage(
        op=BOOTREQUEST,
        htype=1,
        hlen=6,
        xid=0xCAFE,
        chaddr=MAC.ljust(16, b"\0"),
        options=options.ljust(OPTIONS_SIZE, b"\0"),
    )
    return message.to_bytes()[:MESSAGE_SIZE_MIN]


def _server(incoming=()):
    server = DhcpServer(DhcpConfig(iface="usb0"))
    server.sock = FakeSocket(incoming)
    return server


def test_config_defaults():
    config = DhcpConfig(iface="usb0")
    assert (config.server_ip, config.client_ip, config.server_port) == (
        "172.16.1.1",
        "172.16.1.2",
        67,
    )


@pytest.mark.parametrize(
    "kind, reply", [(MessageType.DISCOVER, MessageType.OFFER), (MessageType.REQUEST, MessageType.ACK)]
)
def test_handle_receive_sends_reply(kind, reply):
    server = _server()
    with mock.patch("fcntl.ioctl") as ioctl:
        response = server.handle_receive(_request_bytes(kind), ("0.0.0.0", 68))
    assert response.options[4:7] == bytes([53, 1, int(reply)])
    assert response.xid == 0xCAFE
    assert response.yiaddr == socket.inet_aton("172.16.1.2")
    assert ioctl.call_count == 1
    assert server.sock.sent == [(response.to_bytes(), ("172.16.1.2", 68))]


def test_handle_receive_ignores_invalid():
    server = _server()
    raw = bytearray(_request_bytes(MessageType.DISCOVER))
    raw[0] = 2
    with mock.patch("fcntl.ioctl"):
        assert server.handle_receive(bytes(raw), ("0.0.0.0", 68)) is None
    assert server.sock.sent == []


def test_handle_receive_ignores_unknown_type():
    server = _server()
    raw = bytearray(_request_bytes(MessageType.DISCOVER))
    raw[HEADER_SIZE + 6] = 8
    with mock.patch("fcntl.ioctl"):
        assert server.handle_receive(bytes(raw), ("0.0.0.0", 68)) is None
    assert server.sock.sent == []


def test_handle_receive_arp_failure_sends_nothing():
    server = _server()
    with mock.patch("fcntl.ioctl", side_effect=OSError("denied")):
        result = server.handle_receive(_request_bytes(MessageType.DISCOVER), ("0.0.0.0", 68))
    assert result is None
    assert server.sock.sent == []


def test_add_arp_entry_request():
    server = _server()
    ip = socket.inet_aton("172.16.1.2")
    with mock.patch("fcntl.ioctl") as ioctl:
        server.add_arp_entry(MAC, ip)
    fd, request, buf = ioctl.call_args.args
    assert fd == 3
    assert request == SIOCSARP
    assert len(buf) == 68
    assert ip in buf and MAC in buf
    assert buf.endswith(b"usb0".ljust(16, b"\0"))


def test_open_binds_interface_and_port():
    server = DhcpServer(DhcpConfig(iface="usb0"))
    with mock.patch("socket.socket") as sock_cls:
        server.open()
    sock = sock_cls.return_value
    assert server.sock is sock
    assert mock.call(socket.SOL_SOCKET, SO_BINDTODEVICE, b"usb0") in sock.setsockopt.call_args_list
    assert sock.bind.call_args == mock.call(("", 67))


def test_open_failure_closes_socket():
    server = DhcpServer(DhcpConfig(iface="usb0"))
    with mock.patch("socket.socket") as sock_cls:
        sock_cls.return_value.bind.side_effect = OSError("in use")
        with pytest.raises(OSError):
            server.open()
    assert sock_cls.return_value.close.call_count == 1
    assert server.sock is None


def test_serve_handles_then_fails():
    server = _server([(_request_bytes(MessageType.DISCOVER), ("0.0.0.0", 68))])
    fake = server.sock
    with mock.patch("fcntl.ioctl"), pytest.raises(OSError):
        server.serve()
    assert len(fake.sent) == 1
    assert fake.closed is True
    assert server.sock is None


def test_serve_requires_open():
    with pytest.raises(RuntimeError):
        DhcpServer(DhcpConfig(iface="usb0")).serve()


def test_start_server_propagates_socket_error(capsys):
    with mock.patch("socket.socket", side_effect=OSError("no sockets")):
        with pytest.raises(OSError):
            start_server(DhcpConfig(iface="usb0"))
    assert "Server started!" not in capsys.readouterr().out