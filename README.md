# unudhcpd

A very small DHCP server for exactly one client. It listens on one
network interface and answers each valid DHCP DISCOVER with an OFFER and
each valid DHCP REQUEST with an ACK. Every answer gives out the same
client address, together with the server identifier, a `255.255.255.0`
subnet mask and a fixed lease time of 42 days.

It is meant for point-to-point links, such as a USB network gadget
between a phone and a computer, where only one peer ever needs an
address.

Linux only: the server binds its socket to the interface with
`SO_BINDTODEVICE` and writes an ARP entry for the client before each
reply. Both need root or the `CAP_NET_ADMIN` / `CAP_NET_RAW`
capabilities, and the default port 67 is privileged.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

```
unudhcpd -i <interface> [-s <server IP>] [-p <server port>] [-c <client IP>]
```

| Option | Meaning                                   | Default      |
|--------|-------------------------------------------|--------------|
| `-i`   | network interface to bind to (required)   |              |
| `-s`   | server IP, sent as the server identifier  | `172.16.1.1` |
| `-p`   | server UDP port (must be a non-zero number) | `67`       |
| `-c`   | client IP handed out in DHCP answers      | `172.16.1.2` |
| `-v`   | print the version and quit                |              |

Example:

```
sudo unudhcpd -i usb0 -s 172.16.1.1 -c 172.16.1.2
```

If the interface is missing or a port is not a number, the usage text is
printed and the command exits with status 1.

If the server stops because of a socket error, for example when the
interface goes away, it prints `Server quit, retrying in 1 second...`
and starts again a second later. It keeps doing this until it is stopped.

## Library use

The packet handling in `unudhcpd.protocol` can be used on its own:

```python
from unudhcpd.protocol import (
    DhcpMessage,
    MessageType,
    create_response,
    get_request_type,
    is_invalid_request,
    mac_to_str,
)

message = DhcpMessage.from_bytes(data)
if not is_invalid_request(message, len(data)):
    kind = get_request_type(message, len(data))  # MessageType.DISCOVER, .REQUEST or None
    if kind is MessageType.DISCOVER:
        print(mac_to_str(message.chaddr))  # e.g. "02:00:00:00:00:01"
        offer = create_response(message, MessageType.OFFER, "172.16.1.1", "172.16.1.2")
        payload = offer.to_bytes()
```

- `DhcpMessage.from_bytes` decodes a datagram, zero-filling it to the
  full 576-byte message; `to_bytes` encodes it back to that size.
- `is_invalid_request` rejects anything that is not an Ethernet
  BOOTREQUEST with the DHCP magic cookie and a length between 244 and
  576 bytes.
- `create_response` raises `ValueError` if an address is not a valid
  IPv4 address.

`unudhcpd.server.DhcpServer` is the server itself. It takes a
`DhcpConfig` (`iface`, `server_ip`, `client_ip`, `server_port`) and can be
used as a context manager that opens and closes the socket.
`handle_receive` answers one datagram and returns the reply it sent, or
`None`; `serve` loops until the socket fails. `start_server(config)`
opens a server and serves with it. `unudhcpd.cli.parse_args` turns a
command line into a `DhcpConfig`.

## What it does not do

The server keeps no lease table and no address pool: every client gets
the same address, and lease times are never enforced. Replies carry only
the message type, server identifier, subnet mask and lease time options;
no router, DNS or other options are sent. DHCP messages other than
DISCOVER and REQUEST (such as RELEASE, DECLINE or INFORM) are ignored.