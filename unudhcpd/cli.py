"""Command line entry point."""

from __future__ import annotations

import getopt
import re
import sys
import time

from unudhcpd.server import DhcpConfig, start_server

VERSION = "0.1"

USAGE = """Usage:
\tunudhcpd -i <interface> [-s <server IP>] [-p <server port>] [-c <client IP>]
Where:
\t-i  network interface to bind to
\t-s  server IP {default: 172.16.1.1}
\t-p  server port {default: 67}
\t-c  client IP to issue for DHCP requests {default: 172.16.1.2}
\t-v  print version and quit"""


class UsageError(Exception):
    """The command line could not be used."""


def _atoi(text):
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def parse_args(argv):
    """Build a DhcpConfig from arguments, or return None if -v was given."""
    try:
        opts, _ = getopt.gnu_getopt(list(argv), "i:c:s:p:v")
    except getopt.GetoptError as exc:
        raise UsageError(str(exc)) from exc

    iface = None
    settings = {}
    for flag, value in opts:
        if flag == "-i":
            iface = value
        elif flag == "-c":
            settings["client_ip"] = value
        elif flag == "-s":
            settings["server_ip"] = value
        elif flag == "-p":
            port = _atoi(value)
            if not port:
                raise UsageError(f"invalid port: {value!r}")
            settings["server_port"] = port
        elif flag == "-v":
            return None

    if iface is None:
        raise UsageError("no interface given")
    return DhcpConfig(iface=iface, **settings)


def main(argv=None):
    """Run the server, restarting it a second after each failure."""
    if argv is None:
        argv = sys.argv[1:]
    try:
        config = parse_args(argv)
    except UsageError:
        print(USAGE)
        return 1
    if config is None:
        print(f"unudhcpd {VERSION}")
        return 0

    while True:
        try:
            start_server(config)
        except OSError:
            print("Server quit, retrying in 1 second...")
            time.sleep(1)