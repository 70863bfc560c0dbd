import os
import socket
import struct
import time

ICMP_ECHO_REQUEST = 8


def checksum(data):
    """Internet checksum (RFC 1071) over `data`."""
    if len(data) % 2:
        data += b'\x00'
    total = sum(struct.unpack(f"!{len(data) // 2}H", data))
    total = (total >> 16) + (total & 0xFFFF)
    total += total >> 16
    return ~total & 0xFFFF


def build_echo_request(identifier, sequence, payload):
    """Builds an ICMP echo request packet carrying `payload`."""
    header = struct.pack("!BBHHH", ICMP_ECHO_REQUEST, 0, 0, identifier, sequence)
    csum = checksum(header + payload)
    header = struct.pack("!BBHHH", ICMP_ECHO_REQUEST, 0, csum, identifier, sequence)
    return header + payload


class IcmpConnection:
    """
    Sends ICMP echo requests to a single host.
    Same shape as a TCP connection helper: connect, send, close.
    Needs a raw socket, so usually root / CAP_NET_RAW.
    """
    def __init__(self, host, ttl=64, timeout=1.0, delay=0.0):
        self.host = str(host)
        self.ttl = ttl
        self.timeout = timeout
        self.delay = delay
        self.identifier = os.getpid() & 0xFFFF
        self.sequence = 0
        self.sock = None
        self.connected = False

    def connect(self):
        """Opens the raw socket. OSError (e.g. missing privileges) propagates."""
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        self.sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, self.ttl)
        self.sock.settimeout(self.timeout)
        self.connected = True
        return True

    def send(self, payload):
        """Sends one echo request with `payload`. Returns the sequence number used."""
        if not self.connected:
            self.connect()

        if isinstance(payload, str):
            payload = payload.encode()

        self.sequence = (self.sequence + 1) & 0xFFFF
        packet = build_echo_request(self.identifier, self.sequence, payload)
        self.sock.sendto(packet, (self.host, 0))
        if self.delay:
            time.sleep(self.delay)
        return self.sequence

    def close(self):
        """Closes the socket."""
        if self.sock:
            self.sock.close()
        self.sock = None
        self.connected = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()
        return False
