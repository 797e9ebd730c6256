import os
import socket
import uuid

UNKNOWN_IP = "0.0.0.0"


def internal_ip() -> str:
    """
    Best-effort non-loopback IPv4 address of this host, used to make lock owners readable.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            # connect() on UDP sends nothing, it only selects the outbound interface
            sock.connect(("10.255.255.255", 1))
            address = sock.getsockname()[0]
    except OSError:
        return UNKNOWN_IP
    if address.startswith("127."):
        return UNKNOWN_IP
    return address


def owner_token() -> str:
    """
    A fresh owner token: "<ip>:<pid>:<random hex>". Unique per acquisition attempt.
    """
    return f"{internal_ip()}:{os.getpid()}:{uuid.uuid4().hex[:12]}"
