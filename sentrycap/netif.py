"""Report the administrative and link state of a network interface."""

from __future__ import annotations

import argparse
import socket
import struct
import sys
from dataclasses import dataclass

IFF_UP = 0x1
IFF_RUNNING = 0x40
IFF_LOWER_UP = 0x10000

RTM_NEWLINK = 16
RTM_GETLINK = 18
NLMSG_DONE = 3
NLM_F_REQUEST = 0x1
IFLA_IFNAME = 3
NETLINK_ROUTE = 0

_NLMSGHDR = struct.Struct("=IHHII")
_IFINFOMSG = struct.Struct("=BBHiII")
_RTATTR = struct.Struct("=HH")
_RECV_SIZE = 16 * 1024
DEFAULT_DEVICE = "eno1"


class InterfaceNotFoundError(LookupError):
    """Raised when a network interface does not exist or was not reported."""


@dataclass(frozen=True)
class NicState:
    """Interface flags that decide whether a link can carry traffic."""

    iff_up: bool = False
    carrier_on: bool = False
    running: bool = False

    @classmethod
    def from_flags(cls, flags: int) -> NicState:
        return cls(
            iff_up=bool(flags & IFF_UP),
            carrier_on=bool(flags & IFF_LOWER_UP),
            running=bool(flags & IFF_RUNNING),
        )

    @property
    def usable(self) -> bool:
        return self.iff_up and self.carrier_on and self.running


def _align(length: int) -> int:
    return (length + 3) & ~3


def _attributes(buf: bytes):
    """Yield (type, payload) for each well-formed route attribute in ``buf``."""
    pos = 0
    while len(buf) - pos >= _RTATTR.size:
        rta_len, rta_type = _RTATTR.unpack_from(buf, pos)
        if rta_len < _RTATTR.size or rta_len > len(buf) - pos:
            return
        yield rta_type, buf[pos + _RTATTR.size : pos + rta_len]
        pos += _align(rta_len)


def parse_link_messages(buf: bytes, name: str) -> NicState | None:
    """Find the link message for interface ``name`` in a netlink reply."""
    wanted = name.encode()
    pos = 0
    while len(buf) - pos >= _NLMSGHDR.size:
        msg_len, msg_type, _flags, _seq, _pid = _NLMSGHDR.unpack_from(buf, pos)
        if msg_len < _NLMSGHDR.size or msg_len > len(buf) - pos:
            break
        if msg_type == NLMSG_DONE:
            break
        if msg_type == RTM_NEWLINK:
            info_start = pos + _NLMSGHDR.size
            attrs_start = info_start + _align(_IFINFOMSG.size)
            if attrs_start <= pos + msg_len:
                *_, if_flags, _change = _IFINFOMSG.unpack_from(buf, info_start)
                for rta_type, payload in _attributes(buf[attrs_start : pos + msg_len]):
                    if rta_type == IFLA_IFNAME and payload.split(b"\0", 1)[0] == wanted:
                        return NicState.from_flags(if_flags)
        pos += _align(msg_len)
    return None


def get_netif_state(name: str) -> NicState:
    """Query the kernel for the state of interface ``name``.

    Raises InterfaceNotFoundError when the interface does not exist and
    OSError when the netlink exchange fails.
    """
    try:
        index = socket.if_nametoindex(name)
    except OSError:
        raise InterfaceNotFoundError(f"interface '{name}' not exist") from None

    family = getattr(socket, "AF_NETLINK", None)
    if family is None:
        raise OSError("netlink sockets are not available on this platform")

    request = _NLMSGHDR.pack(
        _NLMSGHDR.size + _IFINFOMSG.size, RTM_GETLINK, NLM_F_REQUEST, 0, 0
    ) + _IFINFOMSG.pack(socket.AF_UNSPEC, 0, 0, index, 0, 0)

    with socket.socket(family, socket.SOCK_RAW | getattr(socket, "SOCK_CLOEXEC", 0), NETLINK_ROUTE) as sock:
        sock.sendto(request, (0, 0))
        reply = sock.recv(_RECV_SIZE)

    state = parse_link_messages(reply, name)
    if state is None:
        raise InterfaceNotFoundError(f"interface '{name}' not reported by the kernel")
    return state


def format_state(dev: str, state: NicState) -> str:
    """Render the state report for ``dev``."""
    return (
        f"dev: {dev}, iff_up: {'UP' if state.iff_up else 'DOWN'}, "
        f"carrier_on: {'ON' if state.carrier_on else 'OFF'}, "
        f"running: {'RUNNING' if state.running else 'NOT RUNNING'}\n"
        f" => usable: {'YES' if state.usable else 'NO'} \n"
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Show the link state of a network interface.")
    parser.add_argument("device", nargs="?", default=DEFAULT_DEVICE)
    args = parser.parse_args(argv)
    try:
        state = get_netif_state(args.device)
    except (InterfaceNotFoundError, OSError) as exc:
        print(exc, file=sys.stderr)
        print(
            f"get_netif_state: device '{args.device}' not found or netlink error",
            file=sys.stderr,
        )
        return 1
    print(format_state(args.device, state), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())