"""Layered protocol parsers for Ethernet, IPv4 and TCP headers."""

from __future__ import annotations

import enum
import ipaddress
import struct
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

ETHERNET_HEADER_LEN = 14
IPV4_MIN_HEADER_LEN = 20
TCP_MIN_HEADER_LEN = 20

_ETHER_TYPE_NAMES = {
    0x0800: "IPv4",
    0x0806: "ARP",
    0x86DD: "IPv6",
    0x8100: "VLAN",
    0x88CC: "LLDP",
    0x888E: "EAP",
}

_IP_PROTOCOL_NAMES = {
    1: "ICMP",
    2: "IGMP",
    6: "TCP",
    17: "UDP",
    89: "OSPF",
}

_TCP_HEADER = struct.Struct("!HHIIBBHHH")


class ProtocolType(enum.IntEnum):
    """Protocol a parsing result describes."""

    UNKNOWN = 0
    ETHERNET = 1
    IP = 2
    TCP = 3
    UDP = 4


@dataclass
class Packet:
    """A captured frame together with its capture metadata."""

    data: bytes
    length: int | None = None
    interface_index: int = 0
    protocol: int = 0
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        if self.length is None:
            self.length = len(self.data)

    def to_hex_string(self) -> str:
        """Return the first 32 bytes as space separated hex pairs."""
        return " ".join(f"{b:02x}" for b in self.data[:32])


@dataclass
class ParsingResult:
    """Outcome of parsing one protocol layer."""

    protocol_type: ProtocolType
    is_valid: bool = False
    description: str = ""
    findings: list[tuple[str, str]] = field(default_factory=list)

    def get_finding(self, name: str) -> str:
        """Return the value of the first finding called ``name``, or ''."""
        return next((value for key, value in self.findings if key == name), "")


def format_hex(value: int, width: int) -> str:
    """Format ``value`` as zero padded lowercase hex of at least ``width`` digits."""
    return f"{value:0{width}x}"


class ProtocolParser(ABC):
    """A parser for one protocol layer."""

    @abstractmethod
    def can_parse(self, data: bytes) -> bool:
        """Whether ``data`` looks like this protocol's header."""

    @abstractmethod
    def parse(self, data: bytes) -> ParsingResult:
        """Parse ``data``, which starts at this protocol's header."""


class EthernetParser(ProtocolParser):
    """Parses Ethernet II headers."""

    def can_parse(self, data: bytes) -> bool:
        return len(data) >= ETHERNET_HEADER_LEN

    def parse(self, data: bytes) -> ParsingResult:
        result = ParsingResult(ProtocolType.ETHERNET, False)
        if not self.can_parse(data):
            result.description = "Invalid or incomplete Ethernet packet"
            return result

        dst_mac = self.mac_address_to_string(data[0:6])
        src_mac = self.mac_address_to_string(data[6:12])
        ether_type = int.from_bytes(data[12:14], "big")
        type_name = self.get_protocol_type_name(ether_type)

        result.is_valid = True
        result.description = f"{dst_mac} > {src_mac}, ethertype {type_name}"
        result.findings.extend(
            [
                ("Destination MAC", dst_mac),
                ("Source MAC", src_mac),
                ("EtherType", "0x" + format_hex(ether_type, 4)),
                ("Protocol", type_name),
            ]
        )
        return result

    def mac_address_to_string(self, mac: bytes) -> str:
        return ":".join(f"{b:02x}" for b in mac[:6])

    def get_protocol_type_name(self, ether_type: int) -> str:
        return _ETHER_TYPE_NAMES.get(ether_type, "Unknown")


class IPParser(ProtocolParser):
    """Parses IPv4 headers."""

    def can_parse(self, data: bytes) -> bool:
        return len(data) >= IPV4_MIN_HEADER_LEN and (data[0] >> 4) & 0x0F == 4

    def parse(self, data: bytes) -> ParsingResult:
        result = ParsingResult(ProtocolType.IP, False)
        if not self.can_parse(data):
            result.description = "Invalid or incomplete IP packet"
            return result
        if not self.is_valid_ip_header(data):
            result.description = "Invalid IP header"
            return result

        (
            version_ihl,
            tos,
            total_length,
            identification,
            flags_fragment,
            ttl,
            protocol,
            checksum,
            src,
            dst,
        ) = struct.unpack_from("!BBHHHBBHII", data)

        src_ip = self.ip_address_to_string(src)
        dst_ip = self.ip_address_to_string(dst)

        result.is_valid = True
        result.description = f"IP {src_ip} > {dst_ip}"
        result.findings.extend(
            [
                ("Version", str((version_ihl >> 4) & 0x0F)),
                ("Header Length", f"{self.get_header_length(version_ihl)} bytes"),
                ("Type of Service", str(tos)),
                ("Total Length", str(total_length)),
                ("Identification", "0x" + format_hex(identification, 4)),
                ("Flags", str((flags_fragment >> 13) & 0x07)),
                ("Fragment Offset", str(flags_fragment & 0x1FFF)),
                ("Time to Live", str(ttl)),
                ("Protocol", f"{protocol} ({self.get_protocol_name(protocol)})"),
                ("Header Checksum", "0x" + format_hex(checksum, 4)),
                ("Source Address", src_ip),
                ("Destination Address", dst_ip),
            ]
        )
        return result

    def ip_address_to_string(self, addr: int) -> str:
        return str(ipaddress.IPv4Address(addr & 0xFFFFFFFF))

    def get_protocol_name(self, protocol: int) -> str:
        return _IP_PROTOCOL_NAMES.get(protocol, "Unknown")

    def get_header_length(self, version_ihl: int) -> int:
        return (version_ihl & 0x0F) * 4

    def is_valid_ip_header(self, data: bytes) -> bool:
        if not data:
            return False
        version_ihl = data[0]
        return (version_ihl >> 4) & 0x0F == 4 and version_ihl & 0x0F >= 5


@dataclass(frozen=True)
class TCPHeader:
    """Fixed part of a TCP header."""

    src_port: int
    dst_port: int
    seq_number: int
    ack_number: int
    data_offset: int
    flags: int
    window_size: int
    checksum: int
    urgent_pointer: int


@dataclass(frozen=True)
class TCPFlags:
    """The eight TCP control bits."""

    fin: bool = False
    syn: bool = False
    rst: bool = False
    psh: bool = False
    ack: bool = False
    urg: bool = False
    ece: bool = False
    cwr: bool = False


class TCPParser(ProtocolParser):
    """Parses TCP headers."""

    def can_parse(self, data: bytes) -> bool:
        return len(data) >= TCP_MIN_HEADER_LEN

    def parse(self, data: bytes) -> ParsingResult:
        result = ParsingResult(ProtocolType.TCP, False)
        if not self.can_parse(data):
            result.description = "Invalid or incomplete TCP packet"
            return result

        header = self.parse_tcp_header(data)
        flags = self.parse_tcp_flags(header.flags)

        result.is_valid = True
        result.description = "TCP"
        result.findings.extend(
            [
                ("Source Port", str(header.src_port)),
                ("Destination Port", str(header.dst_port)),
                ("Sequence Number", str(header.seq_number)),
                ("Acknowledgment Number", str(header.ack_number)),
                ("Header Length", f"{header.data_offset * 4} bytes"),
                ("Flags", self.format_flags(flags)),
                ("Window Size", str(header.window_size)),
                ("Checksum", f"0x{header.checksum:04X}"),
                ("Urgent Pointer", str(header.urgent_pointer)),
            ]
        )
        return result

    def parse_tcp_header(self, data: bytes) -> TCPHeader:
        """Decode the 20-byte fixed TCP header; raises ValueError if too short."""
        if len(data) < TCP_MIN_HEADER_LEN:
            raise ValueError(f"TCP header needs {TCP_MIN_HEADER_LEN} bytes, got {len(data)}")
        (src, dst, seq, ack, offset_byte, flags, window, checksum, urgent) = (
            _TCP_HEADER.unpack_from(data)
        )
        return TCPHeader(
            src_port=src,
            dst_port=dst,
            seq_number=seq,
            ack_number=ack,
            data_offset=(offset_byte >> 4) & 0x0F,
            flags=flags,
            window_size=window,
            checksum=checksum,
            urgent_pointer=urgent,
        )

    def parse_tcp_flags(self, flags: int) -> TCPFlags:
        return TCPFlags(
            fin=bool(flags & 0x01),
            syn=bool(flags & 0x02),
            rst=bool(flags & 0x04),
            psh=bool(flags & 0x08),
            ack=bool(flags & 0x10),
            urg=bool(flags & 0x20),
            ece=bool(flags & 0x40),
            cwr=bool(flags & 0x80),
        )

    def format_flags(self, flags: TCPFlags) -> str:
        names = ("fin", "syn", "rst", "psh", "ack", "urg", "ece", "cwr")
        return ", ".join(f"{name.upper()}={int(getattr(flags, name))}" for name in names)


class InfoExtractor:
    """Produces a short textual summary of a packet."""

    def extract_info(self, packet: Packet) -> str:
        return f"Packet info extracted\nSize: {len(packet.data)} bytes\n"