import pytest

from sentrycap.protocols import (
    EthernetParser,
    InfoExtractor,
    IPParser,
    Packet,
    ParsingResult,
    ProtocolType,
    TCPFlags,
    TCPParser,
    format_hex,
)

ETH_HEADER = bytes(
    [0x02, 0x00, 0x00, 0x00, 0x00, 0x01, 0x02, 0x00, 0x00, 0x00, 0x00, 0x02, 0x08, 0x00]
)
IP_HEADER = bytes(
    [
        0x45, 0x00, 0x00, 0x28, 0x1C, 0x46, 0x40, 0x00, 0x40, 0x06, 0xB1, 0xF4,
        0xC0, 0xA8, 0x01, 0x64, 0xC0, 0xA8, 0x01, 0x01,
    ]
)
TCP_SYN = bytes(
    [
        0x00, 0x50, 0x1F, 0x90, 0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x00,
        0x50, 0x02, 0x20, 0x00, 0x00, 0x00, 0x00, 0x00,
    ]
)
TCP_SYN_ACK = bytes(
    [
        0x1F, 0x90, 0x00, 0x50, 0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00, 0x02,
        0x50, 0x12, 0x20, 0x00, 0x00, 0x00, 0x00, 0x00,
    ]
)
TCP_ACK = bytes(
    [
        0x00, 0x50, 0x1F, 0x90, 0x00, 0x00, 0x00, 0x02, 0x00, 0x00, 0x00, 0x02,
        0x50, 0x10, 0x20, 0x00, 0x00, 0x00, 0x00, 0x00,
    ]
)
# Sample from the HTTP request case: ack number 1, SYN.
TCP_SAMPLE = bytes(
    [
        0x00, 0x50, 0x1F, 0x90, 0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,
        0x50, 0x02, 0x20, 0x00, 0x00, 0x00, 0x00, 0x00,
    ]
)


def test_format_hex_pads():
    assert format_hex(0x800, 4) == "0800"
    assert format_hex(0x1C46, 4) == "1c46"


def test_ethernet_parse_frame():
    result = EthernetParser().parse(ETH_HEADER + IP_HEADER)
    assert result.is_valid
    assert result.protocol_type is ProtocolType.ETHERNET
    assert result.description == "02:00:00:00:00:01 > 02:00:00:00:00:02, ethertype IPv4"
    assert result.findings == [
        ("Destination MAC", "02:00:00:00:00:01"),
        ("Source MAC", "02:00:00:00:00:02"),
        ("EtherType", "0x0800"),
        ("Protocol", "IPv4"),
    ]


def test_ethernet_too_short():
    parser = EthernetParser()
    assert not parser.can_parse(ETH_HEADER[:13])
    result = parser.parse(ETH_HEADER[:13])
    assert not result.is_valid
    assert result.description == "Invalid or incomplete Ethernet packet"


@pytest.mark.parametrize(
    "ether_type, name",
    [(0x0800, "IPv4"), (0x0806, "ARP"), (0x86DD, "IPv6"), (0x8100, "VLAN"),
     (0x88CC, "LLDP"), (0x888E, "EAP"), (0x1234, "Unknown")],
)
def test_ether_type_names(ether_type, name):
    assert EthernetParser().get_protocol_type_name(ether_type) == name


def test_ip_parse_header():
    result = IPParser().parse(IP_HEADER + TCP_SYN)
    assert result.is_valid
    assert result.protocol_type is ProtocolType.IP
    assert result.description == "IP 192.168.1.100 > 192.168.1.1"
    assert result.findings == [
        ("Version", "4"),
        ("Header Length", "20 bytes"),
        ("Type of Service", "0"),
        ("Total Length", "40"),
        ("Identification", "0x1c46"),
        ("Flags", "2"),
        ("Fragment Offset", "0"),
        ("Time to Live", "64"),
        ("Protocol", "6 (TCP)"),
        ("Header Checksum", "0xb1f4"),
        ("Source Address", "192.168.1.100"),
        ("Destination Address", "192.168.1.1"),
    ]


def test_ip_rejects_wrong_version_and_short():
    parser = IPParser()
    assert not parser.can_parse(bytes([0x65]) + IP_HEADER[1:])
    assert not parser.can_parse(IP_HEADER[:19])
    assert parser.parse(IP_HEADER[:19]).description == "Invalid or incomplete IP packet"


def test_ip_rejects_small_ihl():
    bad = bytes([0x44]) + IP_HEADER[1:]
    parser = IPParser()
    assert parser.can_parse(bad)
    assert not parser.is_valid_ip_header(bad)
    result = parser.parse(bad)
    assert not result.is_valid
    assert result.description == "Invalid IP header"


def test_ip_helpers():
    parser = IPParser()
    assert parser.ip_address_to_string(0xC0A80164) == "192.168.1.100"
    assert parser.get_header_length(0x46) == 24
    assert parser.get_protocol_name(17) == "UDP"
    assert parser.get_protocol_name(89) == "OSPF"
    assert parser.get_protocol_name(200) == "Unknown"


def test_tcp_sample_packet():
    parser = TCPParser()
    assert parser.can_parse(TCP_SAMPLE)
    result = parser.parse(TCP_SAMPLE)
    assert result.is_valid
    assert result.protocol_type is ProtocolType.TCP
    assert result.description == "TCP"
    assert result.get_finding("Source Port") == "80"
    assert result.get_finding("Destination Port") == "8080"
    assert result.get_finding("Sequence Number") == "1"
    assert result.get_finding("Acknowledgment Number") == "1"
    assert result.get_finding("Header Length") == "20 bytes"
    assert result.get_finding("Window Size") == "8192"
    assert result.get_finding("Checksum") == "0x0000"
    assert result.get_finding("Urgent Pointer") == "0"


@pytest.mark.parametrize(
    "segment, src, dst, seq, ack, flags",
    [
        (TCP_SYN, "80", "8080", "1", "0",
         "FIN=0, SYN=1, RST=0, PSH=0, ACK=0, URG=0, ECE=0, CWR=0"),
        (TCP_SYN_ACK, "8080", "80", "2", "2",
         "FIN=0, SYN=1, RST=0, PSH=0, ACK=1, URG=0, ECE=0, CWR=0"),
        (TCP_ACK, "80", "8080", "2", "2",
         "FIN=0, SYN=0, RST=0, PSH=0, ACK=1, URG=0, ECE=0, CWR=0"),
    ],
)
def test_tcp_comprehensive(segment, src, dst, seq, ack, flags):
    result = TCPParser().parse(segment)
    assert result.is_valid
    assert result.get_finding("Source Port") == src
    assert result.get_finding("Destination Port") == dst
    assert result.get_finding("Sequence Number") == seq
    assert result.get_finding("Acknowledgment Number") == ack
    assert result.get_finding("Flags") == flags


def test_tcp_too_short():
    parser = TCPParser()
    result = parser.parse(TCP_SYN[:19])
    assert not result.is_valid
    assert result.description == "Invalid or incomplete TCP packet"
    with pytest.raises(ValueError):
        parser.parse_tcp_header(TCP_SYN[:10])


def test_tcp_flags_all_bits():
    flags = TCPParser().parse_tcp_flags(0xFF)
    assert flags == TCPFlags(True, True, True, True, True, True, True, True)
    assert TCPParser().parse_tcp_flags(0x00) == TCPFlags()


def test_tcp_header_fields():
    header = TCPParser().parse_tcp_header(TCP_SYN_ACK)
    assert header.src_port == 8080
    assert header.dst_port == 80
    assert header.data_offset == 5
    assert header.flags == 0x12
    assert header.window_size == 0x2000


def test_checksum_uppercase():
    segment = TCP_SYN[:16] + bytes([0xAB, 0xCD]) + TCP_SYN[18:]
    assert TCPParser().parse(segment).get_finding("Checksum") == "0xABCD"


def test_get_finding_missing():
    result = ParsingResult(ProtocolType.TCP, True, "TCP", [("A", "1")])
    assert result.get_finding("A") == "1"
    assert result.get_finding("B") == ""


def test_packet_defaults_and_hex():
    packet = Packet(ETH_HEADER + IP_HEADER + TCP_SYN)
    assert packet.length == 54
    hex_str = packet.to_hex_string()
    assert hex_str.startswith("02 00 00 00 00 01")
    assert len(hex_str.split()) == 32


def test_info_extractor():
    packet = Packet(ETH_HEADER + IP_HEADER)
    assert InfoExtractor().extract_info(packet) == "Packet info extracted\nSize: 34 bytes\n"