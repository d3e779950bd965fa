"""Matching parsed rules against raw Ethernet/IPv4 frames."""

from __future__ import annotations

import ipaddress
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator

from .protocols import ETHERNET_HEADER_LEN, IPV4_MIN_HEADER_LEN, Packet
from .rule import Rule, RuleAction

logger = logging.getLogger(__name__)

_TRANSPORT_NAMES = {6: "tcp", 17: "udp"}
_TRANSPORT_MIN_LEN = {6: 20, 17: 8}
_PORT_PATTERN = re.compile(r"\s*([+-]?\d+)")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


@dataclass(frozen=True)
class RuleMatch:
    """A rule that matched a packet, with the match confidence."""

    rule: Rule
    confidence: float = 1.0


def _rule_port(text: str) -> int | None:
    """Numeric port of a rule field: 0 for ``any``, None when it is not a number."""
    if text == "any":
        return 0
    found = _PORT_PATTERN.match(text)
    if found is None:
        return None
    value = int(found.group(1))
    if not _INT32_MIN <= value <= _INT32_MAX:
        return None
    return value & 0xFFFF


class RuleMatcher:
    """Holds rules and reports which of them match a packet."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: list[Rule] = []
        self.add_rules(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        """The rules in the order they were added."""
        return tuple(self._rules)

    def add_rule(self, rule: Rule) -> None:
        self._rules.append(rule)

    def add_rules(self, rules: Iterable[Rule]) -> None:
        for rule in rules:
            self.add_rule(rule)

    def clear(self) -> None:
        self._rules.clear()

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def match(self, packet: Packet, action: RuleAction | None = None) -> list[RuleMatch]:
        """Return the rules matching ``packet``, optionally only those with ``action``."""
        logger.debug("Matching packet: EtherType=0x%x", packet.protocol)
        matches = [RuleMatch(rule, 1.0) for rule in self._matching_rules(packet)]
        logger.debug("Matched %d rules", len(matches))
        if action is not None:
            matches = [m for m in matches if m.rule.action == action]
        return matches

    def _matching_rules(self, packet: Packet) -> Iterator[Rule]:
        data = packet.data
        size = min(packet.length if packet.length is not None else len(data), len(data))
        if size < ETHERNET_HEADER_LEN + IPV4_MIN_HEADER_LEN:
            return

        ip = data[ETHERNET_HEADER_LEN:]
        ihl = ip[0] & 0x0F
        protocol = ip[9]
        src_ip = int.from_bytes(ip[12:16], "big")
        dst_ip = int.from_bytes(ip[16:20], "big")
        logger.debug(
            "IP Header: Protocol=%d, Src=%s, Dst=%s",
            protocol,
            ipaddress.IPv4Address(src_ip),
            ipaddress.IPv4Address(dst_ip),
        )

        ports: tuple[int, int] | None
        if protocol in _TRANSPORT_NAMES:
            offset = ETHERNET_HEADER_LEN + ihl * 4
            if size < offset + _TRANSPORT_MIN_LEN[protocol]:
                return
            ports = (
                int.from_bytes(data[offset : offset + 2], "big"),
                int.from_bytes(data[offset + 2 : offset + 4], "big"),
            )
            proto_name = _TRANSPORT_NAMES[protocol]
            logger.debug("Transport: SrcPort=%d, DstPort=%d", *ports)
        else:
            ports = None
            proto_name = "ip"
            logger.debug("Non-TCP/UDP protocol: %d", protocol)

        for rule in self._rules:
            if self._rule_applies(rule, proto_name, src_ip, dst_ip, ports):
                logger.debug("Rule matched: %s - %s", rule.id, rule.description)
                yield rule

    @staticmethod
    def _rule_applies(
        rule: Rule,
        proto_name: str,
        src_ip: int,
        dst_ip: int,
        ports: tuple[int, int] | None,
    ) -> bool:
        if not rule.matches_protocol(proto_name):
            logger.debug("Protocol mismatch: rule=%s, packet=%s", rule.protocol, proto_name)
            return False
        if not rule.matches_ip(rule.src_ip, src_ip):
            logger.debug("Source IP mismatch: rule=%s", rule.src_ip)
            return False
        if not rule.matches_ip(rule.dst_ip, dst_ip):
            logger.debug("Destination IP mismatch: rule=%s", rule.dst_ip)
            return False
        if ports is None:
            return True

        rule_src = _rule_port(rule.src_port)
        rule_dst = _rule_port(rule.dst_port)
        if rule_src is None or rule_dst is None:
            logger.debug("Invalid port in rule %s", rule.id)
            return False
        src_port, dst_port = ports
        if rule_src != 0 and not rule.matches_port(rule_src, src_port):
            logger.debug("Source port mismatch: rule=%s, packet=%d", rule.src_port, src_port)
            return False
        if rule_dst != 0 and not rule.matches_port(rule_dst, dst_port):
            logger.debug("Destination port mismatch: rule=%s, packet=%d", rule.dst_port, dst_port)
            return False
        return True