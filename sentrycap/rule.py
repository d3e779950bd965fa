"""Snort/Suricata style rule model and rule-text parser."""

from __future__ import annotations

import enum
import ipaddress
import logging
import os
import socket
from dataclasses import dataclass, field
from typing import Iterable

logger = logging.getLogger(__name__)

INADDR_NONE = 0xFFFFFFFF
_VALID_PROTOCOLS = frozenset({"tcp", "udp", "icmp", "ip"})


class RuleAction(enum.IntEnum):
    """What to do with a packet that matches a rule."""

    ALERT = 0
    LOG = 1
    DROP = 2
    PASS = 3
    REJECT = 4


class RuleDirection(enum.IntEnum):
    """Traffic direction a rule header describes."""

    UNIDIRECTIONAL = 0
    BIDIRECTIONAL = 1
    REVERSE = 2


_ACTIONS = {action.name.lower(): action for action in RuleAction}
_DIRECTIONS = {
    "->": RuleDirection.UNIDIRECTIONAL,
    "<>": RuleDirection.BIDIRECTIONAL,
    "<-": RuleDirection.REVERSE,
}


@dataclass(frozen=True)
class RuleOption:
    """One ``keyword:value`` entry from a rule's option list."""

    keyword: str
    value: str = ""
    negated: bool = False


def _inet_addr(text: str) -> int | None:
    """Convert dotted text to a host-order address; None when it is not one."""
    try:
        value = int.from_bytes(socket.inet_aton(text), "big")
    except (OSError, ValueError):
        return None
    return None if value == INADDR_NONE else value


def _as_address(packet_ip: int | str | ipaddress.IPv4Address) -> int:
    return int(ipaddress.IPv4Address(packet_ip))


@dataclass
class Rule:
    """A detection rule: header fields plus options."""

    id: str = ""
    description: str = ""
    protocol: str = ""
    src_ip: str = ""
    src_port: str = ""
    direction: RuleDirection = RuleDirection.UNIDIRECTIONAL
    dst_ip: str = ""
    dst_port: str = ""
    action: RuleAction = RuleAction.ALERT
    options: list[RuleOption] = field(default_factory=list)
    enabled: bool = True

    def validation_errors(self) -> list[str]:
        """Return every problem that keeps this rule from being usable."""
        errors = []
        if not self.id:
            errors.append("Rule must have an ID (sid option)")
        if not self.description:
            errors.append("Rule must have a description (msg option)")
        if not self.protocol:
            errors.append("Rule must specify a protocol")
        elif self.protocol.lower() not in _VALID_PROTOCOLS:
            errors.append(f"Invalid protocol: {self.protocol}")
        if not self.src_ip:
            errors.append("Rule must specify a source IP")
        if not self.dst_ip:
            errors.append("Rule must specify a destination IP")
        if not self.src_port:
            errors.append("Rule must specify a source port")
        if not self.dst_port:
            errors.append("Rule must specify a destination port")
        return errors

    def validate(self) -> bool:
        """Whether the rule has no validation errors."""
        return not self.validation_errors()

    def __str__(self) -> str:
        return (
            f"Rule[{self.id}]: {self.description} ({self.protocol} {self.src_ip} "
            f"{self.src_port} -> {self.dst_ip} {self.dst_port})"
        )

    def to_snort_format(self) -> str:
        """Render the rule back into rule-file syntax."""
        opts = "; ".join(f"{opt.keyword}:{opt.value}" for opt in self.options)
        return (
            f"{self.action.name.lower()} {self.protocol} {self.src_ip} {self.src_port} "
            f"-> {self.dst_ip} {self.dst_port} ({opts};)"
        )

    def matches_protocol(self, proto: str) -> bool:
        """An ``ip`` rule matches any protocol; otherwise names must agree."""
        rule_proto = self.protocol.lower()
        return rule_proto == "ip" or rule_proto == proto.lower()

    def matches_ip(self, rule_ip: str, packet_ip: int | str | ipaddress.IPv4Address) -> bool:
        """Check ``packet_ip`` against ``any``, a CIDR block or a single address.

        Integer addresses are in host order (192.168.1.1 is 0xC0A80101).
        Raises ValueError when a CIDR prefix length is not a number.
        """
        if rule_ip == "any":
            return True
        packet = _as_address(packet_ip)
        network_text, slash, prefix_text = rule_ip.partition("/")
        if slash:
            network = _inet_addr(network_text)
            if network is None:
                return False
            try:
                prefix = int(prefix_text.strip())
            except ValueError:
                raise ValueError(f"invalid prefix length in {rule_ip!r}") from None
            if not 0 <= prefix <= 32:
                return False
            mask = 0 if prefix == 0 else (0xFFFFFFFF << (32 - prefix)) & 0xFFFFFFFF
            return packet & mask == network & mask
        address = _inet_addr(rule_ip)
        return (INADDR_NONE if address is None else address) == packet

    def matches_port(self, rule_port: int, packet_port: int) -> bool:
        """Port 0 in a rule stands for any port."""
        return rule_port == 0 or rule_port == packet_port


class RuleParseError(ValueError):
    """Raised when rule text cannot be turned into a valid rule."""

    def __init__(self, message: str, errors: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


def _trim(text: str) -> str:
    return text.strip(" ")


class RuleParser:
    """Parses rule text, keeping counts of parsed and rejected rules."""

    def __init__(self) -> None:
        self.stats: dict[str, int] = {"rules_parsed": 0, "rules_invalid": 0}

    def parse_rule(self, rule_str: str) -> Rule | None:
        """Parse one rule line.

        Returns None for blank lines and comments; raises RuleParseError for
        anything else that is not a valid rule.
        """
        if not rule_str or rule_str.startswith("#") or not _trim(rule_str):
            return None
        logger.debug("Parsing rule: %s", rule_str)
        try:
            rule = self._build(rule_str)
        except RuleParseError:
            self.stats["rules_invalid"] += 1
            raise
        self.stats["rules_parsed"] += 1
        logger.debug("Rule parsed - ID: %s, Description: %s", rule.id, rule.description)
        return rule

    def parse_rules(self, rule_strings: Iterable[str]) -> list[Rule]:
        """Parse many rules, skipping blank, comment and invalid ones."""
        rules = []
        for rule_str in rule_strings:
            try:
                rule = self.parse_rule(rule_str)
            except RuleParseError as exc:
                logger.warning("Error parsing rule: %s; rule: %s", exc, rule_str)
                continue
            if rule is not None:
                rules.append(rule)
        return rules

    def parse_rule_file(self, file_path: str | os.PathLike[str]) -> list[Rule]:
        """Parse every line of a rule file; raises OSError if it cannot be opened."""
        with open(file_path, encoding="utf-8") as handle:
            return self.parse_rules(line.rstrip("\r\n") for line in handle)

    def validate_rule(self, rule_str: str) -> bool:
        """Whether ``rule_str`` parses into a valid rule."""
        try:
            rule = RuleParser().parse_rule(rule_str)
        except RuleParseError:
            return False
        return rule is not None and rule.validate()

    def _build(self, rule_str: str) -> Rule:
        tokens = self._tokenize(rule_str)
        if len(tokens) < 7:
            raise RuleParseError("Invalid rule format: insufficient tokens")

        rule = Rule()
        self._parse_header(rule, tokens)

        open_paren = rule_str.find("(")
        close_paren = rule_str.rfind(")")
        if open_paren != -1 and close_paren != -1 and open_paren < close_paren:
            self._parse_options(rule, rule_str[open_paren + 1 : close_paren])

        errors = rule.validation_errors()
        if errors:
            raise RuleParseError("Rule validation failed: " + "; ".join(errors), errors)
        return rule

    @staticmethod
    def _tokenize(rule_str: str) -> list[str]:
        cleaned = _trim(rule_str)
        header, _, _ = cleaned.partition("(")
        return header.split()

    @staticmethod
    def _parse_header(rule: Rule, tokens: list[str]) -> None:
        action_text = tokens[0].lower()
        try:
            rule.action = _ACTIONS[action_text]
        except KeyError:
            raise RuleParseError(f"Invalid action: {action_text}") from None
        rule.protocol = tokens[1].lower()
        rule.src_ip = tokens[2]
        rule.src_port = tokens[3]
        try:
            rule.direction = _DIRECTIONS[tokens[4]]
        except KeyError:
            raise RuleParseError(f"Invalid direction: {tokens[4]}") from None
        rule.dst_ip = tokens[5]
        rule.dst_port = tokens[6]

    def _parse_options(self, rule: Rule, options: str) -> None:
        for option in options.split(";"):
            trimmed = _trim(option)
            if trimmed:
                self._parse_option(rule, trimmed)

    @staticmethod
    def _parse_option(rule: Rule, option: str) -> None:
        negated = option.startswith("!")
        content = option[1:] if negated else option

        keyword, colon, raw_value = content.partition(":")
        if not colon:
            rule.options.append(RuleOption(content, "", negated))
            return

        keyword = _trim(keyword)
        value = _trim(raw_value)
        if value and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]

        rule.options.append(RuleOption(keyword, value, negated))
        if keyword == "msg":
            rule.description = value
        elif keyword == "sid":
            rule.id = value