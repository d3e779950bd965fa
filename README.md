# sentrycap

Building blocks for a small network intrusion detector:

- `sentrycap.protocols` decodes Ethernet II, IPv4 and TCP headers from raw
  bytes into readable findings.
- `sentrycap.rule` parses rules written in the familiar Snort/Suricata header
  syntax and validates them.
- `sentrycap.matcher` checks raw Ethernet/IPv4 frames against a set of rules.
- `sentrycap.netif` reports whether a network interface is up, has carrier,
  and is running, and provides the `sentrycap-netif` command.

A rule looks like this:

    alert tcp any any -> 192.168.1.0/24 80 (msg:"HTTP to LAN"; sid:1000001;)

## Installation

    pip install .

Python 3.10 or later is needed. There are no third-party runtime dependencies.
For the test suite:

    pip install ".[test]"
    pytest

## Command: `sentrycap-netif`

Reports the state of one interface through a netlink `RTM_GETLINK` query, so
it works on Linux only:

    sentrycap-netif eth0

    dev: eth0, iff_up: UP, carrier_on: ON, running: RUNNING
     => usable: YES

With no argument it checks `eno1`. An interface is usable when it is up, has
carrier and is running. An unknown interface, or a failed netlink exchange,
prints an error to standard error and exits with status 1.

From Python, `get_netif_state(name)` returns a `NicState` (with `iff_up`,
`carrier_on`, `running` and `usable`) and raises `InterfaceNotFoundError` for
an interface that does not exist. `parse_link_messages(buf, name)` decodes a
netlink reply you already have, and `format_state(dev, state)` renders the
report shown above.

## Rule syntax

Each rule has seven header fields — action (`alert`, `log`, `drop`, `pass`
or `reject`), protocol, source address, source port, direction (`->`, `<-`
or `<>`), destination address, destination port — followed by options in
parentheses separated by `;`. A rule needs both a `msg` and a `sid` option,
and a protocol of `tcp`, `udp`, `icmp` or `ip`. Addresses are `any`, a single
IPv4 address or a CIDR block; ports are `any` or a number. An option may be
negated with a leading `!`, and quoted option values have their quotes
removed.

`RuleParser.parse_rule_file` reads one rule per line; blank lines and lines
starting with `#` are skipped, and invalid rules are logged and left out.

## Decoding headers

```python
from sentrycap.protocols import EthernetParser, IPParser, TCPParser

frame = bytes.fromhex(
    "020000000001" "020000000002" "0800"            # Ethernet
    "45000028" "1c464000" "4006b1f4"                # IPv4
    "c0a80164" "c0a80101"
    "00501f90" "00000001" "00000000" "50022000" "00000000"  # TCP SYN
)

eth = EthernetParser().parse(frame)
print(eth.description)              # 02:00:00:00:00:01 > 02:00:00:00:00:02, ethertype IPv4

ip = IPParser().parse(frame[14:])
print(ip.get_finding("Source Address"))   # 192.168.1.100

tcp = TCPParser().parse(frame[34:])
print(tcp.get_finding("Destination Port"))  # 8080
print(tcp.get_finding("Flags"))             # FIN=0, SYN=1, RST=0, ...
```

Every parser returns a `ParsingResult` with `protocol_type`, `is_valid`,
`description` and an ordered list of `(name, value)` findings.

## Parsing and matching rules

```python
from sentrycap.matcher import RuleMatcher
from sentrycap.protocols import Packet
from sentrycap.rule import RuleAction, RuleParser

parser = RuleParser()
rule = parser.parse_rule(
    'alert tcp any any -> any 8080 (msg:"Traffic to 8080"; sid:1000001; rev:1;)'
)
print(rule.to_snort_format())

matcher = RuleMatcher()
matcher.add_rule(rule)
print(len(matcher))                                   # 1

matches = matcher.match(Packet(frame))                # frame from the example above
print([m.rule.id for m in matches])                   # ['1000001']
print(matcher.match(Packet(frame), RuleAction.DROP))  # []
```

`parse_rule` returns `None` for blank lines and comments and raises
`RuleParseError` for anything else that is not a valid rule; `parse_rules`
skips such entries instead. `RuleParser.validate_rule` tells whether a rule
string is acceptable, and `RuleParser.stats` counts parsed and rejected rules.

## What this package does not do

It does not capture packets from a network interface and has no detector
command or daemon: there is no raw-socket capture, no configuration file
loading and no continuous monitoring loop. Feed it frames you have obtained
some other way, wrapped in `sentrycap.protocols.Packet`.