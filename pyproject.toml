[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sentrycap"
version = "0.1.0"
description = "Ethernet/IPv4/TCP header decoding, Snort-style rule matching and network interface state checks"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ids",
    "intrusion-detection",
    "snort",
    "rules",
    "ethernet",
    "ipv4",
    "tcp",
    "netlink",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Information Technology",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Networking :: Monitoring",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
sentrycap-netif = "sentrycap.netif:main"

[tool.hatch.build.targets.wheel]
packages = ["sentrycap"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
