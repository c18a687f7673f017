[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chaosvpn"
version = "0.1.0"
description = "Building blocks for a tinc-based VPN client: address masks, ar archives, signed and encrypted data, plain-HTTP fetching, file helpers, settings checks and process supervision."
requires-python = ">=3.10"
keywords = ["vpn", "tinc", "networking", "cidr", "ar", "daemon", "http"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
chaosvpn-fetch = "chaosvpn.httpclient:main"

[tool.hatch.build.targets.wheel]
packages = ["chaosvpn"]

[tool.pytest.ini_options]
addopts = "-ra"
