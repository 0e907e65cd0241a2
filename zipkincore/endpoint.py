"""Building endpoints from a service name and a host:port string."""

from __future__ import annotations

import ipaddress
import re
import socket
from collections.abc import Iterator
from typing import Optional, Union

from .model import Endpoint

_DIGITS = re.compile(r"[0-9]+")
_MISSING_PORT = "missing port in address"
_TOO_MANY_COLONS = "too many colons in address"

_IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class EndpointError(ValueError):
    """Raised when a host:port string cannot become an endpoint."""


def _addr_error(address: str, why: str) -> EndpointError:
    return EndpointError(f"address {address}: {why}")


def _split_host_port(hostport: str) -> tuple[str, str]:
    i = hostport.rfind(":")
    if i < 0:
        raise _addr_error(hostport, _MISSING_PORT)
    j = k = 0
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise _addr_error(hostport, "missing ']' in address")
        if end + 1 == len(hostport):
            raise _addr_error(hostport, _MISSING_PORT)
        if end + 1 != i:
            if hostport[end + 1] == ":":
                raise _addr_error(hostport, _TOO_MANY_COLONS)
            raise _addr_error(hostport, _MISSING_PORT)
        host = hostport[1:end]
        j, k = 1, end + 1
    else:
        host = hostport[:i]
        if ":" in host:
            raise _addr_error(hostport, _TOO_MANY_COLONS)
    if "[" in hostport[j:]:
        raise _addr_error(hostport, "unexpected '[' in address")
    if "]" in hostport[k:]:
        raise _addr_error(hostport, "unexpected ']' in address")
    return host, hostport[i + 1:]


def _parse_port(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise EndpointError(f'strconv.ParseUint: parsing "{text}": invalid syntax')
    value = int(text)
    if value > 0xFFFF:
        raise EndpointError(f'strconv.ParseUint: parsing "{text}": value out of range')
    return value


def _normalise(address: _IPAddress) -> _IPAddress:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


def _lookup(host: str) -> Iterator[_IPAddress]:
    bare = host.partition("%")[0]
    try:
        yield _normalise(ipaddress.ip_address(bare))
        return
    except ValueError:
        pass
    if not host:
        raise EndpointError("host lookup failure: no such host")
    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise EndpointError(f"host lookup failure: {exc}") from exc
    for info in infos:
        sockaddr = info[4]
        try:
            yield _normalise(ipaddress.ip_address(str(sockaddr[0]).partition("%")[0]))
        except ValueError:
            continue


def new_endpoint(service_name: str, host_port: str) -> Optional[Endpoint]:
    """Create an endpoint for ``service_name`` at ``host_port``.

    Returns None when both arguments are empty. The host is resolved and
    the first IPv4 and first IPv6 address found are kept.
    """
    endpoint = Endpoint(service_name=service_name)

    if host_port in ("", ":0"):
        if not service_name:
            return None
        return endpoint

    if ":" not in host_port:
        host_port += ":0"

    host, port = _split_host_port(host_port)
    endpoint.port = _parse_port(port)

    for address in _lookup(host):
        if isinstance(address, ipaddress.IPv4Address):
            if endpoint.ipv4 is None:
                endpoint.ipv4 = address
        elif endpoint.ipv6 is None:
            endpoint.ipv6 = address
        if endpoint.ipv4 is not None and endpoint.ipv6 is not None:
            break

    return endpoint