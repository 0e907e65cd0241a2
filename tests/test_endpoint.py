import ipaddress
import socket
from unittest import mock

import pytest

from zipkincore.endpoint import EndpointError, new_endpoint
from zipkincore.model import Endpoint

SERVICE_NAME = "my_service"
PORT = 8081
IPV4_HOST_PORT = f"127.0.0.1:{PORT}"
IPV6_HOST_PORT = f"[2001:db8::68]:{PORT}"


def test_empty_endpoint():
    assert new_endpoint("", "") is None


def test_service_name_only_endpoint():
    assert new_endpoint(SERVICE_NAME, "") == Endpoint(service_name=SERVICE_NAME)


def test_zero_port_only_endpoint():
    assert new_endpoint(SERVICE_NAME, ":0") == Endpoint(service_name=SERVICE_NAME)
    assert new_endpoint("", ":0") is None


def test_invalid_host_port():
    with pytest.raises(EndpointError, match="too many colons in address"):
        new_endpoint(SERVICE_NAME, "::1:8081")


def test_out_of_range_port():
    with pytest.raises(EndpointError, match="value out of range"):
        new_endpoint(SERVICE_NAME, "localhost:65536")


def test_negative_port():
    with pytest.raises(EndpointError, match="invalid syntax"):
        new_endpoint(SERVICE_NAME, "localhost:-8081")


def test_lookup_failure():
    failure = socket.gaierror(socket.EAI_NONAME, "Name or service not known")
    with mock.patch("socket.getaddrinfo", side_effect=failure):
        with pytest.raises(EndpointError, match="host lookup failure"):
            new_endpoint(SERVICE_NAME, "nosuchhost:8081")


def test_port_defaults_to_zero_when_missing():
    endpoint = new_endpoint(SERVICE_NAME, "localhost")
    assert endpoint.port == 0
    assert endpoint.service_name == SERVICE_NAME


def test_ipv4_success():
    endpoint = new_endpoint(SERVICE_NAME, IPV4_HOST_PORT)
    assert endpoint.service_name == SERVICE_NAME
    assert endpoint.ipv4 == ipaddress.IPv4Address("127.0.0.1")
    assert endpoint.port == PORT
    assert endpoint.ipv6 is None


def test_ipv6_success():
    endpoint = new_endpoint(SERVICE_NAME, IPV6_HOST_PORT)
    assert endpoint.service_name == SERVICE_NAME
    assert endpoint.ipv6 == ipaddress.IPv6Address("2001:db8::68")
    assert endpoint.port == PORT
    assert endpoint.ipv4 is None


def test_lookup_keeps_first_address_of_each_family():
    infos = [
        (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("2001:db8::1", 0, 0, 0)),
        (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.1", 0)),
        (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.2", 0)),
    ]
    with mock.patch("socket.getaddrinfo", return_value=infos):
        endpoint = new_endpoint(SERVICE_NAME, "service.example.com:9000")
    assert endpoint.ipv4 == ipaddress.IPv4Address("192.0.2.1")
    assert endpoint.ipv6 == ipaddress.IPv6Address("2001:db8::1")
    assert endpoint.port == 9000


def test_missing_bracket():
    with pytest.raises(EndpointError, match="missing ']' in address"):
        new_endpoint(SERVICE_NAME, "[2001:db8::68:8081")