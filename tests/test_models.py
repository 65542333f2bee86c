import ipaddress
from datetime import timedelta

import pytest
from pydantic import ValidationError

from system_status.models.system import (
    NetworkAddress,
    V4Addr,
    V6Addr,
    format_uptime,
    ip_addr_from,
    ip_addr_to,
)


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "00:00:00"),
        (59, "00:00:59"),
        (3661, "01:01:01"),
        (86399, "23:59:59"),
        (360000, "100:00:00"),
    ],
)
def test_format_uptime(seconds, expected):
    assert format_uptime(timedelta(seconds=seconds)) == expected


def test_format_uptime_drops_fractions():
    assert format_uptime(timedelta(seconds=61, milliseconds=999)) == "00:01:01"


def test_ipv4_round_trip_through_json():
    original = ipaddress.IPv4Address("192.168.1.1")

    payload = NetworkAddress(addr=ip_addr_from(original)).model_dump_json()
    assert payload == '{"addr":{"V4":[192,168,1,1]}}'

    restored = NetworkAddress.model_validate_json(payload)
    assert isinstance(restored.addr, V4Addr)
    assert ip_addr_to(restored.addr) == original


def test_ipv6_round_trip_through_json():
    original = ipaddress.IPv6Address("2001:db8::42")

    payload = NetworkAddress(addr=ip_addr_from(original)).model_dump_json()
    restored = NetworkAddress.model_validate_json(payload)

    assert isinstance(restored.addr, V6Addr)
    assert len(restored.addr.V6) == 16
    assert ip_addr_to(restored.addr) == original


@pytest.mark.parametrize("variant", ["Empty", "Unsupported"])
def test_unit_variants_are_bare_strings(variant):
    payload = NetworkAddress(addr=variant).model_dump_json()
    assert payload == f'{{"addr":"{variant}"}}'
    assert NetworkAddress.model_validate_json(payload).addr == variant


def test_ip_addr_from_edge_cases():
    assert ip_addr_from(None) == "Empty"
    assert ip_addr_from("aa:bb:cc:dd:ee:ff") == "Unsupported"
    assert ip_addr_to("Empty") is None
    assert ip_addr_to("Unsupported") is None


@pytest.mark.parametrize(
    "payload",
    [
        '{"addr":{"V4":[192,168,1]}}',
        '{"addr":{"V4":[192,168,1,256]}}',
        '{"addr":{"V6":[0,0,0,1]}}',
        '{"addr":{"V5":[1,2,3,4]}}',
        '{"addr":"Loopback"}',
    ],
)
def test_invalid_addresses_are_rejected(payload):
    with pytest.raises(ValidationError):
        NetworkAddress.model_validate_json(payload)
