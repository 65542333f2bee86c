import ipaddress
from datetime import timedelta
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Octet = Annotated[int, Field(ge=0, le=255)]


class V4Addr(BaseModel):
    """IPv4 variant, serialised as {"V4": [a, b, c, d]}."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    V4: List[Octet] = Field(..., min_length=4, max_length=4)


class V6Addr(BaseModel):
    """IPv6 variant, serialised as {"V6": [16 octets]}."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    V6: List[Octet] = Field(..., min_length=16, max_length=16)


IpAddr = Union[Literal["Empty"], Literal["Unsupported"], V4Addr, V6Addr]


def ip_addr_from(address) -> IpAddr:
    """
    Map a native address into the four-variant tagged union.

    None means the interface reported no address at all. Anything that is not
    an ipaddress IPv4/IPv6 object is Unsupported.
    """
    if address is None:
        return "Empty"
    if isinstance(address, ipaddress.IPv4Address):
        return V4Addr(V4=list(address.packed))
    if isinstance(address, ipaddress.IPv6Address):
        return V6Addr(V6=list(address.packed))
    return "Unsupported"


def ip_addr_to(value: IpAddr):
    """Inverse of ip_addr_from; Empty and Unsupported have no address."""
    if isinstance(value, V4Addr):
        return ipaddress.IPv4Address(bytes(value.V4))
    if isinstance(value, V6Addr):
        return ipaddress.IPv6Address(bytes(value.V6))
    return None


def format_uptime(uptime: timedelta) -> str:
    """Render a duration as HH:MM:SS; hours keep counting past 99."""
    total = int(uptime.total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


class LoadAverage(BaseModel):
    """1, 5 and 15 minute load averages."""

    one: float = Field(..., ge=0, description="Load average over the last minute")
    five: float = Field(..., ge=0, description="Load average over the last 5 minutes")
    fifteen: float = Field(
        ...,
        ge=0,
        description="Load average over the last 15 minutes",
    )


class NetworkAddress(BaseModel):
    addr: IpAddr = Field(
        ...,
        description='"Empty", "Unsupported", {"V4": [...]} or {"V6": [...]}',
    )


class NetworkInterface(BaseModel):
    name: str = Field(..., description="Interface name, e.g. eth0")
    addrs: List[NetworkAddress] = Field(
        default_factory=list,
        description="Addresses bound to the interface",
    )


class NetworkResult(BaseModel):
    networks: List[NetworkInterface]


class NetworkStats(BaseModel):
    """Cumulative counters of a single network interface."""

    name: str = Field(..., description="Interface name")
    rx_bytes: int = Field(..., ge=0)
    tx_bytes: int = Field(..., ge=0)
    rx_packets: int = Field(..., ge=0)
    tx_packets: int = Field(..., ge=0)
    rx_errors: int = Field(..., ge=0)
    tx_errors: int = Field(..., ge=0)


class Memory(BaseModel):
    total: int = Field(..., ge=0, description="Total memory in bytes")
    free: int = Field(..., ge=0, description="Free memory in bytes")
    used: int = Field(
        ...,
        ge=0,
        description="total - free in bytes, never below zero",
    )


class Filesystem(BaseModel):
    """A single mounted filesystem."""

    fs_mounted_from: str = Field(..., description="Device or source, e.g. /dev/sda1")
    fs_type: str = Field(..., description="Filesystem type, e.g. ext4")
    fs_mounted_on: str = Field(..., description="Mount point, e.g. /")
    free: int = Field(..., ge=0, description="Free bytes")
    avail: int = Field(..., ge=0, description="Bytes available to unprivileged users")
    total: int = Field(..., ge=0, description="Size in bytes")
    name_max: int = Field(..., ge=0, description="Maximum filename length")
    files: int = Field(..., ge=0, description="Inodes in use")
    files_total: int = Field(..., ge=0)
    files_avail: int = Field(..., ge=0)


class CPULoad(BaseModel):
    """CPU time fractions averaged over one sampling window."""

    user: float = Field(..., ge=0.0, le=1.0)
    nice: float = Field(..., ge=0.0, le=1.0)
    system: float = Field(..., ge=0.0, le=1.0)
    interrupt: float = Field(..., ge=0.0, le=1.0)
    idle: float = Field(..., ge=0.0, le=1.0)


class HealthCheckResponse(BaseModel):
    status: str = Field("healthy", description="Always 'healthy' when the service answers")
    timestamp: str = Field(..., description="UTC timestamp in ISO-8601 format")
    uptime: Optional[str] = Field(None, description="HH:MM:SS, omitted if unavailable")
    hostname: Optional[str] = Field(None, description="Omitted if unavailable")


class SystemAllResponse(BaseModel):
    """All cheap metrics in one response. Optional fields are omitted on failure."""

    timestamp: str
    hostname: str
    uptime: str
    cpu_temp: Optional[float] = None
    load_average: Optional[LoadAverage] = None
    networks: Optional[NetworkResult] = None
    net_stats: Optional[List[NetworkStats]] = None
