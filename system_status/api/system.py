from typing import List, Optional, Union

from fastapi import APIRouter

from system_status.models.system import (
    CPULoad,
    Filesystem,
    HealthCheckResponse,
    LoadAverage,
    Memory,
    NetworkResult,
    NetworkStats,
    SystemAllResponse,
    format_uptime,
)
from system_status.services import system_monitor

# Handlers are plain def: psutil and statvfs calls block, so FastAPI runs them
# in its worker thread pool instead of on the event loop.
router = APIRouter()


@router.get("/uptime", response_model=str, summary="Uptime")
def uptime() -> str:
    """Time since boot as HH:MM:SS. 404 if the uptime cannot be determined."""
    return format_uptime(system_monitor.get_uptime())


@router.get("/load_average", response_model=LoadAverage, summary="Load average")
def load_average() -> LoadAverage:
    return system_monitor.get_load_average()


@router.get("/networks", response_model=NetworkResult, summary="Network interfaces")
def networks() -> NetworkResult:
    """
    Return every network interface together with its addresses.

    Each address is one of "Empty", "Unsupported", {"V4": [4 octets]} or
    {"V6": [16 octets]}.
    """
    return NetworkResult(networks=system_monitor.get_networks())


@router.get(
    "/net_stats",
    response_model=Union[NetworkStats, List[NetworkStats]],
    summary="Network interface counters",
)
def net_stats(name: Optional[str] = None) -> Union[NetworkStats, List[NetworkStats]]:
    """
    Return the counters of the interface given by ?name=, or a list with the
    counters of all interfaces if no name is given. Unknown names give 404.
    """
    if name is not None:
        return system_monitor.get_network_stats(name)
    return system_monitor.get_networks_stats()


@router.get("/cpu_temp", response_model=float, summary="CPU temperature")
def cpu_temp() -> float:
    return system_monitor.get_cpu_temp()


@router.get("/memory", response_model=Memory, summary="Memory usage")
def memory() -> Memory:
    return system_monitor.get_memory()


@router.get("/disk_info", response_model=List[Filesystem], summary="Mounted filesystems")
def disk_info() -> List[Filesystem]:
    return system_monitor.get_drives()


@router.get("/hostname", response_model=str, summary="Hostname")
def hostname() -> str:
    return system_monitor.get_hostname()


# The sampling window holds one worker thread for a full second.
@router.get("/cpu_average", response_model=CPULoad, summary="CPU load over one second")
def cpu_average() -> CPULoad:
    return system_monitor.get_cpu_average()


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    response_model_exclude_none=True,
    summary="Health check",
)
def health() -> HealthCheckResponse:
    """Always answers 200; uptime and hostname are omitted when unavailable."""
    return system_monitor.get_health()


@router.get(
    "/all",
    response_model=SystemAllResponse,
    response_model_exclude_none=True,
    summary="All system metrics",
)
def system_all() -> SystemAllResponse:
    """
    Return hostname, uptime and the optional metrics in a single response.

    A failing hostname or uptime query gives 400. Optional metrics that cannot
    be read are left out of the response.
    """
    return system_monitor.get_system_all()
