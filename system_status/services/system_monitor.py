import ipaddress
import logging
import os
import socket
import time
from datetime import datetime, timedelta, timezone
from typing import List

import psutil

from system_status.models.system import (
    CPULoad,
    Filesystem,
    HealthCheckResponse,
    IpAddr,
    LoadAverage,
    Memory,
    NetworkAddress,
    NetworkInterface,
    NetworkResult,
    NetworkStats,
    SystemAllResponse,
    format_uptime,
    ip_addr_from,
)

logger = logging.getLogger(__name__)

# Length of the CPU load sampling window in seconds
CPU_SAMPLE_SECONDS = 1.0

# Sensor groups reported by psutil that describe the CPU package, in order of preference
_CPU_SENSORS = ("coretemp", "k10temp", "cpu_thermal", "cpu-thermal", "acpitz", "soc_thermal")

# guest time is already accounted for in user/nice on Linux
_CPU_TIMES_EXCLUDED = ("guest", "guest_nice")
_CPU_TIMES_INTERRUPT = ("irq", "softirq", "interrupt", "dpc")

# NotImplementedError is a RuntimeError; AttributeError covers calls missing on a platform
_PROVIDER_ERRORS = (OSError, RuntimeError, AttributeError, psutil.Error)


class StatsError(Exception):
    """Base class for failures of a stats query. Carries a plain message only."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StatsError):
    """A metric from dynamic system introspection could not be obtained."""

    status_code = 404


class BadRequestError(StatsError):
    """A metric depending on host configuration or identity is absent or invalid."""

    status_code = 400


def get_uptime() -> timedelta:
    try:
        boot_time = psutil.boot_time()
    except _PROVIDER_ERRORS as exc:
        logger.debug("uptime query failed: %s", exc)
        raise NotFoundError(str(exc)) from exc
    return timedelta(seconds=max(int(time.time() - boot_time), 0))


def get_load_average() -> LoadAverage:
    try:
        one, five, fifteen = psutil.getloadavg()
    except _PROVIDER_ERRORS as exc:
        logger.debug("load average query failed: %s", exc)
        raise NotFoundError(str(exc)) from exc
    return LoadAverage(one=one, five=five, fifteen=fifteen)


def _address_variant(address) -> IpAddr:
    """Translate one psutil snicaddr into the address tagged union."""
    if not address.address:
        return ip_addr_from(None)
    try:
        if address.family == socket.AF_INET:
            return ip_addr_from(ipaddress.IPv4Address(address.address))
        if address.family == socket.AF_INET6:
            # link-local addresses come with a scope suffix, e.g. fe80::1%eth0
            return ip_addr_from(ipaddress.IPv6Address(address.address.split("%", 1)[0]))
    except ValueError:
        pass
    return "Unsupported"


def get_networks() -> List[NetworkInterface]:
    try:
        interfaces = psutil.net_if_addrs()
    except _PROVIDER_ERRORS as exc:
        logger.debug("network interface query failed: %s", exc)
        raise NotFoundError(str(exc)) from exc

    return [
        NetworkInterface(
            name=name,
            addrs=[NetworkAddress(addr=_address_variant(a)) for a in addrs],
        )
        for name, addrs in interfaces.items()
    ]


def _io_counters() -> dict:
    try:
        return psutil.net_io_counters(pernic=True)
    except _PROVIDER_ERRORS as exc:
        logger.debug("network counter query failed: %s", exc)
        raise NotFoundError(str(exc)) from exc


def _network_stats(name: str, counters: dict) -> NetworkStats:
    if name not in counters:
        raise NotFoundError(f"No such interface: {name}")
    io = counters[name]
    return NetworkStats(
        name=name,
        rx_bytes=io.bytes_recv,
        tx_bytes=io.bytes_sent,
        rx_packets=io.packets_recv,
        tx_packets=io.packets_sent,
        rx_errors=io.errin,
        tx_errors=io.errout,
    )


def get_network_stats(name: str) -> NetworkStats:
    return _network_stats(name, _io_counters())


def get_networks_stats() -> List[NetworkStats]:
    """
    Return counters for every interface reported by get_networks.

    If the counters of any single interface cannot be read the whole call
    fails; no partial list is returned.
    """
    try:
        names = list(psutil.net_if_addrs())
    except _PROVIDER_ERRORS as exc:
        logger.debug("network interface query failed: %s", exc)
        raise NotFoundError(str(exc)) from exc

    counters = _io_counters()
    return [_network_stats(name, counters) for name in names]


def get_cpu_temp() -> float:
    if not hasattr(psutil, "sensors_temperatures"):
        raise BadRequestError("CPU temperature is not supported on this platform")
    try:
        sensors = psutil.sensors_temperatures()
    except _PROVIDER_ERRORS as exc:
        logger.debug("cpu temperature query failed: %s", exc)
        raise BadRequestError(str(exc)) from exc

    readings = next((sensors[s] for s in _CPU_SENSORS if sensors.get(s)), None)
    if readings is None:
        readings = next((r for r in sensors.values() if r), None)
    if not readings:
        raise BadRequestError("No CPU temperature sensor found")
    return float(readings[0].current)


def saturating_sub(a: int, b: int) -> int:
    return max(a - b, 0)


def get_memory() -> Memory:
    try:
        mem = psutil.virtual_memory()
    except _PROVIDER_ERRORS as exc:
        logger.debug("memory query failed: %s", exc)
        raise BadRequestError(str(exc)) from exc

    return Memory(
        total=mem.total,
        free=mem.available,
        used=saturating_sub(mem.total, mem.available),
    )


def get_drives() -> List[Filesystem]:
    """
    Return one Filesystem per mounted partition, in the order psutil reports
    them. Block and inode figures come straight from statvfs(3).
    """
    if not hasattr(os, "statvfs"):
        raise BadRequestError("Disk statistics are not supported on this platform")

    drives: List[Filesystem] = []
    try:
        for part in psutil.disk_partitions():
            st = os.statvfs(part.mountpoint)
            drives.append(
                Filesystem(
                    fs_mounted_from=part.device,
                    fs_type=part.fstype,
                    fs_mounted_on=part.mountpoint,
                    free=st.f_bfree * st.f_frsize,
                    avail=st.f_bavail * st.f_frsize,
                    total=st.f_blocks * st.f_frsize,
                    name_max=st.f_namemax,
                    files=saturating_sub(st.f_files, st.f_ffree),
                    files_total=st.f_files,
                    files_avail=st.f_favail,
                )
            )
    except _PROVIDER_ERRORS as exc:
        logger.debug("mount query failed: %s", exc)
        raise BadRequestError(str(exc)) from exc

    return drives


def get_hostname() -> str:
    try:
        name = socket.gethostname()
    except OSError as exc:
        logger.debug("hostname query failed: %s", exc)
        raise BadRequestError(str(exc)) from exc

    # undecodable bytes in the OS hostname surface as lone surrogates
    try:
        name.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise BadRequestError("Unable to get hostname") from exc
    return name


class CPULoadSample:
    """
    An in-progress CPU load measurement.

    Creating the sample records the current CPU times; done() reads them again
    and returns the share of each state over the elapsed window.
    """

    def __init__(self):
        self._start = psutil.cpu_times()

    def done(self) -> CPULoad:
        end = psutil.cpu_times()
        deltas = {
            field: max(getattr(end, field) - getattr(self._start, field), 0.0)
            for field in end._fields
            if field not in _CPU_TIMES_EXCLUDED
        }
        total = sum(deltas.values())
        if total <= 0:
            return CPULoad(user=0.0, nice=0.0, system=0.0, interrupt=0.0, idle=1.0)

        interrupt = sum(deltas.get(field, 0.0) for field in _CPU_TIMES_INTERRUPT)
        return CPULoad(
            user=deltas.get("user", 0.0) / total,
            nice=deltas.get("nice", 0.0) / total,
            system=deltas.get("system", 0.0) / total,
            interrupt=interrupt / total,
            idle=deltas.get("idle", 0.0) / total,
        )


def get_cpu_average() -> CPULoad:
    """
    Measure the average CPU load over CPU_SAMPLE_SECONDS.

    Blocks the calling thread for the whole window. OSError from the provider
    is not mapped and propagates to the caller.
    """
    sample = CPULoadSample()
    time.sleep(CPU_SAMPLE_SECONDS)
    return sample.done()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_health() -> HealthCheckResponse:
    """Best-effort liveness report; unavailable metrics are left out."""
    try:
        uptime = format_uptime(get_uptime())
    except StatsError:
        uptime = None
    try:
        hostname = get_hostname()
    except StatsError:
        hostname = None

    return HealthCheckResponse(
        status="healthy",
        timestamp=_timestamp(),
        uptime=uptime,
        hostname=hostname,
    )


def get_system_all() -> SystemAllResponse:
    """
    Collect hostname, uptime and the cheap optional metrics in one go.

    hostname and uptime are required: if either fails a BadRequestError naming
    the field is raised. Failures of optional metrics only drop the field.
    """
    timestamp = _timestamp()
    try:
        hostname = get_hostname()
    except StatsError as exc:
        raise BadRequestError(f"Failed to get hostname: {exc.message}") from exc
    try:
        uptime = format_uptime(get_uptime())
    except StatsError as exc:
        raise BadRequestError(f"Failed to get uptime: {exc.message}") from exc

    result = SystemAllResponse(timestamp=timestamp, hostname=hostname, uptime=uptime)
    try:
        result.cpu_temp = get_cpu_temp()
    except StatsError as exc:
        logger.debug("skipping cpu_temp: %s", exc.message)
    try:
        result.load_average = get_load_average()
    except StatsError as exc:
        logger.debug("skipping load_average: %s", exc.message)
    try:
        result.networks = NetworkResult(networks=get_networks())
    except StatsError as exc:
        logger.debug("skipping networks: %s", exc.message)
    try:
        result.net_stats = get_networks_stats()
    except StatsError as exc:
        logger.debug("skipping net_stats: %s", exc.message)

    return result
