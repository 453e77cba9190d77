"""One thin wrapper per btminer API command."""

from __future__ import annotations

from typing import Any, Dict, Optional

from .logs import download_logs
from .session import send_command, send_privileged_command
from .transport import DEFAULT_TIMEOUT

DEFAULT_MINER_INFO = "ip,proto,netmask,gateway,dns,hostname,mac,ledstat"


def _flag(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _present(**fields: Any) -> Dict[str, Any]:
    return {name: value for name, value in fields.items() if value is not None}


# Read-only commands

def summary(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "summary", timeout=timeout)


def pools(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "pools", timeout=timeout)


def edevs(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "edevs", timeout=timeout)


def devdetails(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "devdetails", timeout=timeout)


def get_psu(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "get_psu", timeout=timeout)


def get_version(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "get_version", timeout=timeout)


def get_token(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    """Raw get_token reply. session.get_token parses it into a Token."""

    return send_command(host, port, "get_token", timeout=timeout)


def status(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "status", timeout=timeout)


def get_miner_info(
    host: str, port: int, info: str = DEFAULT_MINER_INFO, timeout: Optional[float] = DEFAULT_TIMEOUT
) -> Dict[str, Any]:
    return send_command(host, port, "get_miner_info", {"info": info}, timeout=timeout)


def get_error_code(host: str, port: int, timeout: Optional[float] = DEFAULT_TIMEOUT) -> Dict[str, Any]:
    return send_command(host, port, "get_error_code", timeout=timeout)


# Privileged commands (token + AES envelope)

def update_pools(
    host: str,
    port: int,
    passwd: str,
    pool1: Optional[str] = None,
    worker1: Optional[str] = None,
    passwd1: Optional[str] = None,
    pool2: Optional[str] = None,
    worker2: Optional[str] = None,
    passwd2: Optional[str] = None,
    pool3: Optional[str] = None,
    worker3: Optional[str] = None,
    passwd3: Optional[str] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    params = _present(
        pool1=pool1, worker1=worker1, passwd1=passwd1,
        pool2=pool2, worker2=worker2, passwd2=passwd2,
        pool3=pool3, worker3=worker3, passwd3=passwd3,
    )
    return send_privileged_command(host, port, passwd, "update_pools", params, **kwargs)


def restart_btminer(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "restart_btminer", **kwargs)


def power_off(host: str, port: int, passwd: str, respbefore: bool = True, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "power_off", {"respbefore": _flag(respbefore)}, **kwargs)


def power_on(host: str, port: int, passwd: str, respbefore: bool = True, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "power_on", {"respbefore": _flag(respbefore)}, **kwargs)


def set_led(
    host: str,
    port: int,
    passwd: str,
    param: Optional[str] = "auto",
    color: Optional[str] = None,
    period: Optional[int] = None,
    duration: Optional[int] = None,
    start: Optional[int] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """``param="auto"`` hands the LED back to the firmware; otherwise pass color/period/duration/start."""

    if color is not None:
        if color not in ("red", "green"):
            raise ValueError("color must be 'red' or 'green'")
        if None in (period, duration, start):
            raise ValueError("color mode requires period, duration and start")
        params = {"color": color, "period": period, "duration": duration, "start": start}
    else:
        params = {"param": param}
    return send_privileged_command(host, port, passwd, "set_led", params, **kwargs)


def set_low_power(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "set_low_power", **kwargs)


def reboot(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "reboot", **kwargs)


def factory_reset(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "factory_reset", **kwargs)


def update_pwd(host: str, port: int, passwd: str, old: str, new: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "update_pwd", {"old": old, "new": new}, **kwargs)


def net_config(
    host: str,
    port: int,
    passwd: str,
    param: Optional[str] = "dhcp",
    ip: Optional[str] = None,
    mask: Optional[str] = None,
    gate: Optional[str] = None,
    dns: Optional[str] = None,
    hostname: Optional[str] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """DHCP by default; a static setup needs ip/mask/gate/dns and a hostname (sent as ``host``)."""

    if ip is not None:
        params = _present(ip=ip, mask=mask, gate=gate, dns=dns, host=hostname)
    else:
        params = {"param": param}
    return send_privileged_command(host, port, passwd, "net_config", params, **kwargs)


def set_target_freq(host: str, port: int, passwd: str, percent: int, **kwargs: Any) -> Dict[str, Any]:
    if not -100 <= int(percent) <= 100:
        raise ValueError("percent must be between -100 and 100")
    return send_privileged_command(host, port, passwd, "set_target_freq", {"percent": str(percent)}, **kwargs)


def enable_btminer_fast_boot(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "enable_btminer_fast_boot", **kwargs)


def disable_btminer_fast_boot(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "disable_btminer_fast_boot", **kwargs)


def enable_web_pools(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "enable_web_pools", **kwargs)


def disable_web_pools(host: str, port: int, passwd: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "disable_web_pools", **kwargs)


def set_hostname(host: str, port: int, passwd: str, hostname: str, **kwargs: Any) -> Dict[str, Any]:
    return send_privileged_command(host, port, passwd, "set_hostname", {"hostname": hostname}, **kwargs)


def set_zone(host: str, port: int, passwd: str, timezone: str, zonename: str, **kwargs: Any) -> Dict[str, Any]:
    params = {"timezone": timezone, "zonename": zonename}
    return send_privileged_command(host, port, passwd, "set_zone", params, **kwargs)


def load_log(
    host: str, port: int, passwd: str, log_ip: str, log_port: int, log_proto: str = "udp", **kwargs: Any
) -> Dict[str, Any]:
    """Point the miner's remote syslog at log_ip:log_port."""

    params = {"ip": log_ip, "port": str(log_port), "proto": log_proto}
    return send_privileged_command(host, port, passwd, "load_log", params, **kwargs)


def set_power_pct(host: str, port: int, passwd: str, percent: int, **kwargs: Any) -> Dict[str, Any]:
    if not 0 <= int(percent) <= 100:
        raise ValueError("percent must be between 0 and 100")
    return send_privileged_command(host, port, passwd, "set_power_pct", {"percent": str(percent)}, **kwargs)


def pre_power_on(host: str, port: int, passwd: str, complete: bool, msg: str, **kwargs: Any) -> Dict[str, Any]:
    params = {"complete": _flag(complete), "msg": msg}
    return send_privileged_command(host, port, passwd, "pre_power_on", params, **kwargs)


__all__ = [
    "devdetails",
    "disable_btminer_fast_boot",
    "disable_web_pools",
    "download_logs",
    "edevs",
    "enable_btminer_fast_boot",
    "enable_web_pools",
    "factory_reset",
    "get_error_code",
    "get_miner_info",
    "get_psu",
    "get_token",
    "get_version",
    "load_log",
    "net_config",
    "pools",
    "power_off",
    "power_on",
    "pre_power_on",
    "reboot",
    "restart_btminer",
    "set_hostname",
    "set_led",
    "set_low_power",
    "set_power_pct",
    "set_target_freq",
    "set_zone",
    "status",
    "summary",
    "update_pools",
    "update_pwd",
]
