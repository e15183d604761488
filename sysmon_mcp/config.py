"""Runtime settings, read from the environment (and an optional .env file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import List, Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DOWNLOAD_URLS = [
    "https://8n5cq3g9tjckydmy.public.blob.vercel-storage.com/testfile-0JLrYpTg7Z3ZPi7rzRHckrQPJp8KVp.txt",  # Vercel 10MB
    "https://speed.cloudflare.com/__down?bytes=10000000",  # Cloudflare 10MB
    "https://proof.ovh.net/files/10Mb.dat",  # OVH 10MB
]
DEFAULT_UPLOAD_URLS = ["https://postman-echo.com/post"]
DEFAULT_UPLOAD_BYTES = 1_000_000
DEFAULT_TIMEOUT = 15.0


@dataclass(frozen=True)
class Settings:
    download_urls: List[str] = field(default_factory=lambda: list(DEFAULT_DOWNLOAD_URLS))
    upload_urls: List[str] = field(default_factory=lambda: list(DEFAULT_UPLOAD_URLS))
    upload_bytes: int = DEFAULT_UPLOAD_BYTES
    speedtest_timeout: float = DEFAULT_TIMEOUT
    cpu_interval: float = 0.5
    network_interval: float = 1.0
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        env_file: Optional[str] = None,
    ) -> "Settings":
        """Build settings from SYSMON_* variables, loading .env when reading os.environ."""
        if environ is None:
            load_dotenv(env_file)
            environ = os.environ

        defaults = cls()
        return cls(
            download_urls=_url_list(environ, "SYSMON_DOWNLOAD_URLS", defaults.download_urls),
            upload_urls=_url_list(environ, "SYSMON_UPLOAD_URLS", defaults.upload_urls),
            upload_bytes=int(_positive(environ, "SYSMON_UPLOAD_BYTES", defaults.upload_bytes)),
            speedtest_timeout=_positive(environ, "SYSMON_SPEEDTEST_TIMEOUT", defaults.speedtest_timeout),
            cpu_interval=_non_negative(environ, "SYSMON_CPU_INTERVAL", defaults.cpu_interval),
            network_interval=_non_negative(environ, "SYSMON_NETWORK_INTERVAL", defaults.network_interval),
            log_level=environ.get("SYSMON_LOG_LEVEL", defaults.log_level).upper(),
            log_file=environ.get("SYSMON_LOG_FILE") or None,
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "speedtest_timeout" in changes and changes["speedtest_timeout"] <= 0:
            raise ValueError("speedtest timeout must be positive")
        return replace(self, **changes)


def _url_list(environ: Mapping[str, str], name: str, default: List[str]) -> List[str]:
    raw = environ.get(name)
    if raw is None:
        return list(default)
    # An empty value is a valid, empty list (disables upload testing).
    return [url.strip() for url in raw.split(",") if url.strip()]


def _number(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _positive(environ: Mapping[str, str], name: str, default: float) -> float:
    value = _number(environ, name, default)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def _non_negative(environ: Mapping[str, str], name: str, default: float) -> float:
    value = _number(environ, name, default)
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


__all__ = ["Settings", "DEFAULT_DOWNLOAD_URLS", "DEFAULT_UPLOAD_URLS"]
