"""Internet throughput estimation against a list of download/upload sources.

Sources are probed one at a time, in list order, so that they never compete
for the local link. A source that errors, answers with a non-2xx status or
overruns its deadline is logged and skipped; only when every download source
fails does the measurement itself fail.
"""

from __future__ import annotations

import math
import time
from typing import Iterable, List, Optional, Sequence

import requests
import urllib3

from .errors import SpeedTestError
from .log import get_logger
from .models import InternetSpeed, SourceResult

logger = get_logger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
}
CHUNK_SIZE = 64 * 1024
MEGABIT = 1024 * 1024


def mbps(size_bytes: int, elapsed: float) -> float:
    """Megabits per second for *size_bytes* moved in *elapsed* seconds (NaN for no time)."""
    if elapsed <= 0:
        return math.nan
    return (size_bytes * 8) / elapsed / MEGABIT


def median_speed(samples: Iterable[float]) -> float:
    """Middle finite, positive sample (the upper middle one for an even count)."""
    valid = sorted(s for s in samples if s is not None and math.isfinite(s) and s > 0)
    if not valid:
        raise SpeedTestError("no valid measurements")
    return valid[len(valid) // 2]


def _cache_buster() -> dict:
    return {"t": str(int(time.time() * 1000))}


class DeadlinePayload:
    """Zero-filled upload body that refuses to hand out bytes past *deadline*.

    The HTTP client pulls the body through ``read()`` block by block, so a
    receiver that accepts data slowly aborts the send once time is up.
    """

    def __init__(self, size: int, deadline: float):
        self._size = size
        self._remaining = size
        self._deadline = deadline

    def __len__(self) -> int:
        return self._size

    def read(self, amt: Optional[int] = -1) -> bytes:
        if self._remaining and time.perf_counter() > self._deadline:
            raise TimeoutError("upload deadline exceeded")
        if amt is None or amt < 0:
            amt = self._remaining
        n = min(amt, self._remaining)
        self._remaining -= n
        return b"\0" * n


class SpeedTester:
    """Sequential multi-source download (and optional upload) benchmark."""

    def __init__(
        self,
        download_urls: Sequence[str],
        upload_urls: Sequence[str] = (),
        timeout: float = 15.0,
        upload_bytes: int = 1_000_000,
        session: Optional[requests.Session] = None,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.download_urls = list(download_urls)
        self.upload_urls = list(upload_urls)
        self.timeout = timeout
        self.upload_bytes = upload_bytes
        self.session = session

    def _failed(self, index: int, url: str, reason: str) -> SourceResult:
        logger.warning("Source %d failed: %s", index, reason)
        return SourceResult(url=url, error=reason)

    def _download_one(self, session: requests.Session, index: int, url: str) -> SourceResult:
        logger.info("Testing download from source %d...", index)
        started = time.perf_counter()
        deadline = started + self.timeout
        size = 0
        try:
            with session.get(
                url,
                params=_cache_buster(),
                headers=NO_CACHE_HEADERS,
                stream=True,
                timeout=self.timeout,
            ) as response:
                if not 200 <= response.status_code < 300:
                    return self._failed(index, url, f"{response.status_code} {response.reason}")
                # read1 returns whatever has arrived, so a dripping source
                # still reaches the deadline check after every socket read.
                while True:
                    if time.perf_counter() > deadline:
                        return self._failed(index, url, f"timed out after {self.timeout:g}s")
                    chunk = response.raw.read1(CHUNK_SIZE, decode_content=True)
                    if not chunk:
                        break
                    size += len(chunk)
        except (requests.RequestException, urllib3.exceptions.HTTPError) as exc:
            return self._failed(index, url, str(exc))
        elapsed = time.perf_counter() - started
        if elapsed > self.timeout:
            return self._failed(index, url, f"timed out after {self.timeout:g}s")

        speed = mbps(size, elapsed)
        logger.info("Source %d: File size: %.2f MB", index, size / MEGABIT)
        logger.info("Source %d: Download speed: %.2f Mbps", index, speed)
        return SourceResult(url=url, mbps=speed)

    def _upload_one(self, session: requests.Session, index: int, url: str) -> SourceResult:
        logger.info("Testing upload to source %d...", index)
        started = time.perf_counter()
        payload = DeadlinePayload(self.upload_bytes, started + self.timeout)
        try:
            with session.post(
                url,
                params=_cache_buster(),
                data=payload,
                headers=NO_CACHE_HEADERS,
                stream=True,
                timeout=self.timeout,
            ) as response:
                elapsed = time.perf_counter() - started
                if not 200 <= response.status_code < 300:
                    return self._failed(index, url, f"{response.status_code} {response.reason}")
        except (requests.RequestException, urllib3.exceptions.HTTPError) as exc:
            return self._failed(index, url, str(exc))
        if elapsed > self.timeout:
            return self._failed(index, url, f"timed out after {self.timeout:g}s")

        speed = mbps(self.upload_bytes, elapsed)
        logger.info("Source %d: Upload speed: %.2f Mbps", index, speed)
        return SourceResult(url=url, mbps=speed)

    def _with_session(self, probe) -> List[SourceResult]:
        if self.session is not None:
            return probe(self.session)
        with requests.Session() as session:
            return probe(session)

    def measure_download(self) -> List[SourceResult]:
        return self._with_session(lambda session: [
            self._download_one(session, i, url)
            for i, url in enumerate(self.download_urls, start=1)
        ])

    def measure_upload(self) -> List[SourceResult]:
        return self._with_session(lambda session: [
            self._upload_one(session, i, url)
            for i, url in enumerate(self.upload_urls, start=1)
        ])

    def measure(self) -> InternetSpeed:
        """Run the download benchmark, then the upload one if any upload source is set."""
        logger.info("Starting download speed test...")
        downloads = self.measure_download()
        try:
            download = median_speed(r.mbps for r in downloads if r.ok)
        except SpeedTestError:
            raise SpeedTestError("All download tests failed") from None
        logger.info("Median download speed: %.2f Mbps", download)

        upload = None
        if self.upload_urls:
            logger.info("Starting upload speed test...")
            uploads = self.measure_upload()
            try:
                upload = round(median_speed(r.mbps for r in uploads if r.ok), 2)
                logger.info("Median upload speed: %.2f Mbps", upload)
            except SpeedTestError:
                logger.warning("All upload tests failed; reporting download only")

        return InternetSpeed(download_mbps=round(download, 2), upload_mbps=upload)


__all__ = ["SpeedTester", "DeadlinePayload", "median_speed", "mbps", "NO_CACHE_HEADERS"]
