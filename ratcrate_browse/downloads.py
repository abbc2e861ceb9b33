from __future__ import annotations

import urllib.request

USER_AGENT = "ratcrate-browse"


def download_bytes(url: str, *, timeout_seconds: float) -> bytes:
    request = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})  # noqa: S310
    with urllib.request.urlopen(  # noqa: S310
        request,
        timeout=timeout_seconds,
    ) as response:
        return response.read()
