"""
Fetching remote library files into the source tree.
"""
from __future__ import annotations

import typing as t
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import requests

from .core import FetchError
from .files import create_file

if t.TYPE_CHECKING:
    from collections.abc import Sequence

    from .core import RemoteLib


TIMEOUT = 5


def fetch_remote(url: str, timeout: float = TIMEOUT) -> str:
    """
    GET @url and return the body text. Network errors, error statuses and
    empty bodies all raise FetchError; there are no retries.
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FetchError(f'Could not fetch {url}: {e}') from e
    if not response.text:
        raise FetchError(f'Could not fetch {url}: empty response')
    return response.text


def fetch_all(libs: Sequence[RemoteLib], dest: Path, timeout: float = TIMEOUT) -> list[Path]:
    """
    Fetch every library concurrently, then write them to @dest. Nothing is
    written unless all fetches succeed.
    """
    if not libs:
        return []
    with ThreadPoolExecutor(max_workers=len(libs)) as executor:
        futures = [executor.submit(fetch_remote, lib.url, timeout) for lib in libs]
        # result() re-raises the FetchError of a failed fetch.
        bodies = [f.result() for f in futures]

    written = []
    for lib, body in zip(libs, bodies):
        path = dest / lib.file
        create_file(path, body)
        written.append(path)
    return written
