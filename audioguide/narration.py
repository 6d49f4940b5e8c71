"""Narration assets: bundled files first, then cloud copies in a size-capped disk cache."""

import os
from typing import Iterable, Optional
from urllib.parse import quote

import requests

from .config import CONFIG


class NarrationCache:
    """Resolve narration asset names to playable local files.

    Lookup order for an asset: the path as given or under ``local_dir``, a
    copy already downloaded into the cache directory, then a download from
    ``base_url``. Cached files are evicted oldest-first once the directory
    grows past ``max_bytes``.
    """

    CACHE_DIR = "narration_cache"

    def __init__(self, base_url: Optional[str] = None, local_dir: Optional[str] = None,
                 cache_dir: Optional[str] = None, max_bytes: Optional[int] = None,
                 timeout: Optional[float] = None):
        self.base_url = base_url if base_url is not None else CONFIG["narration_base_url"]
        self.local_dir = local_dir if local_dir is not None else CONFIG["narration_local_dir"]
        self.cache_dir = cache_dir or self.CACHE_DIR
        self.max_bytes = max_bytes or CONFIG["narration_cache_max_bytes"]
        self.timeout = timeout or CONFIG["narration_timeout"]

    def _local_path(self, asset: str) -> Optional[str]:
        candidates = [asset]
        if self.local_dir:
            candidates.append(os.path.join(self.local_dir, asset))
        for path in candidates:
            if os.path.isfile(path):
                return path
        return None

    def cache_path(self, asset: str) -> str:
        return os.path.join(self.cache_dir, os.path.basename(asset))

    def url_for(self, asset: str) -> str:
        return f"{self.base_url.rstrip('/')}/{quote(os.path.basename(asset))}"

    def is_cached(self, asset: str) -> bool:
        return os.path.isfile(self.cache_path(asset))

    def download(self, asset: str) -> Optional[str]:
        """Fetch one asset into the cache. Returns its path, or None on failure."""
        if not self.base_url:
            return None
        url = self.url_for(asset)
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            print(f"Narration download error ({asset}): {e}")
            return None

        os.makedirs(self.cache_dir, exist_ok=True)
        path = self.cache_path(asset)
        partial = path + ".part"
        with open(partial, "wb") as f:
            f.write(response.content)
        os.replace(partial, path)
        print(f"Downloaded narration {url} ({len(response.content)} bytes)")
        self.cleanup(keep=path)
        return path

    def resolve(self, asset: str) -> Optional[str]:
        """Local file, cached copy or fresh download for an asset; None if none is available"""
        if not asset:
            return None
        local = self._local_path(asset)
        if local:
            return local
        cached = self.cache_path(asset)
        if os.path.isfile(cached):
            os.utime(cached)  # most recently used survives cleanup
            return cached
        return self.download(asset)

    def preload(self, assets: Iterable[str]) -> int:
        """Make assets available ahead of time; returns how many are"""
        available = 0
        for asset in dict.fromkeys(assets):
            if self.resolve(asset):
                available += 1
        return available

    def _entries(self) -> list[tuple[float, int, str]]:
        if not os.path.isdir(self.cache_dir):
            return []
        entries = []
        for name in os.listdir(self.cache_dir):
            path = os.path.join(self.cache_dir, name)
            if os.path.isfile(path):
                stat = os.stat(path)
                entries.append((stat.st_mtime, stat.st_size, path))
        return entries

    def cache_size(self) -> int:
        return sum(size for _, size, _ in self._entries())

    def cleanup(self, keep: Optional[str] = None) -> int:
        """Evict oldest files until the cache is back under 80% of max_bytes.

        Returns the number of files removed.
        """
        entries = sorted(self._entries())
        total = sum(size for _, size, _ in entries)
        if total <= self.max_bytes:
            return 0
        removed = 0
        for _, size, path in entries:
            if total <= self.max_bytes * 0.8:
                break
            if path == keep:
                continue
            os.remove(path)
            total -= size
            removed += 1
        return removed

    def clear(self):
        for _, _, path in self._entries():
            os.remove(path)
