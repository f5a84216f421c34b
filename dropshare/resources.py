from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
import mimetypes


@dataclass(frozen=True)
class Resource:
    data: bytes
    mime: str
    size: int


class ResourceCache:
    """
    Locate and cache static client assets under a resources root.

    Layout:
      res/index.html     the single-page client
      res/{name}         any other asset served under /res/{name}

    Public API:
      get(name) -> Resource | None
      index_html() -> bytes
    """

    INDEX = "index.html"

    def __init__(self, res_root: Path):
        self.res_root = Path(res_root).resolve()
        self._cache: Dict[str, Resource] = {}

    def _path_for(self, name: str) -> Optional[Path]:
        if not name or "\x00" in name:
            return None
        p = (self.res_root / name).resolve()
        # refuse anything that escapes the resources root
        if p != self.res_root and self.res_root not in p.parents:
            return None
        return p

    def get(self, name: str) -> Optional[Resource]:
        """
        Return the cached resource, reading it on first use. Returns None if
        the resource does not exist or cannot be read.
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        p = self._path_for(name)
        if p is None or not p.is_file():
            return None
        try:
            data = p.read_bytes()
        except OSError:
            return None
        mime = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        resource = Resource(data=data, mime=mime, size=len(data))
        self._cache[name] = resource
        return resource

    def index_html(self) -> Optional[bytes]:
        """The client page with newlines and tabs stripped, cached after first read."""
        cached = self._cache.get("/")
        if cached is not None:
            return cached.data
        resource = self.get(self.INDEX)
        if resource is None:
            return None
        text = resource.data.decode("utf-8").replace("\r", "").replace("\n", "").replace("\t", "")
        data = text.encode("utf-8")
        self._cache["/"] = Resource(data=data, mime="text/html", size=len(data))
        return data
