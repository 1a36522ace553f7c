from typing import Optional

import requests

from .config import DEFAULT_IMAGE_URL
from .errors import ImageFetchError

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)
MAX_REDIRECTS = 5


class ImageSource:
    """Pulls one random image per call from a public endpoint."""

    def __init__(self, url: str = DEFAULT_IMAGE_URL, timeout_sec: int = 30,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout_sec
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT})
        self.session.max_redirects = MAX_REDIRECTS

    def fetch(self) -> bytes:
        try:
            resp = self.session.get(self.url, timeout=self.timeout, allow_redirects=True)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise ImageFetchError(f"Error fetching image: {e}") from e
        if not resp.content:
            raise ImageFetchError(f"Empty image body from {self.url}")
        return resp.content
