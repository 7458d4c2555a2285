from __future__ import annotations

from urllib.parse import urlsplit

from mclauncher.common.errors import InvalidUrlError


_ALLOWED_SCHEMES = {"http", "https"}


def _split_absolute(url: str):
    parsed = urlsplit(str(url or "").strip())
    scheme = (parsed.scheme or "").lower()
    if scheme not in _ALLOWED_SCHEMES:
        raise InvalidUrlError(f"Not an absolute http(s) URL: {url!r}")
    if not parsed.hostname:
        raise InvalidUrlError(f"URL has no host: {url!r}")
    return parsed


def normalize_base(url: str) -> str:
    """Validate a mirror base URL and make sure it ends with ``/``."""
    text = str(url or "").strip()
    _split_absolute(text)
    if not text.endswith("/"):
        text += "/"
    return text


def rewrite_domain(url: str, mirror_base: str) -> str:
    """Move ``url`` onto ``mirror_base``, keeping its path, query and fragment.

    ``https://piston-meta.mojang.com/v1/x.json`` rewritten onto
    ``https://bmclapi2.bangbang93.com/`` becomes
    ``https://bmclapi2.bangbang93.com/v1/x.json``.
    """
    parsed = _split_absolute(url)
    base = normalize_base(mirror_base)

    out = base + parsed.path.lstrip("/")
    if parsed.query:
        out += "?" + parsed.query
    if parsed.fragment:
        out += "#" + parsed.fragment
    return out


def object_url(assets_base: str, object_hash: str) -> str:
    return f"{normalize_base(assets_base)}{object_hash[:2]}/{object_hash}"
