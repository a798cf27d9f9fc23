import hashlib
from typing import Optional

def sanitize_url(url: Optional[str]) -> str:
    """Trims the URL and strips embedded CR/LF characters (header and log injection)."""
    if not url or not url.strip():
        return ""
    return url.strip().replace("\r", "").replace("\n", "")

def sanitize_details(details: Optional[str]) -> Optional[str]:
    """Trims the details and normalizes line endings to \\n. Blank details become None."""
    if not details or not details.strip():
        return None
    return details.strip().replace("\r\n", "\n").replace("\r", "\n")

def _short_hash(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:8].upper()

def url_fingerprint(url: Optional[str]) -> str:
    """Short, stable hash of a reported URL so log lines never carry the URL itself."""
    return _short_hash(url or "")

def client_fingerprint(address: Optional[str]) -> str:
    """Short hash of a client address; raw IPs are not logged."""
    return _short_hash(address or "unknown")

def redact_url(text: Optional[str], url: Optional[str]) -> Optional[str]:
    """Replaces the reported URL, raw or sanitized, with its fingerprint."""
    if not text or not url:
        return text
    placeholder = f"[url:{url_fingerprint(url)}]"
    for candidate in sorted({url, url.strip(), sanitize_url(url)}, key=len, reverse=True):
        if candidate:
            text = text.replace(candidate, placeholder)
    return text
