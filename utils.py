"""
Utility functions shared across the dashboard modules
"""
import re
from datetime import datetime
from typing import Any, Dict
from urllib.parse import urlparse


def normalize_url(url: str) -> str:
    """Default the scheme to https when the URL has none"""
    url = (url or "").strip()
    if not url:
        return url
    if not re.match(r'^[a-zA-Z][a-zA-Z0-9+.-]*://', url):
        url = f"https://{url}"
    return url


def validate_url(url: str) -> bool:
    """Validate if a URL is properly formatted"""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False


def get_host(url: str) -> str:
    """Lower-cased host of a URL, empty string if there is none"""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def normalize_domain(url: str) -> str:
    """Extract and normalize domain from URL or bare domain"""
    domain = get_host(normalize_url(url))
    if domain.startswith('www.'):
        domain = domain[4:]
    return domain


def host_matches_domain(host: str, domain: str) -> bool:
    """True when host is the domain itself or one of its subdomains (www ignored)"""
    host = normalize_domain(host)
    domain = normalize_domain(domain)
    if not host or not domain:
        return False
    return host == domain or host.endswith("." + domain)


def clean_text(text: str) -> str:
    """Collapse whitespace in text content"""
    if not text:
        return ""
    return ' '.join(text.split())


def to_camel(name: str) -> str:
    """snake_case -> camelCase"""
    head, *tail = name.split('_')
    return head + ''.join(part.capitalize() for part in tail)


def camelize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Rename the top-level keys of a dict to camelCase"""
    return {to_camel(key): value for key, value in data.items()}


def now_iso() -> str:
    return datetime.now().isoformat()


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

