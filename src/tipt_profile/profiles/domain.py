"""Public profile handle helpers (``<handle>.tipt.co``)."""

import re

from tipt_profile.config import PROFILE_DOMAIN_SUFFIX

RESERVED_DOMAINS = frozenset(
    {
        "www", "api", "admin", "app", "blog", "help", "support", "mail", "email",
        "ftp", "smtp", "pop", "imap", "ns1", "ns2", "dns", "web", "site", "home",
        "login", "logout", "signup", "signin", "register", "auth", "oauth",
        "dashboard", "profile", "settings", "account", "user", "users",
        "tipt", "tiptco", "tipt-co", "tipt_co", "tipt.co",
    }
)

_DOMAIN_RE = re.compile(r"^[a-z0-9-]{3,20}$")
_MAX_LENGTH = 20


def create_domain(value: str | None) -> str:
    """Derive a URL-safe handle from free text.

    Examples:
        'Dylan Dalal' -> 'dylandalal'
        '--My-Band--' -> 'my-band'
    """
    if not value:
        return ""
    handle = re.sub(r"[^a-z0-9-]", "", value.lower().strip())
    handle = handle.strip("-")
    return handle[:_MAX_LENGTH]


def is_valid_domain(domain: str | None) -> bool:
    """3-20 chars of ``[a-z0-9-]``, no leading/trailing or doubled hyphens."""
    if not domain:
        return False
    if domain.startswith("-") or domain.endswith("-") or "--" in domain:
        return False
    return bool(_DOMAIN_RE.match(domain))


def is_reserved_domain(domain: str) -> bool:
    return domain.lower() in RESERVED_DOMAINS


def format_domain(domain: str | None) -> str:
    if not domain:
        return ""
    return f"{domain}.{PROFILE_DOMAIN_SUFFIX}"


def extract_domain_from_url(url: str | None) -> str:
    """'https://dylandalal.tipt.co' -> 'dylandalal'."""
    if not url:
        return ""
    clean = re.sub(r"^https?://", "", url)
    return re.sub(rf"\.{re.escape(PROFILE_DOMAIN_SUFFIX)}$", "", clean)
