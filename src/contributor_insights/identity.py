from __future__ import annotations

import dataclasses
from typing import Callable, Mapping

from .models import COMMUNITY

PERSONAL_EMAIL_DOMAINS = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "protonmail.com",
        "icloud.com",
        "mail.com",
        "aol.com",
        "yandex.com",
        "qq.com",
        "163.com",
        "126.com",
        "sina.com",
        "live.com",
        "msn.com",
        "me.com",
        "mac.com",
        "googlemail.com",
        "yahoo.co.uk",
        "yahoo.co.jp",
        "fastmail.com",
        "zoho.com",
    }
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_username(username: str) -> str:
    return username.strip().lstrip("@").casefold()


def email_domain(email: str) -> str:
    """
    Lower-cased domain part of `email`, or "" when the address is empty or does
    not contain exactly one "@".
    """
    if not email:
        return ""
    parts = email.split("@")
    if len(parts) != 2:
        return ""
    return parts[1].strip().lower()


def auto_classify(email: str) -> str:
    """
    Category for `email` when no vendor rules are configured:
      - ""                      -> "unknown"
      - not exactly one "@"     -> "invalid-email"
      - personal webmail domain -> "community"
      - anything else           -> "@<domain>"
    """
    if not email:
        return "unknown"
    parts = email.split("@")
    if len(parts) != 2:
        return "invalid-email"
    domain = parts[1].lower()
    if domain in PERSONAL_EMAIL_DOMAINS:
        return COMMUNITY
    return "@" + domain


@dataclasses.dataclass(frozen=True)
class VendorRules:
    domains: frozenset[str] = frozenset()
    organizations: tuple[str, ...] = ()
    usernames: frozenset[str] = frozenset()

    @classmethod
    def build(cls, *, domains=(), organizations=(), usernames=()) -> VendorRules:
        return cls(
            domains=frozenset(d.strip().lower() for d in domains if d.strip()),
            organizations=tuple(o.strip().lower() for o in organizations if o.strip()),
            usernames=frozenset(normalize_username(u) for u in usernames if normalize_username(u)),
        )

    @property
    def is_empty(self) -> bool:
        return not self.domains and not self.organizations and not self.usernames


Resolver = Callable[[Mapping[str, VendorRules], str, str, str], str]


def _by_username(vendors: Mapping[str, VendorRules], email: str, organization: str, username: str) -> str:
    u = normalize_username(username) if username else ""
    if not u:
        return ""
    for name, rules in vendors.items():
        if u in rules.usernames:
            return name
    return ""


def _by_email_domain(vendors: Mapping[str, VendorRules], email: str, organization: str, username: str) -> str:
    domain = email_domain(email)
    if not domain:
        return ""
    for name, rules in vendors.items():
        if domain in rules.domains:
            return name
    return ""


def _by_organization(vendors: Mapping[str, VendorRules], email: str, organization: str, username: str) -> str:
    org = organization.strip().lower() if organization else ""
    if not org:
        return ""
    for name, rules in vendors.items():
        for fragment in rules.organizations:
            if fragment in org:
                return name
    return ""


# First match wins.
CASCADE: tuple[Resolver, ...] = (_by_username, _by_email_domain, _by_organization)


@dataclasses.dataclass(frozen=True)
class VendorClassifier:
    vendors: Mapping[str, VendorRules] = dataclasses.field(default_factory=dict)

    @property
    def auto_mode(self) -> bool:
        return len(self.vendors) == 0

    def vendor_names(self) -> list[str]:
        return list(self.vendors)

    def categories(self) -> list[str]:
        """Categories known before any record is seen; empty in auto mode."""
        if self.auto_mode:
            return []
        names = self.vendor_names()
        if COMMUNITY not in names:
            names.append(COMMUNITY)
        return names

    def classify(self, email: str, organization: str = "", username: str = "") -> str:
        if self.auto_mode:
            return auto_classify(email)
        for resolve in CASCADE:
            name = resolve(self.vendors, email, organization, username)
            if name:
                return name
        return COMMUNITY
