"""Inbound referrer classification and counting."""

from __future__ import annotations

from urllib.parse import urlsplit

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.db.models import ReferrerStat
from goldticket.db.upsert import upsert_insert

logger = structlog.get_logger()

DIRECT = ("Direct/Unknown", "direct")

# First match wins; messenger.com must precede facebook.com.
_KNOWN_PLATFORMS: list[tuple[str, str]] = [
    ("messenger.com", "Messenger"),
    ("facebook.com", "Facebook"),
    ("instagram.com", "Instagram"),
    ("tiktok.com", "TikTok"),
    ("line.me", "LINE"),
    ("google.com", "Google"),
]


def classify_referrer(referrer: str | None) -> tuple[str, str]:
    """Map a referrer URL to ``(platform, domain)``.

    Missing, ``"direct"`` and unparseable referrers all count as direct traffic.
    """
    if not referrer or referrer == "direct":
        return DIRECT
    try:
        parts = urlsplit(referrer)
    except ValueError:
        logger.warning("referrer_unparseable", referrer=referrer)
        return DIRECT
    hostname = parts.hostname
    if not parts.scheme or not hostname:
        logger.warning("referrer_unparseable", referrer=referrer)
        return DIRECT

    hostname = hostname.removeprefix("www.")
    for needle, platform in _KNOWN_PLATFORMS:
        if needle in hostname:
            return platform, needle
    return "Other", hostname


async def count_referrer(db: AsyncSession, referrer: str | None) -> tuple[str, str]:
    """Classify and count one referral. The platform is fixed on first sight of a domain."""
    platform, domain = classify_referrer(referrer)
    stmt = upsert_insert(db, ReferrerStat).values(domain=domain, platform=platform, count=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=["domain"],
        set_={"count": ReferrerStat.count + 1},
    )
    await db.execute(stmt)
    return platform, domain
