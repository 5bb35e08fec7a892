"""
Section freshness and targeting rules.

Every snapshot section is described by one ``SectionPolicy`` row. Builders
consult this table instead of hard-coding which sections are cached, which
are always fetched live, and what each provider is queried with.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.domain.comparison import SocialHandles

SUBJECT_SOURCE_SITE_CACHE = "site_cache"
SUBJECT_SOURCE_LIVE = "live"

TARGET_DOMAIN = "domain"
TARGET_HANDLE = "handle"
TARGET_HANDLE_OR_DOMAIN = "handle_or_domain"


@dataclass(frozen=True)
class SectionPolicy:
    """
    Freshness and targeting rule for one snapshot section.

    ``volatile`` sections are fetched live on every request for both sites
    and are never replayed from the comparison cache.
    """

    name: str
    volatile: bool
    subject_source: str
    target: str
    handle_field: str | None = None


SECTION_POLICIES: dict[str, SectionPolicy] = {
    policy.name: policy
    for policy in (
        SectionPolicy("audit", volatile=False, subject_source=SUBJECT_SOURCE_SITE_CACHE, target=TARGET_DOMAIN),
        SectionPolicy("backlinks", volatile=False, subject_source=SUBJECT_SOURCE_SITE_CACHE, target=TARGET_DOMAIN),
        SectionPolicy("traffic", volatile=False, subject_source=SUBJECT_SOURCE_SITE_CACHE, target=TARGET_DOMAIN),
        SectionPolicy("content_changes", volatile=False, subject_source=SUBJECT_SOURCE_LIVE, target=TARGET_DOMAIN),
        SectionPolicy(
            "instagram",
            volatile=False,
            subject_source=SUBJECT_SOURCE_LIVE,
            target=TARGET_HANDLE,
            handle_field="instagram",
        ),
        SectionPolicy(
            "facebook",
            volatile=False,
            subject_source=SUBJECT_SOURCE_LIVE,
            target=TARGET_HANDLE,
            handle_field="facebook",
        ),
        SectionPolicy(
            "google_ads",
            volatile=True,
            subject_source=SUBJECT_SOURCE_LIVE,
            target=TARGET_HANDLE_OR_DOMAIN,
            handle_field="google_ads",
        ),
        # The Meta ad library is searched by page only; a bare domain is not a valid query.
        SectionPolicy(
            "meta_ads",
            volatile=True,
            subject_source=SUBJECT_SOURCE_LIVE,
            target=TARGET_HANDLE,
            handle_field="facebook",
        ),
    )
}

SECTION_NAMES: tuple[str, ...] = tuple(SECTION_POLICIES)
VOLATILE_SECTIONS: frozenset[str] = frozenset(
    name for name, policy in SECTION_POLICIES.items() if policy.volatile
)


def resolve_target(policy: SectionPolicy, *, domain: str, handles: SocialHandles) -> str | None:
    """
    Return what the section's provider should be queried with, or None when
    the section is intentionally skipped for this site.
    """

    handle = getattr(handles, policy.handle_field) if policy.handle_field else None
    if policy.target == TARGET_DOMAIN:
        return domain
    if policy.target == TARGET_HANDLE:
        return handle
    if policy.target == TARGET_HANDLE_OR_DOMAIN:
        return handle or domain
    raise ValueError(f"Unknown target rule '{policy.target}' for section '{policy.name}'.")


def plan_calls(
    policies: dict[str, SectionPolicy],
    *,
    domain: str,
    handles: SocialHandles,
) -> dict[str, str]:
    """
    Map each section that should be fetched to its provider target.
    """

    calls: dict[str, str] = {}
    for name, policy in policies.items():
        target = resolve_target(policy, domain=domain, handles=handles)
        if target:
            calls[name] = target
    return calls
