"""
Channel profiles.

One profile per tracked channel. The crawl pipeline is generic; everything
channel specific (sponsor prompt, no-sponsor sentinel key, storage schema)
comes from here.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

_SPONSOR_PROMPT_TEMPLATE = (
    "The sponsor key for this channel is `{link_base}/${{SPONSOR_NAME}}`. "
    "There are often multiple {link_name} links in the description. "
    "The one for the sponsor will come after something similar to "
    "'Thank you ${{SPONSOR_NAME}} for sponsoring!'. "
    "If it doesn't mention that the sponsor name is a sponsor, then there is no sponsor "
    "and you should set the sponsor name to 'no sponsor' and the sponsor key to '{link_base}'"
)


def _sponsor_prompt(link_base: str, link_name: str) -> str:
    return _SPONSOR_PROMPT_TEMPLATE.format(link_base=link_base, link_name=link_name)


@dataclass(frozen=True)
class ChannelProfile:
    key: str
    channel_id: str
    name: str
    no_sponsor_key: str
    sponsor_prompt: str
    db_schema: Optional[str] = None


THEO = ChannelProfile(
    key="theo",
    channel_id="UCbRP3c757lWg9M-U7TyEkXA",
    name="Theo",
    no_sponsor_key="https://soydev.link",
    sponsor_prompt=_sponsor_prompt("https://soydev.link", "soydev"),
    db_schema="theo",
)

DAVIS = ChannelProfile(
    key="davis",
    channel_id="UCFvPgPdb_emE_bpMZq6hmJQ",
    name="Ben Davis",
    no_sponsor_key="https://davis7.link",
    sponsor_prompt=_sponsor_prompt("https://davis7.link", "davis7"),
    db_schema="davis",
)

MICKY = ChannelProfile(
    key="micky",
    channel_id="UCBX__dPYqDFqAN4QcWbnUbw",
    name="Micky",
    no_sponsor_key="https://rasmic.link",
    sponsor_prompt=_sponsor_prompt("https://rasmic.link", "rasmic"),
    db_schema="micky",
)

CHANNEL_PROFILES: dict[str, ChannelProfile] = {
    profile.channel_id: profile for profile in (THEO, DAVIS, MICKY)
}


def resolve_profile(channel_id_or_key: str) -> Optional[ChannelProfile]:
    """Look up a profile by channel id or short key (``theo``, ``davis``, ``micky``)."""
    value = (channel_id_or_key or "").strip()
    if not value:
        return None
    if value in CHANNEL_PROFILES:
        return CHANNEL_PROFILES[value]
    for profile in CHANNEL_PROFILES.values():
        if profile.key == value.lower():
            return profile
    return None
