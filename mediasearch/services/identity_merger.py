"""Identity merging for studios and channels.

TMDB exposes the same real-world studio or channel under several numeric
ids (a studio with a company record and a network record, a channel with
historical network ids). These helpers collapse such duplicates by
normalized name.

Composite ids join member ids with ``|`` in first-seen order, e.g.
``"1|2"``. They stay re-splittable so callers can ask whether a merged
entity belongs to a set of known ids, and they can be passed straight to
``with_companies`` / ``with_networks``, where ``|`` means OR.
"""
from __future__ import annotations

import unicodedata
from collections.abc import Iterable, Sequence

import structlog

from mediasearch.models.api_schemas import ChannelEntity, ChannelKind, ChannelRecord
from mediasearch.services.normalizer import has_displayable_image, normalize_name

logger = structlog.get_logger(__name__)

COMPOSITE_ID_SEPARATOR = "|"

ChannelId = int | str


def _collation_key(name: str) -> str:
    """Accent- and case-folded form of ``name`` for ordering (É sorts with E)."""
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _name_sort_key(name: str) -> tuple[str, str]:
    return (_collation_key(name), name)


def join_ids(ids: Iterable[int]) -> ChannelId:
    """Join member ids into a canonical id (plain int for a single member)."""
    unique = list(dict.fromkeys(ids))
    if len(unique) == 1:
        return unique[0]
    return COMPOSITE_ID_SEPARATOR.join(str(i) for i in unique)


def split_composite_id(channel_id: ChannelId) -> list[int]:
    """Re-split a channel id into its integer members.

    Examples:
        >>> split_composite_id("1|2")
        [1, 2]
        >>> split_composite_id(7)
        [7]
    """
    if isinstance(channel_id, int):
        return [channel_id]
    return [int(part) for part in str(channel_id).split(COMPOSITE_ID_SEPARATOR) if part.strip()]


def is_member(channel_id: ChannelId, ids: Iterable[int]) -> bool:
    """True if any member of ``channel_id`` is in ``ids``."""
    wanted = set(ids)
    return any(i in wanted for i in split_composite_id(channel_id))


def _group_by_name(records: Iterable[ChannelRecord]) -> dict[str, list[ChannelRecord]]:
    groups: dict[str, list[ChannelRecord]] = {}
    for record in records:
        # Names with no ASCII letters or digits (e.g. Japanese) fall back to
        # their lowercased text so they are neither dropped nor lumped together
        key = normalize_name(record.name) or record.name.strip().lower()
        if not key:
            continue
        groups.setdefault(key, []).append(record)
    return groups


def _first_logo(records: Sequence[ChannelRecord]) -> str | None:
    return next((r.logo_path for r in records if has_displayable_image(r.logo_path)), None)


def merge_channels(
    records: Iterable[ChannelRecord | ChannelEntity], kind: ChannelKind = "company"
) -> list[ChannelEntity]:
    """Collapse records that describe the same studio/channel.

    Already-merged entities may be fed back in: their composite ids are
    split into members first, so merging is idempotent.

    Args:
        records: Raw records (or merged entities) in fetch order.
        kind: Kind to stamp on the output ("network" or "company").

    Returns:
        One entity per normalized name, sorted by name (locale-aware).
    """
    flat: list[ChannelRecord] = []
    for record in records:
        if isinstance(record, ChannelEntity):
            flat.extend(
                ChannelRecord(
                    id=member_id,
                    name=record.name,
                    logo_path=record.logo_path,
                    origin_country=record.origin_country,
                )
                for member_id in split_composite_id(record.id)
            )
        else:
            flat.append(record)

    merged = []
    for group in _group_by_name(flat).values():
        first = group[0]
        channel_id = join_ids(r.id for r in group)
        merged.append(
            ChannelEntity(
                id=channel_id,
                name=first.name.strip(),
                logo_path=_first_logo(group),
                origin_country=first.origin_country,
                kind=kind,
                network_id=channel_id if kind == "network" else None,
                company_id=channel_id if kind == "company" else None,
            )
        )

    merged.sort(key=lambda e: _name_sort_key(e.name))
    logger.debug("channels_merged", kind=kind, records=len(flat), entities=len(merged))
    return merged


def merge_network_company(
    networks: Iterable[ChannelRecord], companies: Iterable[ChannelRecord]
) -> list[ChannelEntity]:
    """Join networks and companies that share a normalized name.

    A name present on both sides becomes one ``kind="merged"`` entity that
    keeps the network's id, name and country, prefers the network logo, and
    exposes both ``network_id`` and ``company_id``. Names seen on one side
    only keep ``kind="network"`` / ``"company"``. Entities without a
    displayable logo are dropped.

    Returns:
        Entities in first-seen order (networks first, then companies).
    """
    network_groups = _group_by_name(networks)
    company_groups = _group_by_name(companies)

    order = list(network_groups) + [k for k in company_groups if k not in network_groups]

    entities = []
    for key in order:
        net = network_groups.get(key)
        comp = company_groups.get(key)

        if net and comp:
            network_id = join_ids(r.id for r in net)
            entity = ChannelEntity(
                id=network_id,
                name=net[0].name.strip(),
                logo_path=_first_logo(net) or _first_logo(comp),
                origin_country=net[0].origin_country,
                kind="merged",
                network_id=network_id,
                company_id=join_ids(r.id for r in comp),
            )
        elif net:
            network_id = join_ids(r.id for r in net)
            entity = ChannelEntity(
                id=network_id,
                name=net[0].name.strip(),
                logo_path=_first_logo(net),
                origin_country=net[0].origin_country,
                kind="network",
                network_id=network_id,
            )
        else:
            company_id = join_ids(r.id for r in comp)
            entity = ChannelEntity(
                id=company_id,
                name=comp[0].name.strip(),
                logo_path=_first_logo(comp),
                origin_country=comp[0].origin_country,
                kind="company",
                company_id=company_id,
            )

        if has_displayable_image(entity.logo_path):
            entities.append(entity)

    return entities
