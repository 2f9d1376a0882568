"""Retroactive identity merge across every index of a RepositoryStats.

A merge mapping is a flat disjoint set keyed by email: each primary maps to
itself and every other key is an alias of the primary it maps to. Merging
is all-or-nothing per alias and idempotent, so re-applying a mapping that
was already applied leaves the model unchanged.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from ..exceptions import ErrorCode, InvalidMergeMappingError
from ..logging_config import get_logger
from .models import AuthorStats, RepositoryStats

logger = get_logger(__name__)


@dataclass
class MergeReport:
    merged: list[str] = field(default_factory=list)  # aliases folded into a primary
    skipped: list[str] = field(default_factory=list)  # alias or primary absent


def build_merge_map(primary: str, aliases: Iterable[str]) -> dict[str, str]:
    """Mapping that folds ``aliases`` into ``primary``."""
    mapping = {primary: primary}
    for alias in aliases:
        mapping[alias] = primary
    return mapping


def validate_merge_map(mapping: Mapping[str, str]) -> None:
    """Every value must itself be a key that maps to itself.

    Raises:
        InvalidMergeMappingError: a target is not a declared primary (for
            example a chain ``a -> b -> c``)
    """
    for alias, primary in mapping.items():
        if mapping.get(primary) != primary:
            raise InvalidMergeMappingError(
                message=f"Merge target {primary!r} of {alias!r} is not a primary identity",
                code=ErrorCode.RP400,
                context={"alias": alias, "primary": primary},
                recoverable=False,
                recovery_hint="Map every primary email to itself and aliases directly to a primary",
            )


def apply_author_merges(stats: RepositoryStats, mapping: Mapping[str, str]) -> MergeReport:
    """Fold alias identities into their primaries in place.

    The model must not be observed or queried concurrently while this runs.
    """
    validate_merge_map(mapping)
    report = MergeReport()

    for alias, primary in mapping.items():
        if alias == primary:
            continue

        alias_stats = stats.authors.get(alias)
        primary_stats = stats.authors.get(primary)
        if alias_stats is None or primary_stats is None:
            logger.debug(
                "[%s] Skipping merge %s -> %s: identity not present", ErrorCode.RP401.value, alias, primary
            )
            report.skipped.append(alias)
            continue

        _fold_author(primary_stats, alias_stats)
        del stats.authors[alias]
        stats.total_authors -= 1
        report.merged.append(alias)

    if not report.merged:
        return report

    renames = {alias: mapping[alias] for alias in report.merged}

    for file_stat in stats.file_stats.values():
        for alias, primary in renames.items():
            count = file_stat.authors.pop(alias, None)
            if count is not None:
                file_stat.authors[primary] = file_stat.authors.get(primary, 0) + count

    for dir_stat in stats.dir_stats.values():
        for alias, primary in renames.items():
            alias_record = dir_stat.authors.pop(alias, None)
            if alias_record is None:
                continue
            primary_record = dir_stat.authors.get(primary)
            if primary_record is None:
                alias_record.email = primary
                alias_record.name = stats.authors[primary].name
                dir_stat.authors[primary] = alias_record
            else:
                primary_record.commits += alias_record.commits
                primary_record.changes += alias_record.changes
        if stats.finalized:
            dir_stat.compute_shares()

    _merge_pr_stats(stats, renames)

    logger.info("Merged %d author identities", len(report.merged))
    return report


def _fold_author(primary: AuthorStats, alias: AuthorStats) -> None:
    primary.commits += alias.commits
    primary.additions += alias.additions
    primary.deletions += alias.deletions

    for path, count in alias.files_touched.items():
        primary.files_touched[path] = primary.files_touched.get(path, 0) + count

    if alias.first_commit is not None and (
        primary.first_commit is None or alias.first_commit < primary.first_commit
    ):
        primary.first_commit = alias.first_commit
    if alias.last_commit is not None and (
        primary.last_commit is None or alias.last_commit > primary.last_commit
    ):
        primary.last_commit = alias.last_commit


def _merge_pr_stats(stats: RepositoryStats, renames: Mapping[str, str]) -> None:
    pr_stats = stats.pr_stats
    for alias, primary in renames.items():
        primary_name = stats.authors[primary].name

        alias_record = pr_stats.merges_by_author.pop(alias, None)
        if alias_record is not None:
            primary_record = pr_stats.merges_by_author.get(primary)
            if primary_record is None:
                alias_record.email = primary
                alias_record.name = primary_name
                pr_stats.merges_by_author[primary] = alias_record
            else:
                primary_record.merge_count += alias_record.merge_count
                primary_record.total_changes += alias_record.total_changes
                primary_record.pr_numbers.extend(alias_record.pr_numbers)

        for info in pr_stats.pr_list:
            if info.merged_by_email == alias:
                info.merged_by_email = primary
                info.merged_by = primary_name


def _email_local_part(email: str) -> str:
    return email.split("@", 1)[0]


def _names_similar(a: str, b: str) -> bool:
    # "John" vs "Johnny": compare the first three letters
    if not a or not b:
        return False
    if len(a) >= 3 and len(b) >= 3:
        return a[:3] == b[:3]
    return a == b


def find_similar_authors(stats: RepositoryStats, email: str, limit: int = 5) -> list[AuthorStats]:
    """Likely duplicate identities of ``email``, most active first."""
    target = stats.authors.get(email)
    if target is None:
        return []

    target_name = target.name.lower()
    target_local = _email_local_part(target.email)

    similar = [
        author
        for author in stats.authors.values()
        if author.email != target.email
        and (
            _names_similar(author.name.lower(), target_name)
            or _email_local_part(author.email) == target_local
        )
    ]
    similar.sort(key=lambda a: a.commits, reverse=True)
    return [copy.deepcopy(a) for a in similar[:limit]]
