"""Collection reconciliation run.

Orchestrates one pass over a collection type:
scan roots -> reconcile against the catalog -> DELETE stale records ->
ADD new files (parse, look up, probe, classify, name, insert, move).

Processing is strictly sequential. A failure while handling one file marks
that file as failed and the run continues; only configuration problems
(unreadable roots) abort the run.
"""

from collections.abc import Awaitable, Callable, Hashable, Iterable, Sequence
from pathlib import Path
from typing import Any, Protocol

import structlog
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from medialedger.core.errors import (
    ConfigurationError,
    LookupFailure,
    PersistenceFailure,
)
from medialedger.core.naming import MIN_NUMBER_WIDTH, build_canonical_name, episode_padding
from medialedger.core.parser import detect_release_group, parse_filename
from medialedger.core.reconciler import reconcile
from medialedger.core.schemas import (
    CatalogRecord,
    CollectionType,
    EpisodeRecord,
    InventoryAction,
    ItemOutcome,
    ParsedIdentity,
    RunSummary,
    TitleRecord,
)
from medialedger.core.source import classify_origin
from medialedger.fs.fs_ops import move_file
from medialedger.fs.scanner import list_video_files, validate_root
from medialedger.metadata.providers.base import MetadataProvider
from medialedger.probe.cache import Probe, ProbeCache


class CatalogBackend(Protocol):
    """What the runner needs from the catalog store."""

    async def list_paths(self, collection_type: CollectionType) -> set[str]: ...

    async def insert(self, record: CatalogRecord) -> None: ...

    async def delete(self, path: str) -> None: ...


def show_key(identity: ParsedIdentity) -> Hashable:
    """Key grouping the episodes of one show within a run."""
    if identity.tmdb_id is not None:
        return ("tmdb", identity.tmdb_id)
    return ("title", identity.title.lower())


class TitleCache:
    """Memo of provider title lookups scoped to a single run.

    Keyed by the override id, or by (collection type, title, year). Only
    successful lookups are remembered.
    """

    def __init__(self) -> None:
        self._entries: dict[Hashable, TitleRecord] = {}
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key(collection_type: CollectionType, identity: ParsedIdentity) -> Hashable:
        if identity.tmdb_id is not None:
            return (collection_type.value, "tmdb", identity.tmdb_id)
        return (collection_type.value, identity.title.lower(), identity.year)

    def __len__(self) -> int:
        return len(self._entries)

    async def get_or_lookup(
        self, key: Hashable, lookup: Callable[[], Awaitable[TitleRecord]]
    ) -> TitleRecord:
        """Return the cached record for ``key`` or run ``lookup`` once."""
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        record = await lookup()
        self._entries[key] = record
        return record


class CollectionRunner:
    """Reconciles one collection type against the catalog."""

    def __init__(
        self,
        provider: MetadataProvider,
        catalog: CatalogBackend,
        probe: Probe | ProbeCache,
        *,
        rename: bool = False,
        current_year: int | None = None,
        logger: Any = None,
        ui: Console | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            provider: Metadata provider used for title and episode lookups
            catalog: Catalog store holding known paths
            probe: Technical probe (wrapped in a ProbeCache if needed)
            rename: Move added files to their canonical name
            current_year: Reference year for year detection (defaults to today)
            logger: Optional structlog logger instance
            ui: Optional Rich console for progress output
        """
        self._provider = provider
        self._catalog = catalog
        self._probe = probe if isinstance(probe, ProbeCache) else ProbeCache(probe)
        self._rename = rename
        self._current_year = current_year
        self._logger = logger or structlog.get_logger(__name__)
        self._ui = ui or Console(stderr=True)

    async def run(
        self, collection_type: CollectionType | str, roots: Sequence[Path | str]
    ) -> RunSummary:
        """Reconcile ``roots`` against the catalog for one collection type.

        Args:
            collection_type: 'movie' or 'tv'
            roots: Collection root directories

        Returns:
            RunSummary with per-path outcomes

        Raises:
            ConfigurationError: If no root is given or any root is unreadable
        """
        kind = CollectionType(collection_type)
        if not roots:
            raise ConfigurationError(f"No input roots configured for {kind.value}")
        validated = [validate_root(Path(root)) for root in roots]

        scanned: list[str] = []
        for root in validated:
            scanned.extend(str(path) for path in list_video_files(root))

        known = await self._catalog.list_paths(kind)
        actions = reconcile(scanned, known)
        widths = self._episode_widths(kind, dict.fromkeys(scanned))
        titles = TitleCache()

        log = self._logger.bind(collection_type=kind.value)
        summary = RunSummary(collection_type=kind)

        with self._create_progress() as progress:
            task = progress.add_task(f"Reconcile {kind.value}", total=len(actions))
            for path, action in actions.items():
                outcome = await self._process(kind, path, action, titles, widths, log)
                summary.items.append(outcome)
                self._count(summary, outcome)
                progress.advance(task)

        log.info(
            "reconcile.summary",
            added=summary.added,
            deleted=summary.deleted,
            skipped=summary.skipped,
            failed=summary.failed,
            renamed=summary.renamed,
            title_lookups=titles.misses,
        )
        return summary

    def _create_progress(self) -> Progress:
        """Create Rich progress display."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self._ui,
            transient=True,
        )

    @staticmethod
    def _count(summary: RunSummary, outcome: ItemOutcome) -> None:
        if outcome.status == "added":
            summary.added += 1
        elif outcome.status == "deleted":
            summary.deleted += 1
        elif outcome.status == "failed":
            summary.failed += 1
        else:
            summary.skipped += 1
        if outcome.renamed:
            summary.renamed += 1

    def _episode_widths(
        self, kind: CollectionType, paths: Iterable[str]
    ) -> dict[Hashable, tuple[int, int]]:
        """Season/episode padding per show from every file found on disk."""
        if kind != CollectionType.TV:
            return {}

        seasons: dict[Hashable, list[str]] = {}
        episodes: dict[Hashable, list[str]] = {}
        for path in paths:
            identity = parse_filename(
                Path(path).name, kind, current_year=self._current_year
            )
            if not identity.is_episode:
                continue
            key = show_key(identity)
            seasons.setdefault(key, []).append(identity.season or "")
            episodes.setdefault(key, []).append(identity.episode or "")

        return {
            key: (episode_padding(seasons[key]), episode_padding(episodes[key]))
            for key in seasons
        }

    async def _process(
        self,
        kind: CollectionType,
        path: str,
        action: InventoryAction,
        titles: TitleCache,
        widths: dict[Hashable, tuple[int, int]],
        log: Any,
    ) -> ItemOutcome:
        if action == InventoryAction.SKIP:
            return ItemOutcome(path=path, action=action, status="skipped")

        if action == InventoryAction.DELETE:
            try:
                await self._catalog.delete(path)
            except PersistenceFailure as exc:
                log.warning("runner.delete.failed", **exc.to_dict())
                return ItemOutcome(
                    path=path, action=action, status="failed", reason=str(exc)
                )
            log.info("runner.deleted", path=path)
            return ItemOutcome(path=path, action=action, status="deleted")

        try:
            return await self._add(kind, Path(path), titles, widths, log)
        except (LookupFailure, PersistenceFailure) as exc:
            log.warning("runner.add.failed", **{"path": path, **exc.to_dict()})
            return ItemOutcome(path=path, action=action, status="failed", reason=str(exc))
        except Exception as exc:  # noqa: BLE001 - one file must not abort the batch
            log.exception("runner.add.crashed", path=path)
            return ItemOutcome(path=path, action=action, status="failed", reason=str(exc))

    async def _lookup_title(
        self, kind: CollectionType, identity: ParsedIdentity
    ) -> TitleRecord:
        if identity.tmdb_id is not None:
            return await self._provider.lookup_by_id(identity.tmdb_id, kind)
        return await self._provider.lookup_by_title(
            kind,
            identity.title,
            identity.year,
            season=identity.season,
            episode=identity.episode,
        )

    async def _add(
        self,
        kind: CollectionType,
        path: Path,
        titles: TitleCache,
        widths: dict[Hashable, tuple[int, int]],
        log: Any,
    ) -> ItemOutcome:
        identity = parse_filename(path.name, kind, current_year=self._current_year)
        if kind == CollectionType.TV and not identity.is_episode:
            raise LookupFailure(path.name, "no season/episode in filename", True)
        if not identity.title and identity.tmdb_id is None:
            raise LookupFailure(path.name, "no title could be parsed", True)

        title = await titles.get_or_lookup(
            TitleCache.key(kind, identity), lambda: self._lookup_title(kind, identity)
        )

        episode: EpisodeRecord | None = None
        if kind == CollectionType.TV:
            episode = await self._provider.lookup_episode(
                title.id, identity.season or "", identity.episode or ""
            )

        size = path.stat().st_size
        attributes = await self._probe.resolve(path, size)
        origin = classify_origin(path)
        group = detect_release_group(path.name)
        year = title.release_year or identity.year
        season_width, episode_width = widths.get(
            show_key(identity), (MIN_NUMBER_WIDTH, MIN_NUMBER_WIDTH)
        )

        target = build_canonical_name(
            kind,
            identity,
            origin,
            attributes,
            title.name,
            extension=path.suffix,
            tmdb_id=title.id,
            year=year,
            episode_title=episode.name if episode else None,
            group=group,
            season_width=season_width,
            episode_width=episode_width,
        )

        final_path = path
        renamed = False
        if self._rename:
            moved = move_file(path, path.with_name(target))
            if moved.status == "failed" or moved.status == "skipped_collision":
                log.warning(
                    "runner.move.skipped", path=str(path), target=target, reason=moved.reason
                )
            final_path = moved.final_path
            renamed = moved.moved

        record = CatalogRecord(
            collection_type=kind,
            absolute_path=final_path,
            file_name=final_path.name,
            file_extension=final_path.suffix.lstrip("."),
            name=identity.title or title.name,
            source_type=origin.source_type.label,
            source=origin.streaming_service,
            group_name=group,
            tmdb_id=title.id,
            release_year=year,
            file_size=size,
            release_date=title.release_date,
            tmdb_name=title.name,
            tmdb_description=title.description,
            season_number=identity.season,
            episode_number=identity.episode,
            episode_name=episode.name if episode else None,
            episode_overview=episode.overview if episode else None,
            resolution=attributes.resolution,
            hdr_format=attributes.hdr_format,
            video_codec=attributes.video_codec,
            audio_codec=attributes.audio_codec,
            audio_channels=attributes.audio_channels,
        )
        try:
            await self._catalog.insert(record)
        except PersistenceFailure:
            # Leave the file where it was found when it cannot be catalogued
            if renamed:
                restored = move_file(final_path, path)
                log.warning(
                    "runner.move.reverted",
                    path=str(path),
                    target=target,
                    status=restored.status,
                    reason=restored.reason,
                )
            raise

        log.info("runner.added", path=str(path), target=target, renamed=renamed)
        return ItemOutcome(
            path=str(path),
            action=InventoryAction.ADD,
            status="added",
            target=target,
            renamed=renamed,
        )
