"""Command-line front end for the paper store and genre registry."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import logging.handlers
import sys
from collections.abc import Callable
from dataclasses import asdict
from pathlib import Path

import httpx
from platformdirs import user_config_dir

from paper_match.action_messages import (
    build_actionable_error,
    format_paper_count,
    format_paper_line,
)
from paper_match.config import (
    AppConfig,
    get_config_path,
    load_config,
    save_config,
    update_config,
)
from paper_match.errors import ValidationError
from paper_match.genres import GenreRegistry
from paper_match.library import filter_papers, sort_papers
from paper_match.models import (
    ARXIV_API_MAX_RESULTS_LIMIT,
    CONFIG_APP_NAME,
    LIBRARY_SORT_OPTIONS,
)
from paper_match.services.catalog_service import keyword_query
from paper_match.services.interfaces import AppServices, build_default_app_services
from paper_match.storage import JsonFileStore, KeyValueStore, MemoryStore
from paper_match.store import PaperStore

logger = logging.getLogger(__name__)

ServicesFactory = Callable[[AppConfig, httpx.AsyncClient], AppServices]


def _configure_logging(debug: bool, verbose: bool = False) -> None:
    """Configure logging.

    Silent by default. ``debug`` writes DEBUG records to a rotating file in
    the config directory; ``verbose`` writes INFO records to stderr.
    """
    if not debug and not verbose:
        logging.disable(logging.CRITICAL)
        return
    logging.disable(logging.NOTSET)

    if verbose:
        stream = logging.StreamHandler(sys.stderr)
        stream.setLevel(logging.INFO)
        stream.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logging.root.addHandler(stream)

    if debug:
        log_dir = Path(user_config_dir(CONFIG_APP_NAME))
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_dir / "debug.log",
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8",
        )
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(name)s %(levelname)s %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        logging.root.addHandler(handler)

    logging.root.setLevel(logging.DEBUG if debug else logging.INFO)


def _default_storage(config: AppConfig, ephemeral: bool) -> KeyValueStore:
    if ephemeral:
        return MemoryStore()
    return JsonFileStore(Path(config.data_dir) if config.data_dir else None)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paper-match",
        description="Discover arXiv papers by genre and keep a library of liked papers",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/paper-match/debug.log)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr")
    parser.add_argument(
        "--ephemeral",
        action="store_true",
        help="Keep genres and saved papers in memory only (nothing is written)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search arXiv (default: enabled genres)")
    search.add_argument("query", nargs="?", default=None, help="Raw arXiv query, e.g. cat:cs.AI")
    search.add_argument("--keyword", default=None, help="Search all fields for this text")
    search.add_argument(
        "--max-results",
        type=int,
        default=None,
        metavar="N",
        help=f"Results per search (1-{ARXIV_API_MAX_RESULTS_LIMIT}, default from config)",
    )
    search.add_argument(
        "--like",
        action="append",
        default=[],
        metavar="ID",
        help="Save a paper from these results (repeatable)",
    )

    surprise = commands.add_parser("surprise", help="Show papers from a random topic")
    surprise.add_argument("--like", action="append", default=[], metavar="ID")

    genres = commands.add_parser("genres", help="List and edit genres")
    genre_actions = genres.add_subparsers(dest="action", required=True)
    genre_actions.add_parser("list", help="List genres with their ids and state")
    genre_actions.add_parser("query", help="Print the composed search query")
    add = genre_actions.add_parser("add", help="Add a custom genre")
    add.add_argument("name")
    add.add_argument("query")
    remove = genre_actions.add_parser("remove", help="Remove a custom genre")
    remove.add_argument("genre_id")
    toggle = genre_actions.add_parser("toggle", help="Enable or disable a genre")
    toggle.add_argument("genre_id")

    saved = commands.add_parser("saved", help="Manage saved papers")
    saved_actions = saved.add_subparsers(dest="action", required=True)
    saved_list = saved_actions.add_parser("list", help="List saved papers")
    saved_list.add_argument("--filter", default="", help="Filter by title, author, or category")
    saved_list.add_argument("--sort", choices=LIBRARY_SORT_OPTIONS, default="date_added")
    saved_remove = saved_actions.add_parser("remove", help="Remove a saved paper")
    saved_remove.add_argument("paper_id")
    saved_read = saved_actions.add_parser("read", help="Mark a saved paper as read")
    saved_read.add_argument("paper_id")
    saved_read.add_argument("--unread", action="store_true", help="Mark as unread instead")

    translate = commands.add_parser("translate", help="Translate a saved paper")
    translate.add_argument("paper_id")

    config_cmd = commands.add_parser("config", help="Show or change settings")
    config_actions = config_cmd.add_subparsers(dest="action", required=True)
    config_actions.add_parser("show", help="Print the effective settings and the config path")
    config_set = config_actions.add_parser("set", help="Change one setting and save it")
    config_set.add_argument("key", help="Setting name, e.g. max_results")
    config_set.add_argument("value")

    return parser


def _print_results(store: PaperStore) -> None:
    state = store.state
    if state.error_message:
        print(state.error_message)
    if state.current_results:
        print(format_paper_count(len(state.current_results)))
    for index, paper in enumerate(state.current_results, start=1):
        saved = paper.with_flags(is_liked=store.is_saved(paper.id))
        print(format_paper_line(saved, index=index))


async def _like_from_results(store: PaperStore, paper_ids: list[str]) -> int:
    exit_code = 0
    results = {p.id: p for p in store.current_results}
    for paper_id in paper_ids:
        paper = results.get(paper_id)
        if paper is None:
            print(
                build_actionable_error(
                    f"save {paper_id}",
                    why="it is not in the current results",
                    next_step="use an id printed in the result list",
                ),
                file=sys.stderr,
            )
            exit_code = 1
            continue
        if await store.like(paper):
            print(f"Saved [{paper.id}] {paper.title}")
        else:
            print(f"Already saved [{paper.id}]")
    return exit_code


async def _run_search(args: argparse.Namespace, store: PaperStore, registry: GenreRegistry) -> int:
    if args.command == "surprise":
        await store.surprise_me()
    else:
        if args.keyword is not None:
            query = keyword_query(args.keyword)
        elif args.query:
            query = args.query
        else:
            query = registry.compose_query()
        logger.info("Searching arXiv for %r", query)
        await store.search(query)
    _print_results(store)
    return await _like_from_results(store, args.like)


def _run_genres(args: argparse.Namespace, registry: GenreRegistry) -> int:
    if args.action == "list":
        for genre in registry.genres:
            state = "on " if genre.is_enabled else "off"
            kind = "built-in" if genre.is_default else "custom"
            print(f"[{state}] {genre.id}  {genre.name} ({kind}): {genre.query}")
        return 0
    if args.action == "query":
        print(registry.compose_query())
        return 0
    if args.action == "add":
        genre = registry.add_custom_genre(args.name, args.query)
        print(f"Added {genre.name} ({genre.id})")
        return 0
    if args.action == "remove":
        if registry.remove_genre(args.genre_id):
            print(f"Removed {args.genre_id}")
            return 0
        print(
            build_actionable_error(
                f"remove {args.genre_id}",
                why="it is a built-in genre or does not exist",
                next_step="disable built-in genres with 'genres toggle' instead",
            ),
            file=sys.stderr,
        )
        return 1
    toggled = registry.toggle_genre(args.genre_id)
    if toggled is None:
        print(
            build_actionable_error(
                f"toggle {args.genre_id}",
                why="no genre has that id",
                next_step="run 'genres list' to see genre ids",
            ),
            file=sys.stderr,
        )
        return 1
    print(f"{toggled.name}: {'enabled' if toggled.is_enabled else 'disabled'}")
    return 0


async def _run_saved(args: argparse.Namespace, store: PaperStore) -> int:
    if args.action == "list":
        papers = sort_papers(filter_papers(store.saved_papers, args.filter), args.sort)
        if not papers:
            print("No saved papers" if not args.filter else "No saved papers match the filter")
            return 0
        print(format_paper_count(len(papers)))
        for index, paper in enumerate(papers, start=1):
            print(format_paper_line(paper, index=index))
        return 0

    paper = store.find_paper(args.paper_id)
    if paper is None or not store.is_saved(args.paper_id):
        print(
            build_actionable_error(
                f"find saved paper {args.paper_id}",
                next_step="run 'saved list' to see saved ids",
            ),
            file=sys.stderr,
        )
        return 1
    if args.action == "remove":
        await store.remove_saved(paper)
        print(f"Removed [{paper.id}]")
    else:
        await store.mark_read(paper.id, is_read=not args.unread)
        print(f"Marked [{paper.id}] as {'unread' if args.unread else 'read'}")
    return 0


async def _run_translate(args: argparse.Namespace, store: PaperStore) -> int:
    paper = store.find_paper(args.paper_id)
    if paper is None:
        print(
            build_actionable_error(
                f"translate {args.paper_id}",
                why="it is not in the saved papers",
                next_step="save it first with 'search --like ID'",
            ),
            file=sys.stderr,
        )
        return 1
    translated = await store.translate_paper(paper)
    print(translated.title)
    print()
    print(translated.abstract)
    return 0


def _run_config(
    args: argparse.Namespace,
    config: AppConfig,
    save_config_fn: Callable[[AppConfig], bool],
) -> int:
    if args.action == "show":
        print(f"# {get_config_path()}")
        print(json.dumps(asdict(config), indent=2, ensure_ascii=False))
        return 0
    try:
        updated = update_config(config, args.key, args.value)
    except ValidationError as e:
        print(
            build_actionable_error(
                f"set {args.key}",
                why=str(e),
                next_step="run 'config show' to see setting names and types",
            ),
            file=sys.stderr,
        )
        return 2
    if not save_config_fn(updated):
        print(
            build_actionable_error(
                f"save {args.key}",
                why="the config file could not be written",
                next_step="check permissions on the config directory",
            ),
            file=sys.stderr,
        )
        return 1
    print(f"{args.key} = {getattr(updated, args.key)}")
    return 0


async def _dispatch(
    args: argparse.Namespace,
    config: AppConfig,
    storage: KeyValueStore,
    services_factory: ServicesFactory,
) -> int:
    max_results = getattr(args, "max_results", None) or config.max_results
    max_results = max(1, min(max_results, ARXIV_API_MAX_RESULTS_LIMIT))

    async with httpx.AsyncClient() as client:
        services = services_factory(config, client)
        store = await PaperStore.create(
            services.catalog,
            storage,
            translation=services.translation,
            max_results=max_results,
            initial_search=False,
        )
        if args.command in ("search", "surprise"):
            registry = await asyncio.to_thread(GenreRegistry, storage)
            return await _run_search(args, store, registry)
        if args.command == "saved":
            return await _run_saved(args, store)
        return await _run_translate(args, store)


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], AppConfig] = load_config,
    storage_factory: Callable[[AppConfig, bool], KeyValueStore] = _default_storage,
    services_factory: ServicesFactory = build_default_app_services,
    configure_logging_fn: Callable[[bool, bool], None] = _configure_logging,
    save_config_fn: Callable[[AppConfig], bool] = save_config,
) -> int:
    """Main entry point. Returns exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging_fn(args.debug, args.verbose)
    logger.debug("paper-match starting, command=%s", args.command)

    config = load_config_fn()
    if args.command == "config":
        return _run_config(args, config, save_config_fn)
    storage = storage_factory(config, args.ephemeral)

    try:
        # The genre registry does blocking I/O, so genre commands run outside the loop.
        if args.command == "genres":
            return _run_genres(args, GenreRegistry(storage))
        return asyncio.run(_dispatch(args, config, storage, services_factory))
    except ValidationError as e:
        print(
            build_actionable_error(
                "add the genre" if args.command == "genres" else "run the search",
                why=str(e),
                next_step="provide non-empty values",
            ),
            file=sys.stderr,
        )
        return 2
    except KeyboardInterrupt:
        return 130


__all__ = [
    "_configure_logging",
    "_default_storage",
    "main",
]
