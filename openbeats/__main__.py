"""Command line entry point: python -m openbeats {search,resolve,play}"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .config.config import config
from .core.container import ServiceContainer
from .domain.entities.track import Track
from .domain.valueobjects.source_type import SourceType
from .utils.events import PlaybackEvent, PlaybackEvents
from .utils.exceptions import OpenBeatsException
from .pkg.logger import setup_logger

logger = setup_logger(config.APP_NAME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="openbeats", description="Multi-catalog music streaming core")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search the configured catalogs")
    search.add_argument("query")
    search.add_argument("--sources", help="Comma-separated sources (default: %(default)s)",
                        default=",".join(config.DEFAULT_SOURCES))
    search.add_argument("--limit", type=int, default=config.SEARCH_LIMIT)

    resolve = sub.add_parser("resolve", help="Resolve a track to a stream URL")
    resolve.add_argument("source", choices=[s.value for s in SourceType])
    resolve.add_argument("track_id")

    play = sub.add_parser("play", help="Resolve and play a track through ffplay")
    play.add_argument("source", choices=[s.value for s in SourceType])
    play.add_argument("track_id")
    play.add_argument("--volume", type=int, default=config.DEFAULT_VOLUME)

    return parser


async def run_search(container: ServiceContainer, query: str, sources: List[str], limit: int) -> int:
    tracks = await container.search_service.search(query, sources=sources, limit=limit)
    if not tracks:
        print("No results")
        return 1
    for track in tracks:
        print(f"{track.source.value:8} {track.source_track_id:24} {track.duration_formatted:>8}  {track.display_name}")
    return 0


async def run_resolve(container: ServiceContainer, source: str, track_id: str) -> int:
    try:
        resolution = await container.resolver.resolve(source, track_id)
    except OpenBeatsException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    label = "degraded" if resolution.is_degraded else f"via {resolution.backend}"
    print(f"{resolution.url}  ({label})")
    return 0


async def run_play(container: ServiceContainer, source: str, track_id: str, volume: int) -> int:
    if not await container.initialize():
        return 1

    finished = asyncio.Event()

    async def on_stopped(event: PlaybackEvent):
        finished.set()

    await container.event_bus.subscribe(PlaybackEvents.PLAYBACK_STOPPED, on_stopped)

    session = container.playback_session
    track = Track.create(source=SourceType.parse(source), source_track_id=track_id, title=track_id)
    await session.set_volume(volume)
    try:
        resolution = await session.play_from(track)
    except OpenBeatsException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if resolution.is_degraded:
        print(f"Not playable here, open externally: {resolution.url}")
        return 0

    print(f"Playing {track.id} via {resolution.backend} (Ctrl+C to stop)")
    await finished.wait()
    return 0


async def main_async(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    container = ServiceContainer.create()
    try:
        if args.command == "search":
            sources = [s for s in args.sources.split(",") if s.strip()]
            return await run_search(container, args.query, sources, args.limit)
        if args.command == "resolve":
            return await run_resolve(container, args.source, args.track_id)
        return await run_play(container, args.source, args.track_id, args.volume)
    finally:
        await container.shutdown()


def main():
    try:
        sys.exit(asyncio.run(main_async()))
    except KeyboardInterrupt:
        logger.info("🛑 Stopped by user")


if __name__ == "__main__":
    main()
