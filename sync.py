import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from plrip.clients.commands import CommandDownloader, CommandPlaylistSource, CommandResolver
from plrip.clients.spotify_client import SpotifyClient
from plrip.config import SyncConfig
from plrip.constants import get_logger, setup_logging
from plrip.exceptions import ConfigError, PlripError
from plrip.service import SyncService
from plrip.transcoder import FFmpegTranscoder

logger = get_logger("cli")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="plrip",
        description="Mirror a Spotify playlist into lossless-sourced WAV files via Tidal",
    )
    parser.add_argument("playlist", nargs="?", help="Spotify playlist URL or ID (env: PLRIP_PLAYLIST)")
    parser.add_argument("client_id", nargs="?", help="Spotify client ID (env: SPOTIFY_CLIENT_ID)")
    parser.add_argument("client_secret", nargs="?", help="Spotify client secret (env: SPOTIFY_CLIENT_SECRET)")
    parser.add_argument("output_dir", nargs="?", help="Existing output directory (env: PLRIP_OUTPUT_DIR)")
    parser.add_argument("--env-file", default=".env", help="Path to .env file with credentials")
    parser.add_argument("--once", action="store_true", help="Run a single sync pass and exit")
    parser.add_argument("--source", choices=["spotify", "command"], default="spotify", help="Where to read the playlist from")
    parser.add_argument("--playlist-command", help="Playlist command template ({playlist} {client_id} {client_secret})")
    parser.add_argument("--resolver-command", help="Resolver command template ({url})")
    parser.add_argument("--downloader-command", help="Downloader command template ({url} {output_dir})")
    parser.add_argument("--track-delay", type=float, help="Seconds to wait between tracks")
    parser.add_argument("--sync-interval", type=float, help="Seconds between playlist syncs")
    parser.add_argument("--max-attempts", type=int, help="Tidal URL conversion attempts per track")
    parser.add_argument("--retry-delay", type=float, help="Seconds between conversion attempts")
    parser.add_argument("--command-timeout", type=float, help="Timeout in seconds for each external command")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    load_environment(args.env_file)

    args.playlist = args.playlist or os.environ.get("PLRIP_PLAYLIST")
    args.client_id = args.client_id or os.environ.get("SPOTIFY_CLIENT_ID")
    args.client_secret = args.client_secret or os.environ.get("SPOTIFY_CLIENT_SECRET")
    args.output_dir = args.output_dir or os.environ.get("PLRIP_OUTPUT_DIR")

    required = ["playlist", "output_dir"]
    if args.source == "spotify":
        required += ["client_id", "client_secret"]
    missing = [name for name in required if not getattr(args, name)]
    if missing:
        parser.error(f"missing required arguments: {', '.join(missing)}")
    return args


def load_environment(env_file: str) -> None:
    env_path = Path(env_file)
    if env_path.exists():
        load_dotenv(env_path)


def build_config(args: argparse.Namespace) -> SyncConfig:
    return SyncConfig.from_env(
        playlist=args.playlist,
        output_dir=args.output_dir,
        client_id=args.client_id,
        client_secret=args.client_secret,
        track_delay=args.track_delay,
        sync_interval=args.sync_interval,
        max_resolve_attempts=args.max_attempts,
        resolve_retry_delay=args.retry_delay,
        playlist_command=args.playlist_command,
        resolver_command=args.resolver_command,
        downloader_command=args.downloader_command,
        command_timeout=args.command_timeout,
    )


def build_service(args: argparse.Namespace, config: SyncConfig) -> SyncService:
    if args.source == "spotify":
        source = SpotifyClient(config.client_id, config.client_secret)
    else:
        source = CommandPlaylistSource(
            config.playlist_command, config.client_id, config.client_secret, config.command_timeout
        )

    resolver = CommandResolver(config.resolver_command, config.command_timeout)

    return SyncService(
        config,
        source=source,
        resolver=resolver,
        downloader=CommandDownloader(config.downloader_command, config.command_timeout),
        transcoder=FFmpegTranscoder(timeout=config.command_timeout),
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = build_config(args)
        config.validate()
        service = build_service(args, config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        if args.once:
            result = service.sync_pass()
            print(f"Sync completed: {result.summary()}")
            return 0 if not result.failed else 1
        service.run_forever()
    except PlripError as e:
        logger.error(f"Sync failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
