import os

import requests
import spotipy
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from plrip.constants import get_logger
from plrip.exceptions import PlaylistError

logger = get_logger("spotify")


class SpotifyClient:
    """Read-only Spotify access for public playlists (client credentials flow)."""

    def __init__(self, client_id: str | None = None, client_secret: str | None = None, client=None):
        if client is not None:
            self.client = client
            return
        self.client = spotipy.Spotify(
            auth_manager=SpotifyClientCredentials(
                client_id=client_id or os.environ.get("SPOTIFY_CLIENT_ID"),
                client_secret=client_secret or os.environ.get("SPOTIFY_CLIENT_SECRET"),
            )
        )

    def get_playlist_records(self, playlist: str) -> list[dict]:
        """Fetch ``{artist, name, url}`` records for every item of a playlist URL, URI or ID."""
        try:
            results = self.client.playlist_items(playlist, additional_types=("track",))
            records = self._extract_records(results)
            while results.get("next"):
                results = self.client.next(results)
                records.extend(self._extract_records(results))
        except (spotipy.SpotifyException, SpotifyOauthError, requests.RequestException) as e:
            raise PlaylistError(f"Could not fetch playlist {playlist}: {e}", details={"playlist": playlist})
        logger.info(f"Fetched {len(records)} tracks from Spotify playlist {playlist}")
        return records

    @staticmethod
    def _extract_records(results: dict) -> list[dict]:
        extracted: list[dict] = []
        for item in results.get("items", []):
            track = item.get("track") or {}
            artists = ", ".join(artist.get("name", "") for artist in track.get("artists", []) if artist.get("name"))
            extracted.append(
                {
                    "artist": artists,
                    "name": track.get("name") or "",
                    "url": (track.get("external_urls") or {}).get("spotify", ""),
                }
            )
        return extracted
