"""
Playback engine for Frequency

The engine is the explicit session handle. It owns the playlist store and
the live PlaybackSession, routes every mutation through the store or the
transport functions, repairs the session after store changes, persists, and
drives the sink binding.
"""

import sqlite3
import threading
from typing import TYPE_CHECKING, Callable, Optional

from loguru import logger

from frequency.domain.playlists.exceptions import PlaylistNotFoundError
from frequency.domain.playlists.models import Playlist, Track
from frequency.domain.playlists.store import PlaylistStore

from . import transport
from .shuffle import RandomSource
from .sink import SinkBinding, SinkCommand, TrackFinished
from .state import PlaybackSession, PlaybackSettings, check_session

if TYPE_CHECKING:
    from frequency.domain.playlists.persistence import PersistenceGateway


def desired_sink_state(session: PlaybackSession, store: PlaylistStore) -> SinkCommand:
    """Compute what the audio output should be doing for this session."""
    playlist = store.find(session.active_playlist_id)
    track = playlist.find_track(session.current_track_id) if playlist else None
    if track is None:
        return SinkCommand(volume=session.volume)
    return SinkCommand(
        track_id=track.id,
        url=track.url,
        volume=session.volume,
        is_playing=session.is_playing,
        restart_epoch=session.restart_epoch,
    )


class PlaybackEngine:
    """Owns the playlist store and the playback session."""

    def __init__(
        self,
        store: Optional[PlaylistStore] = None,
        session: Optional[PlaybackSession] = None,
        gateway: Optional["PersistenceGateway"] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.store = store if store is not None else PlaylistStore()
        self.gateway = gateway
        self.rng = rng
        self.binding: Optional[SinkBinding] = None
        self._lock = threading.RLock()
        initial = session if session is not None else PlaybackSession()
        self._session = transport.reconcile(
            initial, self.store.find(initial.active_playlist_id), rng
        )
        check_session(self._session, self.active_playlist)

    @classmethod
    def from_gateway(
        cls, gateway: "PersistenceGateway", rng: Optional[RandomSource] = None
    ) -> "PlaybackEngine":
        """
        Start-up engine: stored playlists and settings, paused, no current track.

        The first playlist (if any) is selected so the shell has something to
        show, matching the behaviour after deleting the active playlist.
        """
        store = PlaylistStore(gateway.load_playlists())
        session = PlaybackSession.from_settings(gateway.load_settings())
        first = store.first()
        if first is not None:
            session = transport.select_playlist(session, first, rng)
        logger.info(
            f"Engine started with {len(store)} playlists "
            f"(volume={session.volume}, loop={session.loop_mode.value}, "
            f"shuffle={session.shuffle_enabled})"
        )
        return cls(store=store, session=session, gateway=gateway, rng=rng)

    # Queries

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def session(self) -> PlaybackSession:
        return self._session

    @property
    def active_playlist(self) -> Optional[Playlist]:
        return self.store.find(self._session.active_playlist_id)

    @property
    def current_track(self) -> Optional[Track]:
        playlist = self.active_playlist
        return playlist.find_track(self._session.current_track_id) if playlist else None

    def snapshot_settings(self) -> PlaybackSettings:
        return self._session.settings

    # Sink

    def attach_sink(self, binding: SinkBinding) -> None:
        with self._lock:
            self.binding = binding
            binding.apply(desired_sink_state(self._session, self.store))

    def tick(self) -> Optional[TrackFinished]:
        """Poll the sink once and react to a finished track. Returns the event.

        The poll runs outside the engine lock so a slow audio output never
        blocks commands; handle_event() drops the event if the session moved on.
        """
        binding = self.binding
        if binding is None:
            return None
        event = binding.poll()
        if event is not None:
            self.handle_event(event)
        return event

    def handle_event(self, event: TrackFinished) -> None:
        """Apply a sink message. Events about a track that is no longer current are dropped."""
        with self._lock:
            session = self._session
            if event.track_id != session.current_track_id or (
                event.restart_epoch != session.restart_epoch
            ):
                logger.debug(f"Ignoring stale finish event for track {event.track_id}")
                return
            self.on_ended()

    # Playlist operations

    def create_playlist(self, title: str) -> Playlist:
        with self._lock:
            playlist = self.store.create_playlist(title)
            self._after_store_change()
            return playlist

    def delete_playlist(self, playlist_id: str) -> Playlist:
        """Delete a playlist. Deleting the active one selects the first remaining."""
        with self._lock:
            removed = self.store.delete_playlist(playlist_id)
            if self._session.active_playlist_id == playlist_id:
                replacement = self.store.first()
                session = self._session._replace(
                    active_playlist_id=replacement.id if replacement else None,
                    current_track_id=None,
                    is_playing=False,
                )
                self._commit(transport.regenerate_queue(session, replacement, self.rng))
            self._after_store_change()
            return removed

    def select_playlist(self, playlist_id: Optional[str]) -> Optional[Playlist]:
        """Make a playlist active (None deselects). Playback stops on a switch."""
        with self._lock:
            playlist = self.store.get(playlist_id) if playlist_id is not None else None
            self._commit(transport.select_playlist(self._session, playlist, self.rng))
            return playlist

    def rename_playlist(self, playlist_id: str, title: str) -> Playlist:
        with self._lock:
            playlist = self.store.rename_playlist(playlist_id, title)
            self._after_store_change()
            return playlist

    def add_track(self, playlist_id: str, track: Track) -> Playlist:
        with self._lock:
            playlist = self.store.add_track(playlist_id, track)
            self._after_store_change()
            return playlist

    def add_tracks(self, playlist_id: str, tracks: list[Track]) -> Playlist:
        """Add several tracks at once; all or none are added."""
        with self._lock:
            snapshot = self.store.playlists
            try:
                for track in tracks:
                    playlist = self.store.add_track(playlist_id, track)
            except Exception:
                self.store.replace_all(snapshot)
                raise
            if not tracks:
                playlist = self.store.get(playlist_id)
            self._after_store_change()
            return playlist

    def remove_track(self, playlist_id: str, track_id: str) -> Playlist:
        """Remove a track. Removing the current track stops playback."""
        with self._lock:
            playlist = self.store.remove_track(playlist_id, track_id)
            self._after_store_change()
            return playlist

    def rename_track(self, playlist_id: str, track_id: str, title: str) -> Playlist:
        with self._lock:
            playlist = self.store.rename_track(playlist_id, track_id, title)
            self._after_store_change()
            return playlist

    def reorder_tracks(self, playlist_id: str, new_order: list[str]) -> Playlist:
        """Reorder a playlist. The shuffle queue is kept as it is."""
        with self._lock:
            playlist = self.store.reorder_tracks(playlist_id, new_order)
            self._after_store_change()
            return playlist

    def move_track(self, playlist_id: str, track_id: str, position: int) -> Playlist:
        with self._lock:
            playlist = self.store.move_track(playlist_id, track_id, position)
            self._after_store_change()
            return playlist

    # Transport operations

    def play(self, track_id: str, playlist_id: Optional[str] = None) -> None:
        """Play a track of a playlist (default: the active playlist)."""
        with self._lock:
            target_id = playlist_id if playlist_id is not None else self._session.active_playlist_id
            if target_id is None:
                raise PlaylistNotFoundError("(none)", "No playlist selected")
            playlist = self.store.get(target_id)
            self._commit(transport.play(self._session, playlist, track_id, self.rng))

    def pause(self) -> None:
        with self._lock:
            self._commit(transport.pause(self._session))

    def resume(self) -> None:
        """Continue the current track, or start the ordering from its first track."""
        with self._lock:
            playlist = self.active_playlist
            if playlist is None or not playlist.tracks:
                self._commit(transport.pause(self._session))
                return
            track_id = self._session.current_track_id
            if track_id is None:
                track_id = transport.get_ordering(self._session, playlist)[0]
            self._commit(transport.play(self._session, playlist, track_id, self.rng))

    def next(self) -> None:
        with self._lock:
            self._commit(transport.next_track(self._session, self.active_playlist))

    def prev(self) -> None:
        with self._lock:
            self._commit(transport.prev_track(self._session, self.active_playlist))

    def on_ended(self) -> None:
        with self._lock:
            self._commit(transport.on_ended(self._session, self.active_playlist))

    def set_volume(self, value: float) -> float:
        with self._lock:
            self._commit(transport.set_volume(self._session, value), settings_changed=True)
            return self._session.volume

    def toggle_loop(self) -> None:
        with self._lock:
            self._commit(transport.cycle_loop_mode(self._session), settings_changed=True)

    def toggle_shuffle(self) -> None:
        with self._lock:
            self._commit(
                transport.toggle_shuffle(self._session, self.active_playlist, self.rng),
                settings_changed=True,
            )

    # Internals

    def _after_store_change(self) -> None:
        self._persist(lambda gateway: gateway.save_playlists(self.store.playlists), "playlists")
        self._commit(transport.reconcile(self._session, self.active_playlist, self.rng))

    def _commit(self, session: PlaybackSession, settings_changed: bool = False) -> None:
        check_session(session, self.store.find(session.active_playlist_id))
        previous = self._session
        self._session = session
        if session != previous:
            logger.debug(f"Session: {previous} -> {session}")
        if settings_changed and session.settings != previous.settings:
            self._persist(lambda gateway: gateway.save_settings(session.settings), "settings")
        if self.binding is not None:
            self.binding.apply(desired_sink_state(session, self.store))

    def _persist(self, write: Callable[["PersistenceGateway"], None], what: str) -> None:
        if self.gateway is None:
            return
        try:
            write(self.gateway)
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to save {what}: {e}")
