"""
Transport controller for Frequency

Pure transition functions over (PlaybackSession, Playlist) -> PlaybackSession.
The playlist argument is always the session's active playlist (or the target
playlist for play/select); the engine resolves it from the store.
"""

from typing import Optional

from loguru import logger

from frequency.domain.playlists.exceptions import TrackNotFoundError
from frequency.domain.playlists.models import Playlist

from .shuffle import RandomSource, generate_shuffle_queue
from .state import LoopMode, PlaybackSession, clamp_volume


def _queue_for(
    session: PlaybackSession, playlist: Optional[Playlist], rng: Optional[RandomSource]
) -> Optional[tuple[str, ...]]:
    if not session.shuffle_enabled:
        return None
    track_ids = playlist.track_ids if playlist is not None else []
    return generate_shuffle_queue(track_ids, rng)


def get_ordering(session: PlaybackSession, playlist: Playlist) -> list[str]:
    """
    Track ids in the order next/prev walk them.

    The shuffle queue when shuffling with a non-empty queue, otherwise the
    playlist's own order.
    """
    if session.shuffle_enabled and session.shuffle_queue:
        return list(session.shuffle_queue)
    return playlist.track_ids


def _index_in(ordering: list[str], track_id: Optional[str]) -> int:
    # Missing tracks count as "before the first element"
    try:
        return ordering.index(track_id)
    except ValueError:
        return -1


def play(
    session: PlaybackSession,
    playlist: Playlist,
    track_id: str,
    rng: Optional[RandomSource] = None,
) -> PlaybackSession:
    """
    Start playing a track of a playlist.

    Switching to a different playlist regenerates the shuffle queue when
    shuffle is on.

    Raises:
        TrackNotFoundError: If the track is not in the playlist
    """
    if playlist.find_track(track_id) is None:
        raise TrackNotFoundError(playlist.id, track_id)

    if playlist.id != session.active_playlist_id:
        session = session._replace(
            active_playlist_id=playlist.id,
            shuffle_queue=_queue_for(session, playlist, rng),
        )

    return session._replace(current_track_id=track_id, is_playing=True)


def pause(session: PlaybackSession) -> PlaybackSession:
    return session._replace(is_playing=False)


def _move_to(session: PlaybackSession, track_id: str) -> PlaybackSession:
    # Landing on the current track again replays it from the start
    epoch = session.restart_epoch
    if track_id == session.current_track_id:
        epoch += 1
    return session._replace(current_track_id=track_id, is_playing=True, restart_epoch=epoch)


def next_track(session: PlaybackSession, playlist: Optional[Playlist]) -> PlaybackSession:
    """
    Advance to the next track in the current ordering.

    Past the end, loop ALL wraps to the first track; any other mode stops
    playback and keeps the current track selected.
    """
    if playlist is None or not playlist.tracks:
        return session._replace(is_playing=False)

    ordering = get_ordering(session, playlist)
    index = _index_in(ordering, session.current_track_id) + 1

    if index >= len(ordering):
        if session.loop_mode == LoopMode.ALL:
            index = 0
        else:
            logger.debug("Reached end of ordering, stopping")
            return session._replace(is_playing=False)

    return _move_to(session, ordering[index])


def prev_track(session: PlaybackSession, playlist: Optional[Playlist]) -> PlaybackSession:
    """
    Step back to the previous track in the current ordering.

    Before the first track this always wraps to the last one, whatever the
    loop mode. next_track() only wraps under loop ALL.
    """
    if playlist is None or not playlist.tracks:
        return session._replace(is_playing=False)

    ordering = get_ordering(session, playlist)
    index = _index_in(ordering, session.current_track_id) - 1

    if index < 0:
        index = len(ordering) - 1

    return _move_to(session, ordering[index])


def on_ended(session: PlaybackSession, playlist: Optional[Playlist]) -> PlaybackSession:
    """
    React to the current track finishing naturally.

    Loop ONE replays the same track from the start; otherwise behaves as next.
    """
    if (
        session.loop_mode == LoopMode.ONE
        and playlist is not None
        and playlist.find_track(session.current_track_id) is not None
    ):
        return session._replace(
            is_playing=True, restart_epoch=session.restart_epoch + 1
        )
    return next_track(session, playlist)


def set_volume(session: PlaybackSession, value: float) -> PlaybackSession:
    return session._replace(volume=clamp_volume(value))


def cycle_loop_mode(session: PlaybackSession) -> PlaybackSession:
    return session._replace(loop_mode=session.loop_mode.cycle())


def toggle_shuffle(
    session: PlaybackSession,
    playlist: Optional[Playlist],
    rng: Optional[RandomSource] = None,
) -> PlaybackSession:
    """Flip shuffle. Turning it on generates a fresh queue; off drops it."""
    enabled = not session.shuffle_enabled
    session = session._replace(shuffle_enabled=enabled)
    return session._replace(shuffle_queue=_queue_for(session, playlist, rng))


def select_playlist(
    session: PlaybackSession,
    playlist: Optional[Playlist],
    rng: Optional[RandomSource] = None,
) -> PlaybackSession:
    """
    Make a playlist active without starting playback.

    Selecting another playlist clears the current track and pauses, since the
    current track belongs to the previous playlist. Passing None deselects.
    """
    new_id = playlist.id if playlist is not None else None
    if new_id == session.active_playlist_id:
        return session
    return session._replace(
        active_playlist_id=new_id,
        current_track_id=None,
        is_playing=False,
        shuffle_queue=_queue_for(session, playlist, rng),
    )


def regenerate_queue(
    session: PlaybackSession,
    playlist: Optional[Playlist],
    rng: Optional[RandomSource] = None,
) -> PlaybackSession:
    """Rebuild the shuffle queue from the active playlist (no-op if shuffle off)."""
    return session._replace(shuffle_queue=_queue_for(session, playlist, rng))


def reconcile(
    session: PlaybackSession,
    playlist: Optional[Playlist],
    rng: Optional[RandomSource] = None,
) -> PlaybackSession:
    """
    Repair a session after its active playlist changed underneath it.

    - a current track that no longer exists is cleared and playback stops
    - a shuffle queue whose track set no longer matches is regenerated

    Args:
        session: Session to repair
        playlist: The active playlist as it is now (None if it was deleted)
        rng: Random source for queue regeneration
    """
    if playlist is None:
        if session.active_playlist_id is not None or session.current_track_id is not None:
            session = session._replace(
                active_playlist_id=None, current_track_id=None, is_playing=False
            )
        return regenerate_queue(session, None, rng) if session.shuffle_enabled else session

    if (
        session.current_track_id is not None
        and playlist.find_track(session.current_track_id) is None
    ):
        logger.debug(f"Current track {session.current_track_id} was removed, stopping")
        session = session._replace(current_track_id=None, is_playing=False)

    if session.shuffle_enabled:
        queue = session.shuffle_queue or ()
        if len(queue) != len(playlist.tracks) or set(queue) != set(playlist.track_ids):
            session = regenerate_queue(session, playlist, rng)

    return session
