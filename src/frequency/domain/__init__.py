"""Domain layer: playlists, playback and track ingestion."""
