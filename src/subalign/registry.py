"""
JSON registry of per-episode subtitle offsets.

Layout::

    {
      "default": 0,
      "byEpisode":   {"s4e30": <jp offset ms>},
      "jpByEpisode": {"s4e30": <jp offset ms>},
      "enByEpisode": {"s4e30": <en offset ms>},
      "updatedAt": "2026-01-01T00:00:00+00:00"
    }

``byEpisode`` mirrors the JP offsets for consumers that only know one track.
"""
import json
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .backup import BackupManager
from .episodes import normalize_episode_token
from .logging import get_logger


def _number( value ):
    """JSON number or numeric string -> int/float; anything else -> 0."""
    try:
        number = float( value or 0 );
    except ( TypeError, ValueError ):
        return 0;
    if not math.isfinite( number ):
        return 0;
    return int( number ) if number.is_integer() else number;


def _copy_map( raw ) -> Dict[str, Any]:
    """Shallow copy of a per-episode map; entries are kept exactly as stored."""
    return dict( raw ) if isinstance( raw, dict ) else {};


class OffsetRegistry:
    """Load, update and save the offsets JSON file. Writes are always explicit."""

    def __init__( self, path: Path, backup_manager: BackupManager = None ):
        self.logger = get_logger();
        self.path = Path( path );
        self.backup_manager = backup_manager or BackupManager( self.path.parent / "backup" );
        self.default = 0;
        self.by_episode: Dict[str, Any] = {};
        self.jp_by_episode: Dict[str, Any] = {};
        self.en_by_episode: Dict[str, Any] = {};
        self.updated_at: Optional[str] = None;

    @classmethod
    def load( cls, path: Path, backup_manager: BackupManager = None ) -> "OffsetRegistry":
        """Read the registry; a missing file gives an empty registry."""
        registry = cls( path, backup_manager );
        if not registry.path.exists():
            return registry;

        with open( registry.path, "r", encoding="utf-8" ) as f:
            raw = json.load( f );
        if not isinstance( raw, dict ):
            raise ValueError( f"Offsets file must contain a JSON object: {registry.path}" );

        registry.default = _number( raw.get( "default" ) );
        registry.by_episode = _copy_map( raw.get( "byEpisode" ) );
        registry.jp_by_episode = _copy_map( raw.get( "jpByEpisode" ) );
        registry.en_by_episode = _copy_map( raw.get( "enByEpisode" ) );
        updated = raw.get( "updatedAt" );
        registry.updated_at = updated if isinstance( updated, str ) else None;
        return registry;

    def record( self, episode: str, jp_offset_ms: int = None, en_offset_ms: int = None ):
        """Set offsets for one episode; a None track keeps its previous value."""
        token = normalize_episode_token( episode );
        if not token:
            raise ValueError( f"Episode must look like s4e30, got: {episode}" );

        if jp_offset_ms is not None:
            self.by_episode[token] = int( jp_offset_ms );
            self.jp_by_episode[token] = int( jp_offset_ms );
        if en_offset_ms is not None:
            self.en_by_episode[token] = int( en_offset_ms );
        self.updated_at = datetime.now( timezone.utc ).isoformat();

    def offsets_for( self, episode: str ) -> Dict[str, Any]:
        """Offsets for one episode; unknown episodes get the default."""
        token = normalize_episode_token( episode ) or episode;
        fallback = self.by_episode.get( token, self.default );
        return {
            "jp": self.jp_by_episode.get( token, fallback ),
            "en": self.en_by_episode.get( token, self.default ),
        };

    def to_dict( self ) -> dict:
        return {
            "default": self.default,
            "byEpisode": dict( self.by_episode ),
            "jpByEpisode": dict( self.jp_by_episode ),
            "enByEpisode": dict( self.en_by_episode ),
            "updatedAt": self.updated_at,
        };

    def save( self ) -> Path:
        """Write the registry, backing up the previous version first."""
        if self.path.exists():
            self.backup_manager.create_backup( self.path );

        self.path.parent.mkdir( parents=True, exist_ok=True );
        with open( self.path, "w", encoding="utf-8" ) as f:
            json.dump( self.to_dict(), f, indent=2 );
            f.write( "\n" );
        self.logger.info( f"Saved offsets -> {self.path}" );
        return self.path;
