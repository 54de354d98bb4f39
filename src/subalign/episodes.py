"""
Episode token normalization and per-episode file lookup.
"""
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple


EPISODE_RE = re.compile( r's\s*0*(\d{1,2})\s*e(?:p)?\s*0*(\d{1,3})', re.IGNORECASE );
TOKEN_RE = re.compile( r'^s(\d+)e(\d+)$', re.IGNORECASE );
LEADING_NUMBER_RE = re.compile( r'^\s*0*(\d{1,3})\b' );
EPISODE_WORD_RE = re.compile( r'\bepisode\s*0*(\d{1,3})\b', re.IGNORECASE );

VIDEO_EXTENSIONS = ( ".mkv", ".mp4", ".mov", ".webm" );
SUBTITLE_EXTENSIONS = ( ".ass", ".srt" );


def normalize_episode_token( value: str ) -> Optional[str]:
    """'S04E030', 's4 ep 30', 'Show.s04e30.1080p' -> 's4e30'; None when no token is found."""
    match = EPISODE_RE.search( str( value or "" ) );
    if not match:
        return None;
    return f"s{int( match.group( 1 ) )}e{int( match.group( 2 ) )}";


def parse_episode_tuple( token: str ) -> Optional[Tuple[int, int]]:
    """'s4e30' -> (4, 30)."""
    match = TOKEN_RE.match( str( token or "" ) );
    if not match:
        return None;
    return int( match.group( 1 ) ), int( match.group( 2 ) );


def list_media_files( root: Path, extensions: Iterable[str] ) -> List[Path]:
    """Files under ``root`` with one of ``extensions``, hidden paths skipped, sorted."""
    root = Path( root );
    if not root.exists():
        return [];

    extensions = tuple( ext.lower() for ext in extensions );
    files = [];
    for path in sorted( root.rglob( "*" ) ):
        if any( part.startswith( "." ) for part in path.relative_to( root ).parts ):
            continue;
        if path.is_file() and path.suffix.lower() in extensions:
            files.append( path );
    return files;


def find_episode_file( root: Path, episode: str, extensions: Iterable[str] ) -> Optional[Path]:
    """Find the first file under ``root`` whose name carries the given episode token."""
    for path in list_media_files( root, extensions ):
        if normalize_episode_token( path.stem ) == episode:
            return path;
    return None;


def parse_english_episode_index( path: Path ) -> Optional[int]:
    """
    Global episode number from names like '30 - Title' or 'Show Episode 30'.

    Names that already carry an sXeY token are not global-indexed.
    """
    stem = Path( path ).stem;
    if normalize_episode_token( stem ):
        return None;

    match = LEADING_NUMBER_RE.match( stem ) or EPISODE_WORD_RE.search( stem );
    if match:
        return int( match.group( 1 ) );
    return None;


def season_offsets_from_dir( subs_dir: Path ) -> Dict[int, int]:
    """
    Map each season to the number of episodes in all earlier seasons.

    Season lengths are the highest episode number found per season among
    the sXeY-named subtitle files in ``subs_dir``.
    """
    season_max: Dict[int, int] = {};
    for path in list_media_files( subs_dir, SUBTITLE_EXTENSIONS ):
        parsed = parse_episode_tuple( normalize_episode_token( path.stem ) );
        if not parsed:
            continue;
        season, episode = parsed;
        season_max[season] = max( season_max.get( season, 0 ), episode );

    offsets = {};
    total = 0;
    for season in sorted( season_max ):
        offsets[season] = total;
        total += season_max[season];
    return offsets;


def episode_global_index( episode: str, season_offsets: Dict[int, int] ) -> Optional[int]:
    parsed = parse_episode_tuple( episode );
    if not parsed or parsed[0] not in season_offsets:
        return None;
    return season_offsets[parsed[0]] + parsed[1];


def find_english_episode_file( en_dir: Path, episode: str, jp_dir: Path = None ) -> Optional[Path]:
    """
    Find the English subtitle file for ``episode``.

    1. A file whose name carries the sXeY token.
    2. Otherwise a globally numbered file ('30 - Title.ass'), where the
       global number is derived from the season layout of ``jp_dir``.
    """
    candidates = list_media_files( en_dir, SUBTITLE_EXTENSIONS );
    for path in candidates:
        if normalize_episode_token( path.stem ) == episode:
            return path;

    if jp_dir is None:
        return None;
    global_index = episode_global_index( episode, season_offsets_from_dir( jp_dir ) );
    if global_index is None:
        return None;

    for path in candidates:
        if parse_english_episode_index( path ) == global_index:
            return path;
    return None;
