"""
Selection of the embedded subtitle stream used as timing ground truth.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .logging import get_logger


@dataclass( frozen=True )
class ReferenceStream:
    """Metadata of one embedded subtitle stream."""

    index: int;
    codec_name: str = "";
    language: str = "";
    title: str = "";
    disposition_default: int = 0;


FULL_DIALOGUE_RE = re.compile( r'full|dialog|subtitle|subtitles|complete|complet' );
SIGNS_SONGS_RE = re.compile( r'sign|song|forced' );


class ReferenceStreamSelector:
    """
    Score embedded subtitle streams and pick the most reliable dialogue track.

    English full-dialogue tracks win; signs/songs/forced tracks are pushed
    far down since they only cover a fraction of the spoken lines.
    """

    def __init__(
        self,
        language: str = "eng",
        language_bonus: int = 120,
        default_bonus: int = 20,
        full_title_bonus: int = 30,
        partial_title_penalty: int = 140,
        ass_bonus: int = 5
    ):
        self.logger = get_logger();
        self.language = language;
        self.language_bonus = language_bonus;
        self.default_bonus = default_bonus;
        self.full_title_bonus = full_title_bonus;
        self.partial_title_penalty = partial_title_penalty;
        self.ass_bonus = ass_bonus;

    def score_stream( self, stream: ReferenceStream ) -> int:
        title = ( stream.title or "" ).lower();
        score = 0;
        if ( stream.language or "" ).lower() == self.language:
            score += self.language_bonus;
        if stream.disposition_default:
            score += self.default_bonus;
        if FULL_DIALOGUE_RE.search( title ):
            score += self.full_title_bonus;
        if SIGNS_SONGS_RE.search( title ):
            score -= self.partial_title_penalty;
        if stream.codec_name == "ass":
            score += self.ass_bonus;
        return score;

    def rank( self, streams: Sequence[ReferenceStream] ) -> List[Tuple[ReferenceStream, int]]:
        return [ ( stream, self.score_stream( stream ) ) for stream in streams ];

    def select( self, streams: Sequence[ReferenceStream] ) -> Optional[ReferenceStream]:
        """Return the strictly highest-scoring stream (first wins ties), or None."""
        best = None;
        best_score = None;
        for stream, score in self.rank( streams ):
            self.logger.debug( f"Subtitle stream #{stream.index} ({stream.language or '?'}, '{stream.title}'): score {score}" );
            if best is None or score > best_score:
                best = stream;
                best_score = score;
        return best;
