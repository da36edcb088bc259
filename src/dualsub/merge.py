"""
Merge bottom and top tracks into lane-tagged entries and render them as ASS.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .subtitles import SubtitleTrack
from .timecode import format_time


class Lane( Enum ):
    """Screen lane of a merged entry; the value is its ASS style name."""

    BOTTOM = "Bottom";
    TOP = "Top";

    @property
    def style( self ) -> str:
        return self.value;


@dataclass
class MergedEntry:
    """Subtitle entry placed in a lane of the merged output."""

    lane: Lane;
    start: float;
    stop: float;
    text: str;


ASS_EOL = "\r\n";

ASS_HEADER = [
    "[Script Info]",
    "ScriptType: v4.00+",
    "Collisions: Normal",
    "PlayDepth: 0",
    "Timer: 100,0000",
    "Video Aspect Ratio: 0",
    "WrapStyle: 0",
    "ScaledBorderAndShadow: no",
    "",
    "[V4+ Styles]",
    "Format: Name,Fontname,Fontsize,PrimaryColour,SecondaryColour,OutlineColour,BackColour,Bold,Italic,Underline,StrikeOut,"
    "ScaleX,ScaleY,Spacing,Angle,BorderStyle,Outline,Shadow,Alignment,MarginL,MarginR,MarginV,Encoding",
    "Style: Top,Arial,16,&H00F9FFFF,&H00FFFFFF,&H00000000,&H00000000,-1,0,0,0,100,100,0,0,1,3,0,8,10,10,10,0",
    "Style: Bottom,Arial,16,&H00F9FFF9,&H00FFFFFF,&H00000000,&H00000000,-1,0,0,0,100,100,0,0,1,3,0,2,10,10,10,0",
    "",
    "[Events]",
    "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text",
];

# SRT inline tags and their ASS override equivalents
MARKUP_TAGS = {
    "<i>": r"{\i1}",
    "</i>": r"{\i0}",
    "<b>": r"{\b1}",
    "</b>": r"{\b0}",
    "<u>": r"{\u1}",
    "</u>": r"{\u0}",
};

MARKUP_PATTERN = re.compile( "|".join( re.escape( tag ) for tag in MARKUP_TAGS ), re.IGNORECASE );


def _lift( track: Optional[SubtitleTrack], lane: Lane ) -> List[MergedEntry]:
    if track is None:
        return [];
    return [ MergedEntry( lane, entry.start, entry.stop, entry.text ) for entry in track.entries ];


def merge( bottom: Optional[SubtitleTrack], top: Optional[SubtitleTrack] ) -> List[MergedEntry]:
    """
    Tag and combine both tracks, sorted by start time.

    The sort is stable over bottom entries followed by top entries, so equal
    start times keep file order within a lane and put bottom before top.
    Either track may be None.
    """
    entries = _lift( bottom, Lane.BOTTOM ) + _lift( top, Lane.TOP );
    entries.sort( key=lambda entry: entry.start );
    return entries;


def ass_text( text: str ) -> str:
    """Convert SRT text to an ASS event text: \\N line breaks and override tags."""
    text = text.replace( "\r\n", "\n" );
    text = text.replace( "\n", r"\N" );
    return MARKUP_PATTERN.sub( lambda match: MARKUP_TAGS[match.group( 0 ).lower()], text );


def dialogue_line( entry: MergedEntry ) -> str:
    return f"Dialogue: 0,{format_time( entry.start )},{format_time( entry.stop )}," \
           f"{entry.lane.style},,0000,0000,0000,,{ass_text( entry.text )}";


def render( entries: List[MergedEntry] ) -> str:
    """Render merged entries as a complete ASS document with CRLF line endings."""
    lines = list( ASS_HEADER );
    lines.extend( dialogue_line( entry ) for entry in entries );
    return ASS_EOL.join( lines ) + ASS_EOL;


def merge_and_render( bottom: Optional[SubtitleTrack], top: Optional[SubtitleTrack] ) -> str:
    return render( merge( bottom, top ) );
