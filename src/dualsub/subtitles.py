"""
Subtitle track module: SRT parsing, time shifting and SRT export.
"""
import io
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional
import pysrt

from .encoding import decode_bytes
from .errors import EmptyTrack, MalformedHeader
from .logging import get_logger
from .timecode import parse_time


TIME_SEPARATOR = "-->";


class SubtitleEntry:
    """Represents a single subtitle entry with timing and text."""

    def __init__( self, index: int, start: float, stop: float, text: str ):
        self.index = index;  # Sequence number from the source file
        self.start = start;  # Start time in seconds
        self.stop = stop;    # Stop time in seconds
        self.text = text;    # Lines joined with "\n"

    def copy( self ) -> "SubtitleEntry":
        return SubtitleEntry( self.index, self.start, self.stop, self.text );

    def __eq__( self, other ):
        if not isinstance( other, SubtitleEntry ):
            return NotImplemented;
        return ( self.index, self.start, self.stop, self.text ) == ( other.index, other.start, other.stop, other.text );

    def __repr__( self ):
        return f"SubtitleEntry(index={self.index}, start={self.start:.2f}s, stop={self.stop:.2f}s, text='{self.text[:30]}')";


class SubtitleTrack:
    """
    Ordered list of subtitle entries read from one SRT file.

    Entries stay in file order, which is not necessarily time order.
    """

    def __init__( self, name: str = "track", entries: Optional[List[SubtitleEntry]] = None ):
        self.name = name;
        self.entries: List[SubtitleEntry] = list( entries ) if entries else [];

    def __len__( self ) -> int:
        return len( self.entries );

    def __iter__( self ) -> Iterator[SubtitleEntry]:
        return iter( self.entries );

    def __getitem__( self, position: int ) -> SubtitleEntry:
        return self.entries[position];

    def append( self, entry: SubtitleEntry ):
        self.entries.append( entry );

    def copy( self ) -> "SubtitleTrack":
        """Deep copy so that shifting the copy leaves this track alone."""
        return SubtitleTrack( self.name, [ entry.copy() for entry in self.entries ] );

    def is_time_sorted( self ) -> bool:
        return all( a.start <= b.start for a, b in zip( self.entries, self.entries[1:] ) );

    def sorted_by_start( self ) -> "SubtitleTrack":
        """Return a copy sorted by start time (stable)."""
        return SubtitleTrack( self.name, sorted( ( entry.copy() for entry in self.entries ), key=lambda e: e.start ) );

    def get_track_stats( self ) -> Dict:
        """Get statistics about the track."""
        if not self.entries:
            return {};

        return {
            'name': self.name,
            'total_entries': len( self.entries ),
            'first_start': min( entry.start for entry in self.entries ),
            'last_stop': max( entry.stop for entry in self.entries ),
        };

    def __repr__( self ):
        return f"SubtitleTrack(name='{self.name}', entries={len( self.entries )})";


def _clean_lines( stream: Iterable[str] ) -> Iterator[str]:
    """Strip line terminators (CRLF included) and a leading BOM."""
    for number, line in enumerate( stream ):
        line = line.rstrip( "\r\n" );
        if number == 0:
            line = line.lstrip( "\ufeff" );
        yield line;


def parse_track( stream: Iterable[str], name: str = "track" ) -> SubtitleTrack:
    """
    Parse SRT blocks from a line stream into a SubtitleTrack.

    Each block is an index line, a "<start> --> <stop>" line and one or
    more text lines, terminated by a blank line or the end of the stream.
    A blank or missing index line ends the track.

    Args:
        stream: Open text file, StringIO or any iterable of lines
        name: Track name used in log and error messages

    Returns:
        SubtitleTrack with entries in file order

    Raises:
        MalformedHeader: A timing line is missing or has no '-->'
        MalformedTimestamp: A timestamp cannot be parsed
        EmptyTrack: No subtitle block was found
    """
    logger = get_logger();
    lines = _clean_lines( stream );
    track = SubtitleTrack( name );

    while True:
        index_line = next( lines, None );
        if index_line is None or not index_line.strip():
            break;

        record_number = len( track ) + 1;
        index_text = index_line.strip();
        if index_text.isdigit():
            index = int( index_text );
        else:
            logger.debug( f"{name}: non-numeric index '{index_text}', using {record_number}" );
            index = record_number;

        timing_line = next( lines, None );
        if timing_line is None or TIME_SEPARATOR not in timing_line:
            raise MalformedHeader( timing_line or "", record_number );

        start_text, stop_text = timing_line.split( TIME_SEPARATOR, 1 );
        # Anything after the stop time (SRT position coordinates) is ignored
        stop_tokens = stop_text.split();
        start = parse_time( start_text );
        stop = parse_time( stop_tokens[0] if stop_tokens else stop_text );

        text_lines = [];
        for line in lines:
            if not line.strip():
                break;
            text_lines.append( line );

        track.append( SubtitleEntry( index, start, stop, "\n".join( text_lines ) ) );

    if not track.entries:
        raise EmptyTrack( name );

    logger.debug( f"Parsed {len( track )} {name} subtitle entries" );
    return track;


def read_track( subtitle_file: Path, encoding: str = "utf-8", name: Optional[str] = None ) -> SubtitleTrack:
    """
    Read and parse an SRT file stored in the given encoding.

    Args:
        subtitle_file: Path to the SRT file
        encoding: Declared encoding of the file
        name: Track name, defaults to the file stem

    Returns:
        Parsed SubtitleTrack
    """
    subtitle_file = Path( subtitle_file );
    track_name = name or subtitle_file.stem;

    raw = subtitle_file.read_bytes();
    text = decode_bytes( raw, encoding );

    return parse_track( io.StringIO( text ), name=track_name );


def shift( track: SubtitleTrack, delta_seconds: float ) -> SubtitleTrack:
    """
    Add delta_seconds to the start and stop of every entry, in place.

    Negative results are kept as they are.
    """
    for entry in track.entries:
        entry.start += delta_seconds;
        entry.stop += delta_seconds;
    return track;


def _seconds_to_pysrt_time( seconds: float ) -> pysrt.SubRipTime:
    return pysrt.SubRipTime.from_ordinal( int( round( seconds * 1000 ) ) );


def save_track_srt( track: SubtitleTrack, output_file: Path, encoding: str = "utf-8" ) -> Path:
    """
    Write a track back to SRT, renumbering entries from 1.

    SRT cannot hold negative times, so those are clamped to zero in the
    written file only.

    Args:
        track: Track to export
        output_file: Destination path
        encoding: Output encoding

    Returns:
        Path of the written file
    """
    logger = get_logger();
    output_file = Path( output_file );

    subs = pysrt.SubRipFile();
    clamped = 0;

    for number, entry in enumerate( track.entries, 1 ):
        start = max( 0.0, entry.start );
        stop = max( 0.0, entry.stop );
        if start != entry.start or stop != entry.stop:
            clamped += 1;

        subs.append( pysrt.SubRipItem(
            index=number,
            start=_seconds_to_pysrt_time( start ),
            end=_seconds_to_pysrt_time( stop ),
            text=entry.text
        ) );

    if clamped:
        logger.warning( f"{clamped} {track.name} entries start before 0:00:00 and were clamped in {output_file.name}" );

    subs.save( str( output_file ), encoding=encoding );
    logger.info( f"Saved {track.name} subtitles: {output_file}" );

    return output_file;
