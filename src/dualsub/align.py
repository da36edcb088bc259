"""
Time alignment between two subtitle tracks.

Two strategies compute the offset that must be added to a second track so
it lines up with a reference track:

- IndexSyncStrategy: one entry of each track is declared to start together.
- AutoSyncStrategy: brute-force grid search over candidate offsets,
  minimizing the symmetric alignment distance.
"""
import bisect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Tuple

from .errors import IndexOutOfRange
from .logging import get_logger
from .subtitles import SubtitleTrack


DEFAULT_SEARCH_RANGE = 10.0;  # seconds, both directions
DEFAULT_SEARCH_STEP = 0.05;   # seconds
DEFAULT_MATCH_WINDOW = 8.0;   # seconds, centered on the shifted start


def alignment_distance( reference: SubtitleTrack, other: SubtitleTrack, offset: float, window: float = DEFAULT_MATCH_WINDOW ) -> float:
    """
    Measure how badly `other` lines up with `reference` moved back by `offset`.

    Each reference entry is shifted by -offset and matched to the `other`
    entry with the closest start inside +/- window/2 of the shifted start.
    The distance sums |start difference| + |stop difference| over matched
    entries. Reference entries with nothing inside the window add zero:
    they are skipped, not penalized.

    `other` must be sorted by start time.

    Args:
        reference: Track whose entries are shifted
        other: Time-sorted track searched for matches
        offset: Candidate offset in seconds
        window: Width of the match window in seconds

    Returns:
        Accumulated distance in seconds
    """
    half_window = window * 0.5;
    other_starts = [ entry.start for entry in other.entries ];
    distance = 0.0;

    for entry in reference.entries:
        start = entry.start - offset;
        stop = entry.stop - offset;

        position = bisect.bisect_left( other_starts, start - half_window );
        closest = None;
        closest_gap = 0.0;

        while position < len( other_starts ) and other_starts[position] <= start + half_window:
            gap = abs( other_starts[position] - start );
            if closest is None or gap < closest_gap:
                closest = other.entries[position];
                closest_gap = gap;
            position += 1;

        if closest is not None:
            distance += abs( closest.start - start );
            distance += abs( closest.stop - stop );

    return distance;


@dataclass
class AlignmentResult:
    """Best offset found by the grid search."""

    offset: float;                # Seconds to add to the second track
    distance: float;              # Combined distance at that offset
    candidates_evaluated: int;    # Grid points tried

    def __repr__( self ):
        return f"AlignmentResult(offset={self.offset:+.2f}s, distance={self.distance:.1f}, " \
               f"candidates={self.candidates_evaluated})";


class AlignmentEngine:
    """
    Grid search for the offset that best superimposes two tracks.

    Candidates run from -search_range to +search_range in `step` increments.
    Each one is scored with the symmetric distance
    alignment_distance(reference, other, +offset) + alignment_distance(other, reference, -offset).
    The first strictly smallest score wins, so ties go to the most negative offset.
    """

    def __init__( self, search_range: float = DEFAULT_SEARCH_RANGE, step: float = DEFAULT_SEARCH_STEP, window: float = DEFAULT_MATCH_WINDOW ):
        if search_range < 0:
            raise ValueError( f"Search range must not be negative, got {search_range}" );
        if step <= 0:
            raise ValueError( f"Search step must be positive, got {step}" );
        if window <= 0:
            raise ValueError( f"Match window must be positive, got {window}" );

        self.logger = get_logger();
        self.search_range = search_range;
        self.step = step;
        self.window = window;

    def candidate_offsets( self ) -> List[float]:
        """Grid of candidate offsets in increasing order, both bounds included."""
        count = int( round( 2 * self.search_range / self.step ) );
        candidates = [ round( -self.search_range + i * self.step, 6 ) for i in range( count + 1 ) ];
        return [ offset for offset in candidates if offset <= self.search_range + 1e-9 ];

    def combined_distance( self, reference: SubtitleTrack, other: SubtitleTrack, offset: float ) -> Tuple[float, float]:
        """Return both directional distances for one candidate offset."""
        distance_a = alignment_distance( reference, other, offset, self.window );
        distance_b = alignment_distance( other, reference, -offset, self.window );
        return distance_a, distance_b;

    def _ensure_sorted( self, track: SubtitleTrack ) -> SubtitleTrack:
        if track.is_time_sorted():
            return track;
        self.logger.warning( f"{track.name} subtitles are not in time order, sorting a copy for alignment" );
        return track.sorted_by_start();

    def search( self, reference: SubtitleTrack, other: SubtitleTrack ) -> AlignmentResult:
        """
        Find the offset to add to `other` so it lines up with `reference`.

        Neither track is modified.

        Args:
            reference: Reference track (bottom)
            other: Track to be moved (top)

        Returns:
            AlignmentResult with the best offset and its distance
        """
        reference = self._ensure_sorted( reference );
        other = self._ensure_sorted( other );

        candidates = self.candidate_offsets();
        best_offset = 0.0;
        best_distance = float( 'inf' );

        for offset in candidates:
            distance_a, distance_b = self.combined_distance( reference, other, offset );
            self.logger.debug( f"  Attempting shift {offset:+6.2f} seconds... Distance: {distance_a:8.1f} | {distance_b:8.1f}" );

            if distance_a + distance_b < best_distance:
                best_distance = distance_a + distance_b;
                best_offset = offset;

        result = AlignmentResult( best_offset, best_distance, len( candidates ) );
        self.logger.info( f"Best shift found: {result.offset:+.2f} seconds (distance {result.distance:.2f})" );
        return result;


class OffsetStrategy( ABC ):
    """Computes the offset to add to `other` so it lines up with `reference`."""

    name = "offset";

    def __init__( self ):
        self.logger = get_logger();

    @abstractmethod
    def compute_offset( self, reference: SubtitleTrack, other: SubtitleTrack ) -> float:
        pass


class AutoSyncStrategy( OffsetStrategy ):
    """Offset from the grid search."""

    name = "auto";

    def __init__( self, engine: AlignmentEngine = None ):
        super().__init__();
        self.engine = engine or AlignmentEngine();
        self.last_result = None;

    def compute_offset( self, reference: SubtitleTrack, other: SubtitleTrack ) -> float:
        self.last_result = self.engine.search( reference, other );
        return self.last_result.offset;


class IndexSyncStrategy( OffsetStrategy ):
    """Offset that makes other[other_index] start with reference[reference_index]."""

    name = "index";

    def __init__( self, reference_index: int, other_index: int ):
        super().__init__();
        self.reference_index = reference_index;
        self.other_index = other_index;

    def compute_offset( self, reference: SubtitleTrack, other: SubtitleTrack ) -> float:
        if not 0 <= self.reference_index < len( reference ):
            raise IndexOutOfRange( self.reference_index, reference.name, len( reference ) );
        if not 0 <= self.other_index < len( other ):
            raise IndexOutOfRange( self.other_index, other.name, len( other ) );

        reference_entry = reference[self.reference_index];
        other_entry = other[self.other_index];

        self.logger.info( f"Syncing {other.name} to {reference.name}: " \
                        f"{other.name}[{self.other_index}] -> {reference.name}[{self.reference_index}]" );
        self.logger.info( f"  {other.name.capitalize()}: {other_entry.text}" );
        self.logger.info( f"  {reference.name.capitalize()}: {reference_entry.text}" );

        return reference_entry.start - other_entry.start;


def align(
    track_a: SubtitleTrack,
    track_b: SubtitleTrack,
    search_range: float = DEFAULT_SEARCH_RANGE,
    step: float = DEFAULT_SEARCH_STEP,
    window: float = DEFAULT_MATCH_WINDOW
) -> Tuple[float, float]:
    """
    Search the offset to add to track_b so it lines up with track_a.

    Returns:
        Tuple of (offset_seconds, distance)
    """
    result = AlignmentEngine( search_range, step, window ).search( track_a, track_b );
    return result.offset, result.distance;


def sync_by_index( track_a: SubtitleTrack, idx_a: int, track_b: SubtitleTrack, idx_b: int ) -> float:
    """Offset that makes track_b[idx_b] start at track_a[idx_a].start."""
    return IndexSyncStrategy( idx_a, idx_b ).compute_offset( track_a, track_b );
