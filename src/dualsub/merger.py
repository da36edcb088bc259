"""
Main merge controller that orchestrates reading, synchronizing and writing.
"""
from pathlib import Path
from typing import Optional, Tuple

from .align import AlignmentEngine, AutoSyncStrategy, IndexSyncStrategy, DEFAULT_MATCH_WINDOW, DEFAULT_SEARCH_RANGE, DEFAULT_SEARCH_STEP
from .encoding import encode_text, same_encoding
from .errors import DualSubError
from .logging import get_logger
from .merge import merge, render
from .subtitles import SubtitleTrack, read_track, save_track_srt, shift


class MergeJob:
    """
    Controller for one SRT to ASS conversion.

    Orchestrates:
    1. Reading and decoding the bottom and top SRT files
    2. Manual index sync of top to bottom
    3. Manual time shifts (top, then bottom)
    4. Automatic sync of top to bottom
    5. Optional SRT export of the shifted tracks
    6. Merging, ASS rendering and writing in the output encoding
    """

    def __init__(
        self,
        output_file: Path,
        bottom_file: Optional[Path] = None,
        top_file: Optional[Path] = None,
        bottom_encoding: str = "UTF-8",
        top_encoding: str = "UTF-8",
        output_encoding: str = "UTF-8",
        bottom_shift: Optional[float] = None,
        top_shift: Optional[float] = None,
        sync_pair: Optional[Tuple[int, int]] = None,
        auto_sync: bool = False,
        search_range: float = DEFAULT_SEARCH_RANGE,
        search_step: float = DEFAULT_SEARCH_STEP,
        match_window: float = DEFAULT_MATCH_WINDOW,
        export_srt: bool = False,
        debug: bool = False
    ):
        self.output_file = Path( output_file );
        self.bottom_file = Path( bottom_file ) if bottom_file else None;
        self.top_file = Path( top_file ) if top_file else None;
        self.bottom_encoding = bottom_encoding;
        self.top_encoding = top_encoding;
        self.output_encoding = output_encoding;
        self.bottom_shift = bottom_shift;
        self.top_shift = top_shift;
        self.sync_pair = sync_pair;  # (bottom_index, top_index)
        self.auto_sync = auto_sync;
        self.search_range = search_range;
        self.search_step = search_step;
        self.match_window = match_window;
        self.export_srt = export_srt;
        self.debug = debug;

        self.logger = get_logger( debug=debug );

        # Results storage
        self.bottom_track: Optional[SubtitleTrack] = None;
        self.top_track: Optional[SubtitleTrack] = None;
        self.applied_offsets = [];  # (label, seconds) in application order
        self.exported_files = [];

    def _load_track( self, subtitle_file: Path, encoding: str, name: str ) -> SubtitleTrack:
        self.logger.info( f"Reading {name} SRT file: {subtitle_file}" );
        if not same_encoding( encoding, self.output_encoding ):
            self.logger.info( f"Converting {name} SRT encoding from {encoding} to {self.output_encoding}..." );

        track = read_track( subtitle_file, encoding=encoding, name=name );
        self.logger.info( f"{name.capitalize()} subtitle file contains {len( track )} subtitles." );
        return track;

    def load_tracks( self ):
        """Read and parse every given input file."""
        self.logger.info( "=== STEP 1: READING SUBTITLES ===" );

        if self.bottom_file is None and self.top_file is None:
            raise DualSubError( "No input subtitle file given" );

        if self.bottom_file is not None:
            self.bottom_track = self._load_track( self.bottom_file, self.bottom_encoding, "bottom" );
        if self.top_file is not None:
            self.top_track = self._load_track( self.top_file, self.top_encoding, "top" );

    def _apply_shift( self, track: SubtitleTrack, seconds: float, label: str ):
        shift( track, seconds );
        self.applied_offsets.append( ( label, seconds ) );

    def synchronize( self ):
        """Apply index sync, manual shifts and automatic sync, in that order."""
        self.logger.info( "=== STEP 2: TIME SYNCHRONIZATION ===" );

        needs_both = self.sync_pair is not None or self.auto_sync;
        if needs_both and ( self.bottom_track is None or self.top_track is None ):
            raise DualSubError( "Synchronization needs both a bottom and a top subtitle file" );

        if self.sync_pair is not None:
            bottom_index, top_index = self.sync_pair;
            strategy = IndexSyncStrategy( bottom_index, top_index );
            offset = strategy.compute_offset( self.bottom_track, self.top_track );
            self.logger.info( f"Shift: {offset:+.3f}s" );
            self._apply_shift( self.top_track, offset, "top index sync" );

        if self.top_shift is not None and self.top_track is not None:
            self.logger.info( f"Time shifting top subtitles by: {self.top_shift} seconds..." );
            self._apply_shift( self.top_track, self.top_shift, "top manual shift" );

        if self.bottom_shift is not None and self.bottom_track is not None:
            self.logger.info( f"Time shifting bottom subtitles by: {self.bottom_shift} seconds..." );
            self._apply_shift( self.bottom_track, self.bottom_shift, "bottom manual shift" );

        if self.auto_sync:
            self.logger.info( "Auto syncing..." );
            engine = AlignmentEngine( self.search_range, self.search_step, self.match_window );
            strategy = AutoSyncStrategy( engine );
            offset = strategy.compute_offset( self.bottom_track, self.top_track );
            self._apply_shift( self.top_track, offset, "top auto sync" );

        if not self.applied_offsets:
            self.logger.debug( "No time shifts requested" );

    def export_tracks( self ):
        """Write the shifted tracks back to SRT next to the output file."""
        if not self.export_srt:
            return;

        self.logger.info( "=== STEP 3: SRT EXPORT ===" );
        for track in ( self.bottom_track, self.top_track ):
            if track is None:
                continue;
            export_file = self.output_file.with_name( f"{self.output_file.stem}.{track.name}.srt" );
            self.exported_files.append( save_track_srt( track, export_file, encoding=self.output_encoding ) );

    def write_output( self ) -> Path:
        """Merge, render and write the ASS file."""
        self.logger.info( "=== STEP 4: MERGE & WRITE ===" );

        entries = merge( self.bottom_track, self.top_track );
        document = render( entries );

        self.output_file.write_bytes( encode_text( document, self.output_encoding ) );
        self.logger.info( f"Wrote {len( entries )} dialogue lines to {self.output_file}" );
        return self.output_file;

    def run( self ) -> bool:
        """
        Run the complete conversion.

        Returns:
            True if successful, False if failed
        """
        try:
            self.logger.info( "Starting DualSub conversion" );
            self.load_tracks();
            self.synchronize();
            self.export_tracks();
            self.write_output();
            return self._log_final_results();

        except ( DualSubError, OSError ) as e:
            self.logger.error( f"Conversion failed: {e}" );
            if self.debug:
                raise;
            return False;

    def _log_final_results( self ) -> bool:
        """Log final results and statistics."""
        self.logger.info( "=== CONVERSION COMPLETE ===" );
        self.logger.info( f"✓ ASS subtitles saved to: {self.output_file}" );

        for track in ( self.bottom_track, self.top_track ):
            if track is None:
                continue;
            stats = track.get_track_stats();
            self.logger.info( f"✓ {stats['name'].capitalize()}: {stats['total_entries']} subtitles" );

        for label, seconds in self.applied_offsets:
            self.logger.info( f"✓ {label.capitalize()}: {seconds:+.2f}s" );

        for export_file in self.exported_files:
            self.logger.info( f"✓ Exported: {export_file}" );

        return True;
