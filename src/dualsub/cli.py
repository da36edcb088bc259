"""
CLI entry point for DualSub with argument parsing and environment variable loading.
"""
import argparse
import os
import sys
from pathlib import Path
from dotenv import load_dotenv

from . import __version__
from .align import DEFAULT_MATCH_WINDOW, DEFAULT_SEARCH_RANGE, DEFAULT_SEARCH_STEP
from .encoding import normalize_encoding
from .errors import UnsupportedEncoding
from .logging import setup_logging


class DualSubCLI:
    """
    Command line interface for DualSub SRT to ASS conversion.

    Defaults for encodings and alignment parameters come from the
    environment (optionally a .env file); command line flags override them.
    """

    def __init__( self ):
        self.parser = self._create_parser();
        self.args = None;
        self.logger = None;
        self.config_errors = [];

    def _create_parser( self ):
        """Create argument parser with all DualSub options."""
        parser = argparse.ArgumentParser(
            prog="dualsub",
            description="Convert SRT subtitles to ASS, merging a top and a bottom track with optional time sync",
            epilog="Environment variables: DUALSUB_ENCODING, DUALSUB_SEARCH_RANGE, DUALSUB_SEARCH_STEP, "
                   "DUALSUB_MATCH_WINDOW, DUALSUB_LOG_DIR"
        );

        # Bottom track
        parser.add_argument(
            "-b", "--bottom",
            type=Path,
            help="SRT file for the bottom subtitles"
        );

        parser.add_argument(
            "--b-enc", "--bottom-enc",
            dest="bottom_encoding",
            help="Encoding of the bottom SRT file (default: UTF-8)"
        );

        parser.add_argument(
            "--b-shift", "--bottom-tshift",
            dest="bottom_shift",
            type=float,
            help="Time shift the bottom subtitles by this many seconds"
        );

        # Top track
        parser.add_argument(
            "-t", "--top",
            type=Path,
            help="SRT file for the top subtitles"
        );

        parser.add_argument(
            "--t-enc", "--top-enc",
            dest="top_encoding",
            help="Encoding of the top SRT file (default: UTF-8)"
        );

        parser.add_argument(
            "--t-shift", "--top-tshift",
            dest="top_shift",
            type=float,
            help="Time shift the top subtitles by this many seconds"
        );

        # Synchronization
        parser.add_argument(
            "--sync-tb", "--sync-top-to-bottom",
            dest="sync_pair",
            nargs=2,
            type=int,
            metavar=( "BOTTOM_INDEX", "TOP_INDEX" ),
            help="Time synchronize the TOP_INDEXth entry of the top SRT file to the BOTTOM_INDEXth "
                 "entry of the bottom SRT file (0-based)"
        );

        parser.add_argument(
            "--auto-sync-tb", "--auto-sync-top-to-bottom",
            dest="auto_sync",
            action="store_true",
            help="Automatically time synchronize the top SRT file to the bottom SRT file"
        );

        parser.add_argument(
            "--search-range",
            type=float,
            help=f"Largest offset in seconds tried by auto sync (default: {DEFAULT_SEARCH_RANGE})"
        );

        parser.add_argument(
            "--search-step",
            type=float,
            help=f"Offset step in seconds for auto sync (default: {DEFAULT_SEARCH_STEP})"
        );

        parser.add_argument(
            "--match-window",
            type=float,
            help=f"Width in seconds of the window used to match entries (default: {DEFAULT_MATCH_WINDOW})"
        );

        # Output
        parser.add_argument(
            "-o", "--output",
            required=True,
            type=Path,
            help="The output ASS filename"
        );

        parser.add_argument(
            "--o-enc", "--output-enc",
            dest="output_encoding",
            help="Output encoding (default: UTF-8)"
        );

        parser.add_argument(
            "--export-srt",
            action="store_true",
            help="Also write the time shifted tracks as <output>.bottom.srt / <output>.top.srt"
        );

        parser.add_argument(
            "--debug",
            action="store_true",
            help="Enable debug mode with verbose output"
        );

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {__version__}"
        );

        return parser;

    def _float_setting( self, key: str, default: float ) -> float:
        value = os.getenv( key );
        if value is None or value == "":
            return default;
        try:
            return float( value );
        except ValueError:
            self.config_errors.append( f"{key} must be a number, got: {value}" );
            return default;

    def _load_environment( self ):
        """Load defaults from .env file and environment."""
        env_file = Path( ".env" );
        if env_file.exists():
            load_dotenv( env_file );

        self.config_errors = [];
        self.default_encoding = os.getenv( "DUALSUB_ENCODING" ) or "UTF-8";
        self.default_search_range = self._float_setting( "DUALSUB_SEARCH_RANGE", DEFAULT_SEARCH_RANGE );
        self.default_search_step = self._float_setting( "DUALSUB_SEARCH_STEP", DEFAULT_SEARCH_STEP );
        self.default_match_window = self._float_setting( "DUALSUB_MATCH_WINDOW", DEFAULT_MATCH_WINDOW );

    def _apply_defaults( self ):
        """Fill options not given on the command line from the environment."""
        for option in ( "bottom_encoding", "top_encoding", "output_encoding" ):
            if getattr( self.args, option ) is None:
                setattr( self.args, option, self.default_encoding );

        if self.args.search_range is None:
            self.args.search_range = self.default_search_range;
        if self.args.search_step is None:
            self.args.search_step = self.default_search_step;
        if self.args.match_window is None:
            self.args.match_window = self.default_match_window;

    def _validate_arguments( self ):
        """Validate parsed arguments and environment setup."""
        errors = list( self.config_errors );

        if not self.args.bottom and not self.args.top:
            errors.append( "At least one of --bottom or --top is required" );

        for option, subtitle_file in ( ( "bottom", self.args.bottom ), ( "top", self.args.top ) ):
            if subtitle_file and not subtitle_file.exists():
                errors.append( f"{option.capitalize()} subtitle file not found: {subtitle_file}" );

        if self.args.sync_pair and not ( self.args.bottom and self.args.top ):
            errors.append( "--sync-tb needs both --bottom and --top" );

        if self.args.auto_sync and not ( self.args.bottom and self.args.top ):
            errors.append( "--auto-sync-tb needs both --bottom and --top" );

        if self.args.sync_pair and any( index < 0 for index in self.args.sync_pair ):
            errors.append( "--sync-tb indices must not be negative" );

        for option in ( "bottom_encoding", "top_encoding", "output_encoding" ):
            try:
                normalize_encoding( getattr( self.args, option ) );
            except UnsupportedEncoding as e:
                errors.append( str( e ) );

        if self.args.search_range < 0:
            errors.append( "Search range must not be negative" );

        if self.args.search_step <= 0:
            errors.append( "Search step must be positive" );

        if self.args.match_window <= 0:
            errors.append( "Match window must be positive" );

        return errors;

    def parse_args( self, argv=None ):
        """Parse command line arguments and validate configuration."""
        self.args = self.parser.parse_args( argv );

        # Before logging, so DUALSUB_LOG_DIR from .env is honored
        self._load_environment();
        self.logger = setup_logging( debug=self.args.debug );
        self._apply_defaults();

        errors = self._validate_arguments();
        if errors:
            self.logger.error( "Configuration errors:" );
            for error in errors:
                self.logger.error( f"  - {error}" );
            sys.exit( 1 );

        self.logger.info( f"DualSub v{__version__} starting..." );
        if self.args.bottom:
            self.logger.info( f"Bottom: {self.args.bottom} ({self.args.bottom_encoding})" );
        if self.args.top:
            self.logger.info( f"Top: {self.args.top} ({self.args.top_encoding})" );
        self.logger.info( f"Output: {self.args.output} ({self.args.output_encoding})" );
        self.logger.debug( f"Auto sync: {self.args.auto_sync}, range={self.args.search_range}s, " \
                         f"step={self.args.search_step}s, window={self.args.match_window}s" );

        return self.args;


def main( argv=None ):
    """Main entry point for the DualSub CLI."""
    cli = DualSubCLI();
    args = cli.parse_args( argv );

    from .merger import MergeJob;

    job = MergeJob(
        output_file=args.output,
        bottom_file=args.bottom,
        top_file=args.top,
        bottom_encoding=args.bottom_encoding,
        top_encoding=args.top_encoding,
        output_encoding=args.output_encoding,
        bottom_shift=args.bottom_shift,
        top_shift=args.top_shift,
        sync_pair=tuple( args.sync_pair ) if args.sync_pair else None,
        auto_sync=args.auto_sync,
        search_range=args.search_range,
        search_step=args.search_step,
        match_window=args.match_window,
        export_srt=args.export_srt,
        debug=args.debug
    );

    try:
        if job.run():
            cli.logger.info( "Conversion completed successfully!" );
        else:
            cli.logger.error( "Conversion failed!" );
            sys.exit( 1 );
    except KeyboardInterrupt:
        cli.logger.warning( "Interrupted by user" );
        sys.exit( 130 );


if __name__ == "__main__":
    main();
