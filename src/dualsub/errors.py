"""
Exception hierarchy for DualSub.

Core functions raise these; only the job driver and the CLI decide whether
a failure is reported and how the process exits.
"""


class DualSubError( Exception ):
    """Base class for every error raised by the DualSub core."""
    pass


class MalformedTimestamp( DualSubError, ValueError ):
    """A timestamp is unparseable or has more than 4 fractional digits."""

    def __init__( self, text: str, reason: str ):
        self.text = text;
        self.reason = reason;
        super().__init__( f"Invalid timestamp '{text}': {reason}" );


class MalformedHeader( DualSubError, ValueError ):
    """The timing line of a subtitle block has no '-->' separator."""

    def __init__( self, line: str, record_number: int ):
        self.line = line;
        self.record_number = record_number;
        super().__init__( f"Invalid timing line in subtitle block {record_number}: '{line}'" );


class EmptyTrack( DualSubError ):
    """A subtitle file produced no records."""

    def __init__( self, track_name: str ):
        self.track_name = track_name;
        super().__init__( f"{track_name.capitalize()} subtitle file does not contain any subtitles" );


class IndexOutOfRange( DualSubError, IndexError ):
    """A manual sync index lies outside its track."""

    def __init__( self, index: int, track_name: str, track_length: int ):
        self.index = index;
        self.track_name = track_name;
        self.track_length = track_length;
        super().__init__(
            f"Subtitle index {index} is out of bounds for the {track_name} subtitle file, "
            f"which has {track_length} subtitles"
        );


class UnsupportedEncoding( DualSubError, LookupError ):
    """The named character encoding is unknown."""

    def __init__( self, encoding: str ):
        self.encoding = encoding;
        super().__init__( f"Encoding '{encoding}' is not available" );


class ConversionFailure( DualSubError, UnicodeError ):
    """Text could not be converted from or to the requested encoding."""

    def __init__( self, encoding: str, detail: str ):
        self.encoding = encoding;
        self.detail = detail;
        super().__init__( f"Encoding conversion failed ({encoding}): {detail}" );
