"""
Timestamp codec: SRT timestamps in, ASS timestamps out.
"""
import math

from .errors import MalformedTimestamp


MAX_FRACTION_DIGITS = 4;

# Absorbs binary float error before truncating to centiseconds (0.57 * 100 = 56.99999...)
CENTISECOND_EPSILON = 1e-6;


def _parse_field( field: str, name: str, text: str ) -> int:
    if not field or not field.isascii() or not field.isdigit():
        raise MalformedTimestamp( text, f"invalid {name} '{field}'" );
    return int( field );


def parse_time( text: str ) -> float:
    """
    Parse an SRT style timestamp into seconds.

    Accepts "H:MM:SS,fff" or "H:MM:SS.ff". Hours are unbounded and the
    fraction may have 1-4 digits; its value is scaled by its digit count
    (one digit = tenths, four digits = ten-thousandths).

    Args:
        text: Timestamp string such as "01:02:03,450"

    Returns:
        Time in seconds

    Raises:
        MalformedTimestamp: Non-numeric field, missing separator or over-precise fraction
    """
    stripped = text.strip();

    parts = stripped.split( ":", 2 );
    if len( parts ) != 3:
        raise MalformedTimestamp( text, "expected H:MM:SS,fff" );
    hour_field, minute_field, rest = parts;

    # First ',' or '.' after the minutes separates seconds from the fraction
    separator_positions = [ pos for pos in ( rest.find( "," ), rest.find( "." ) ) if pos >= 0 ];
    if not separator_positions:
        raise MalformedTimestamp( text, "missing fractional separator" );
    split_at = min( separator_positions );
    second_field = rest[:split_at];
    fraction_field = rest[split_at + 1:];

    hours = _parse_field( hour_field, "hour", text );
    minutes = _parse_field( minute_field, "minute", text );
    seconds = _parse_field( second_field, "second", text );
    fraction = _parse_field( fraction_field, "decimal part of second", text );

    if len( fraction_field ) > MAX_FRACTION_DIGITS:
        raise MalformedTimestamp( text, f"too many decimals in fraction '{fraction_field}'" );

    return ( hours * 3600 + minutes * 60 + seconds ) + fraction / ( 10 ** len( fraction_field ) );


def format_time( seconds: float ) -> str:
    """
    Format seconds as an ASS timestamp "H:MM:SS.cc".

    The sub-centisecond remainder is truncated. Hours are never wrapped.
    Negative times keep their magnitude and get a leading '-'.
    """
    sign = "-" if seconds < 0 else "";
    total_centis = math.floor( abs( seconds ) * 100 + CENTISECOND_EPSILON );

    centis = total_centis % 100;
    total_seconds = total_centis // 100;
    secs = total_seconds % 60;
    minutes = ( total_seconds // 60 ) % 60;
    hours = total_seconds // 3600;

    return f"{sign}{hours}:{minutes:02d}:{secs:02d}.{centis:02d}";
