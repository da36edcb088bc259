"""
Character encoding conversion for subtitle input and ASS output.
"""
import codecs

from .errors import ConversionFailure, UnsupportedEncoding


def normalize_encoding( name: str ) -> str:
    """
    Resolve an encoding name to Python's canonical codec name.

    Raises:
        UnsupportedEncoding: The name is not a known codec
    """
    try:
        return codecs.lookup( name ).name;
    except ( LookupError, TypeError ):
        raise UnsupportedEncoding( str( name ) ) from None;


def same_encoding( first: str, second: str ) -> bool:
    """True if both names resolve to the same codec."""
    return normalize_encoding( first ) == normalize_encoding( second );


def decode_bytes( raw: bytes, encoding: str ) -> str:
    """
    Decode raw subtitle bytes from their declared encoding.

    Args:
        raw: File contents
        encoding: Declared source encoding

    Returns:
        Decoded text

    Raises:
        UnsupportedEncoding: Unknown encoding name
        ConversionFailure: Bytes are not valid in that encoding
    """
    codec = normalize_encoding( encoding );
    try:
        return raw.decode( codec );
    except UnicodeDecodeError as e:
        raise ConversionFailure( encoding, str( e ) ) from e;


def encode_text( text: str, encoding: str ) -> bytes:
    """
    Encode text for output.

    Raises:
        UnsupportedEncoding: Unknown encoding name
        ConversionFailure: Some character has no representation in the encoding
    """
    codec = normalize_encoding( encoding );
    try:
        return text.encode( codec );
    except UnicodeEncodeError as e:
        raise ConversionFailure( encoding, str( e ) ) from e;
