"""
Test cases for the end-to-end merge job.
"""
import pytest
from pathlib import Path
import sys

import pysrt

# Add src directory to path for testing
sys.path.insert( 0, str( Path( __file__ ).parent.parent / "src" ) );

from dualsub.errors import MalformedHeader
from dualsub.merger import MergeJob


GAPS = [ 2.3, 3.1, 1.7, 2.9, 3.4, 1.9, 2.6, 3.3, 2.1, 2.8 ];
DURATIONS = [ 1.2, 2.0, 1.6, 0.9, 1.8, 1.4, 2.2 ];


def srt_time( seconds: float ) -> str:
    millis = int( round( seconds * 1000 ) );
    return f"{millis // 3600000:02d}:{millis // 60000 % 60:02d}:{millis // 1000 % 60:02d},{millis % 1000:03d}";


def write_srt( path: Path, first_start: float, prefix: str, count: int = 40, encoding: str = "utf-8" ) -> Path:
    blocks = [];
    start = first_start;
    for i in range( count ):
        stop = start + DURATIONS[i % len( DURATIONS )];
        blocks.append( f"{i + 1}\r\n{srt_time( start )} --> {srt_time( stop )}\r\n{prefix} {i + 1}\r\n" );
        start += GAPS[i % len( GAPS )];
    path.write_bytes( "\r\n".join( blocks ).encode( encoding ) );
    return path;


def dialogue_lines( output_file: Path, encoding: str = "utf-8" ):
    document = output_file.read_bytes().decode( encoding );
    return [ line for line in document.split( "\r\n" ) if line.startswith( "Dialogue:" ) ];


class TestMergeJob:
    """Test cases for MergeJob.run()."""

    def test_merge_two_tracks( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 10.0, "English" );
        top = write_srt( tmp_path / "fr.srt", 10.0, "Français" );
        output = tmp_path / "out.ass";

        job = MergeJob( output, bottom_file=bottom, top_file=top );

        assert job.run();
        assert output.read_bytes().startswith( b"[Script Info]\r\n" );
        lines = dialogue_lines( output );
        assert len( lines ) == 80;
        assert lines[0] == "Dialogue: 0,0:00:10.00,0:00:11.20,Bottom,,0000,0000,0000,,English 1";
        assert lines[1] == "Dialogue: 0,0:00:10.00,0:00:11.20,Top,,0000,0000,0000,,Français 1";

    def test_single_track_conversion( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 1.0, "English", count=3 );
        output = tmp_path / "out.ass";

        assert MergeJob( output, bottom_file=bottom ).run();
        assert len( dialogue_lines( output ) ) == 3;

    def test_manual_shifts( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 10.0, "English", count=1 );
        top = write_srt( tmp_path / "fr.srt", 10.0, "French", count=1 );
        output = tmp_path / "out.ass";

        job = MergeJob( output, bottom_file=bottom, top_file=top, bottom_shift=-2.5, top_shift=1.0 );

        assert job.run();
        lines = dialogue_lines( output );
        assert lines[0].startswith( "Dialogue: 0,0:00:07.50,0:00:08.70,Bottom" );
        assert lines[1].startswith( "Dialogue: 0,0:00:11.00,0:00:12.20,Top" );
        assert [ label for label, _ in job.applied_offsets ] == [ "top manual shift", "bottom manual shift" ];

    def test_index_sync( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 10.0, "English", count=5 );
        top = write_srt( tmp_path / "fr.srt", 4.0, "French", count=5 );
        output = tmp_path / "out.ass";

        job = MergeJob( output, bottom_file=bottom, top_file=top, sync_pair=( 2, 2 ) );

        assert job.run();
        assert job.top_track[2].start == pytest.approx( job.bottom_track[2].start );
        assert job.applied_offsets == [ ( "top index sync", pytest.approx( 6.0 ) ) ];

    def test_index_sync_out_of_range_fails( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 10.0, "English", count=5 );
        top = write_srt( tmp_path / "fr.srt", 4.0, "French", count=3 );
        output = tmp_path / "out.ass";

        job = MergeJob( output, bottom_file=bottom, top_file=top, sync_pair=( 1, 3 ) );

        assert not job.run();
        assert not output.exists();

    def test_auto_sync( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 20.0, "English" );
        top = write_srt( tmp_path / "fr.srt", 17.0, "French" );
        output = tmp_path / "out.ass";

        job = MergeJob( output, bottom_file=bottom, top_file=top, auto_sync=True );

        assert job.run();
        label, offset = job.applied_offsets[-1];
        assert label == "top auto sync";
        assert offset == pytest.approx( 3.0, abs=0.025 );
        assert job.top_track[0].start == pytest.approx( 20.0, abs=0.03 );

    def test_sync_needs_both_tracks( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 1.0, "English", count=3 );

        job = MergeJob( tmp_path / "out.ass", bottom_file=bottom, auto_sync=True );

        assert not job.run();

    def test_no_input_fails( self, tmp_path ):
        assert not MergeJob( tmp_path / "out.ass" ).run();

    def test_malformed_input_fails_without_output( self, tmp_path ):
        bottom = tmp_path / "bad.srt";
        bottom.write_text( "1\n00:00:01,000 00:00:02,000\nNo arrow\n", encoding="utf-8" );
        output = tmp_path / "out.ass";

        assert not MergeJob( output, bottom_file=bottom ).run();
        assert not output.exists();

    def test_debug_reraises( self, tmp_path ):
        bottom = tmp_path / "bad.srt";
        bottom.write_text( "1\n00:00:01,000 00:00:02,000\nNo arrow\n", encoding="utf-8" );

        with pytest.raises( MalformedHeader ):
            MergeJob( tmp_path / "out.ass", bottom_file=bottom, debug=True ).run();

    def test_missing_file_fails( self, tmp_path ):
        assert not MergeJob( tmp_path / "out.ass", bottom_file=tmp_path / "missing.srt" ).run();

    def test_encodings( self, tmp_path ):
        bottom = write_srt( tmp_path / "ru.srt", 1.0, "Привет", count=2, encoding="cp1251" );
        output = tmp_path / "out.ass";

        job = MergeJob( output, bottom_file=bottom, bottom_encoding="cp1251", output_encoding="utf-16" );

        assert job.run();
        assert dialogue_lines( output, encoding="utf-16" )[0].endswith( ",,Привет 1" );

    def test_unencodable_output_fails( self, tmp_path ):
        bottom = write_srt( tmp_path / "fr.srt", 1.0, "Français", count=2 );

        job = MergeJob( tmp_path / "out.ass", bottom_file=bottom, output_encoding="ascii" );

        assert not job.run();

    def test_export_srt( self, tmp_path ):
        bottom = write_srt( tmp_path / "en.srt", 10.0, "English", count=4 );
        top = write_srt( tmp_path / "fr.srt", 10.0, "French", count=4 );
        output = tmp_path / "movie.ass";

        job = MergeJob( output, bottom_file=bottom, top_file=top, top_shift=-0.5, export_srt=True );

        assert job.run();
        exported_top = tmp_path / "movie.top.srt";
        assert exported_top in job.exported_files;
        assert ( tmp_path / "movie.bottom.srt" ).exists();
        subs = pysrt.open( str( exported_top ) );
        assert len( subs ) == 4;
        assert subs[0].start.ordinal == 9500;


if __name__ == '__main__':
    pytest.main( [ __file__ ] );
