"""
Shared pytest configuration: keep DualSub log files out of the working tree.
"""
import os

import pytest


@pytest.fixture( autouse=True, scope="session" )
def isolated_log_dir( tmp_path_factory ):
    log_dir = tmp_path_factory.mktemp( "logs" );
    previous = os.environ.get( "DUALSUB_LOG_DIR" );
    os.environ["DUALSUB_LOG_DIR"] = str( log_dir );
    yield log_dir;
    if previous is None:
        os.environ.pop( "DUALSUB_LOG_DIR", None );
    else:
        os.environ["DUALSUB_LOG_DIR"] = previous;
