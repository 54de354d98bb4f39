"""
Shared pytest configuration: keep test log files out of the working tree.
"""
import os

import pytest


@pytest.fixture( scope="session", autouse=True )
def isolated_log_dir( tmp_path_factory ):
    log_dir = tmp_path_factory.mktemp( "logs" );
    previous = os.environ.get( "SUBALIGN_LOG_DIR" );
    os.environ["SUBALIGN_LOG_DIR"] = str( log_dir );
    yield log_dir;
    if previous is None:
        os.environ.pop( "SUBALIGN_LOG_DIR", None );
    else:
        os.environ["SUBALIGN_LOG_DIR"] = previous;
