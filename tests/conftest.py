"""Shared fixtures: a small three-profile VPTS file and its typed forms."""

import logging

import pandas as pd
import pytest

from vptsviz.analysis.profiles import ProfileRecord, frame_to_records, parse_frame

# Three profiles, 5 minutes apart:
#   00:02  bins 0 and 200 pass sd_vvp >= 2, bin 400 does not
#          -> MTR = 0.2 * (10*5*3.6 + 8*2*3.6) = 47.52, VID = 0.2 * 7 = 1.4
#   00:07  bin 400 has unparseable ff/dd/dens and is dropped on parse
#          -> MTR = 0.2 * (5*4*3.6 + 6*0*3.6) = 14.4, VID = 0.8
#   00:12  no bin passes the quality filter -> NaN
VPTS_CSV = """radar,datetime,height,dd,ff,dens,sd_vvp,sd_vvp_threshold
bejab,2016-09-01T00:02:00Z,0,180,10,5,3,2
bejab,2016-09-01T00:02:00Z,200,200,8,2,2.5,2
bejab,2016-09-01T00:02:00Z,400,190,12,1,1,2
bejab,2016-09-01T00:07:00Z,0,170,5,4,2,2
bejab,2016-09-01T00:07:00Z,200,175,6,0,4,2
bejab,2016-09-01T00:07:00Z,400,,NA,,5,2
bejab,2016-09-01T00:12:00Z,0,160,3,1,0.5,2
bejab,2016-09-01T00:12:00Z,200,165,4,1,1,2
"""

T1 = pd.Timestamp("2016-09-01 00:02:00", tz="UTC")
T2 = pd.Timestamp("2016-09-01 00:07:00", tz="UTC")
T3 = pd.Timestamp("2016-09-01 00:12:00", tz="UTC")


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers installed by configure_logging between tests."""
    yield
    pkg_logger = logging.getLogger("vptsviz")
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
    pkg_logger.setLevel(logging.NOTSET)


@pytest.fixture
def vpts_csv(tmp_path):
    path = tmp_path / "example_vpts_20160901.csv"
    path.write_text(VPTS_CSV)
    return path


@pytest.fixture
def raw_frame():
    from io import StringIO

    return pd.read_csv(StringIO(VPTS_CSV), dtype=str)


@pytest.fixture
def profiles(raw_frame):
    return parse_frame(raw_frame)


@pytest.fixture
def records(profiles):
    return frame_to_records(profiles)


@pytest.fixture
def single_record():
    """The 200 m bin with ff=10, dens=5, sd_vvp=3; MTR with defaults is 36."""
    return [ProfileRecord(T1, 200, 0.0, 10.0, 5.0, 3.0)]
