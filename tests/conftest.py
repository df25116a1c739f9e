import datetime
import io

import pytest

from bump.context import Bump
from bump.stamp import RunStamp

STAMP = RunStamp(datetime.datetime(2026, 1, 2, 3, 4, 5), "testhost")


class Harness:
    def __init__(self, stamp=STAMP):
        self.stream = io.StringIO()
        self.bump = Bump(stamp=stamp, stream=self.stream)

    def lines(self):
        return self.stream.getvalue().splitlines()


@pytest.fixture
def harness():
    return Harness()


@pytest.fixture
def bump(harness):
    return harness.bump
