import os
from datetime import datetime, timedelta

import pytest

os.environ.setdefault("GROVESMITH_DATABASE_URL", "sqlite://")

from grovesmith import persistence  # noqa: E402
from grovesmith.ops import StructuredLogger  # noqa: E402
from grovesmith.service import Grovesmith  # noqa: E402

MANAGER_ID = "manager-1"
OTHER_MANAGER_ID = "manager-2"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture()
def engine():
    test_engine = persistence.build_engine("sqlite://")
    persistence.create_db_and_tables(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 1, 9, 0, 0))


@pytest.fixture()
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture()
def bank(engine, clock, logger) -> Grovesmith:
    return Grovesmith(engine, MANAGER_ID, clock=clock, logger=logger)


@pytest.fixture()
def other_bank(engine, clock, logger) -> Grovesmith:
    return Grovesmith(engine, OTHER_MANAGER_ID, clock=clock, logger=logger)
