import sqlite3
from collections.abc import Generator

import pytest

from fantasy_disc_golf.db.connection import create_connection
from fantasy_disc_golf.league.teams import TeamRegistry
from tests.fakes.league import TEAMS


@pytest.fixture
def conn() -> Generator[sqlite3.Connection]:
    connection = create_connection(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def registry() -> TeamRegistry:
    return TeamRegistry(TEAMS)
