# Neo4j driver stand-in for backfill tests

import pytest


class FakeRecord:
    def __init__(self, **values):
        self._values = values

    def data(self):
        return dict(self._values)


class FakeSession:
    def __init__(self, driver):
        self.driver = driver

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def run(self, query):
        self.driver.queries.append(query)
        return iter(self.driver.rows_for(query))


class FakeDriver:
    """Answers label queries from canned rows keyed by label."""

    def __init__(self, rows_by_label):
        self.rows_by_label = rows_by_label
        self.queries = []
        self.databases = []

    def session(self, database=None):
        self.databases.append(database)
        return FakeSession(self)

    def rows_for(self, query):
        for label, rows in self.rows_by_label.items():
            if f"(n:`{label}`)" in query:
                return [FakeRecord(**row) for row in rows]
        return []


@pytest.fixture
def make_driver():
    return FakeDriver
