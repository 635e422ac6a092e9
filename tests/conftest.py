import urllib.parse

import pytest

from console.client import ConsoleClient
from console.config import ConsoleConfig
from console.devserver import TableStore, create_app, seed_store

BASE_URL = "http://console.test/api/v1"


def flask_transport(test_client):
    """Route ConsoleClient requests into a Flask test client."""

    def transport(method, url, body, headers, timeout):
        parts = urllib.parse.urlsplit(url)
        path = f"{parts.path}?{parts.query}" if parts.query else parts.path
        response = test_client.open(path, method=method, data=body, headers=headers)
        return response.status_code, response.get_data()

    return transport


class CountingClient:
    """Wraps a client and records the name of every method called on it."""

    def __init__(self, inner):
        self.inner = inner
        self.calls = []

    def __getattr__(self, name):
        attr = getattr(self.inner, name)

        def wrapper(*args, **kwargs):
            self.calls.append(name)
            return attr(*args, **kwargs)

        return wrapper


@pytest.fixture
def store():
    table_store = TableStore(page_size=10)
    seed_store(table_store)
    return table_store


@pytest.fixture
def backend(store):
    app = create_app(store, ConsoleConfig(page_size=store.page_size))
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def client(backend):
    return ConsoleClient(BASE_URL, transport=flask_transport(backend))


@pytest.fixture
def counting_client(client):
    return CountingClient(client)
