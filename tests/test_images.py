"""
Tests for the Wikimedia Commons image search client.
"""
import requests

from wherex.images import WikimediaImageSearch


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


class FakeSession:
    """Records requests and replays a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return self.response


def _results(*titles):
    return {"query": {"search": [{"title": title} for title in titles]}}


def test_search_filters_documents():
    """Test non-photo files are skipped and the limit is honoured."""
    session = FakeSession(FakeResponse(_results(
        "File:Plan.pdf", "File:Eiffel Tower.jpg", "File:Logo.svg", "File:Eiffel night.jpg", "File:Third.jpg",
    )))
    urls = WikimediaImageSearch(session=session).search("Eiffel Tower Paris", limit=2)
    assert urls == [
        "https://commons.wikimedia.org/w/thumb.php?f=Eiffel%20Tower.jpg&w=300",
        "https://commons.wikimedia.org/w/thumb.php?f=Eiffel%20night.jpg&w=300",
    ]
    assert session.calls[0]["srlimit"] == 10
    assert session.calls[0]["srnamespace"] == 6


def test_search_is_cached():
    """Test repeated queries hit the network once."""
    session = FakeSession(FakeResponse(_results("File:Croissant.jpg")))
    search = WikimediaImageSearch(session=session)
    assert search.search("Croissant food") == search.search("Croissant food")
    assert len(session.calls) == 1


def test_search_failures_return_nothing():
    """Test network and HTTP errors degrade to no results."""
    assert WikimediaImageSearch(session=FakeSession(error=requests.ConnectionError("down"))).search("x") == []
    assert WikimediaImageSearch(session=FakeSession(FakeResponse({}, status=503))).search("x") == []
    assert WikimediaImageSearch(session=FakeSession(FakeResponse({}))).search("x") == []
