"""Shared test fixtures for movienet tests."""

import pytest

from movienet.config import Config
from movienet.db import NetworkDB
from movienet.errors import SourceError
from movienet.models import MovieDetails, MovieRef
from movienet.network import Network
from movienet.source import MovieSource


def movie(movie_id: str, title: str, year: int | None = None) -> MovieRef:
    return MovieRef(id=movie_id, title=title, year=year)


class FakeMovieSource(MovieSource):
    """In-memory movie source. Records every call in self.calls."""

    def __init__(self) -> None:
        self.movies: dict[str, MovieRef] = {}
        self.related: dict[str, list[str]] = {}
        self.details: dict[str, MovieDetails] = {}
        self.search_index: dict[str, list[str]] = {}
        self.failing_related: set[str] = set()
        self.failing_details: set[str] = set()
        self.fail_search = False
        self.calls: list[tuple[str, str]] = []

    def add(self, ref: MovieRef, related: list[str] | None = None, details: MovieDetails | None = None) -> None:
        self.movies[ref.id] = ref
        self.related[ref.id] = related or []
        self.search_index.setdefault(ref.title.lower(), []).append(ref.id)
        if details is not None:
            self.details[ref.id] = details

    async def search_movies(self, query: str) -> list[MovieRef]:
        self.calls.append(("search", query))
        if self.fail_search:
            raise SourceError(f"search '{query}'", "HTTP 503")
        return [self.movies[i] for i in self.search_index.get(query.lower(), [])]

    async def get_related_movies(self, movie_id: str) -> list[MovieRef]:
        self.calls.append(("related", movie_id))
        if movie_id in self.failing_related:
            raise SourceError(f"related movies for {movie_id}", "request timed out")
        return [self.movies[i] for i in self.related.get(movie_id, [])]

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        self.calls.append(("details", movie_id))
        if movie_id in self.failing_details or movie_id not in self.details:
            raise SourceError(f"details for {movie_id}", "HTTP 404")
        return self.details[movie_id]


@pytest.fixture()
def fake_source():
    """Small Nolan-centric movie universe with a few cycles."""
    source = FakeMovieSource()
    source.add(
        movie("1", "The Dark Knight", 2008), ["2", "3", "4", "5", "6"],
        MovieDetails(genres=["action", "crime"], rating=9.0),
    )
    source.add(
        movie("2", "Batman Begins", 2005), ["1", "4", "8"],
        MovieDetails(genres=["action"], rating=8.2),
    )
    source.add(
        movie("3", "Inception", 2010), ["9", "4", "1"],
        MovieDetails(genres=["science fiction"], rating=8.8),
    )
    source.add(movie("4", "The Prestige", 2006), ["7", "3"], MovieDetails(genres=["drama"], rating=8.5))
    source.add(movie("5", "Joker", 2019), [], MovieDetails(genres=["crime"], rating=8.4))
    source.add(movie("6", "Heat", 1995), ["5"], MovieDetails(genres=["crime"], rating=8.3))
    source.add(movie("7", "Memento", 2000), ["4"], MovieDetails(genres=["mystery"], rating=8.4))
    source.add(movie("8", "The Dark Knight Rises", 2012), ["1", "2"])
    source.add(movie("9", "Interstellar", 2014), ["3"], MovieDetails(genres=["science fiction"], rating=8.6))
    return source


@pytest.fixture()
def sample_network():
    """5 nodes / 4 edges: seed -> 2 children -> 1 grandchild each."""
    network = Network()
    network.add_node(movie("1", "The Dark Knight", 2008), 0, MovieDetails(genres=["action"], rating=9.0))
    network.add_node(movie("2", "Batman Begins", 2005), 1, MovieDetails(genres=["action", "drama"], rating=8.0))
    network.add_node(movie("3", "Inception", 2010), 1)
    network.add_node(movie("4", "The Prestige", 2006), 2, MovieDetails(genres=["drama"], rating=8.5))
    network.add_node(movie("9", "Interstellar", 2014), 2)
    network.add_edge("1", "2")
    network.add_edge("1", "3")
    network.add_edge("2", "4")
    network.add_edge("3", "9")
    return network


@pytest.fixture()
def tmp_config(tmp_path):
    return Config(db_path=str(tmp_path / "test.db"))


@pytest.fixture()
def tmp_db(tmp_config):
    """Create a NetworkDB backed by a temp file."""
    db = NetworkDB(tmp_config)
    db.init_db()
    yield db
    db.close()
