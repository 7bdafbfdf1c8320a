"""Movie data source interface and the HTTP client for the movie API."""

import abc
import logging
from typing import Any

import httpx

from movienet.config import SourceConfig
from movienet.errors import SourceError
from movienet.models import MovieDetails, MovieRef

logger = logging.getLogger(__name__)


class MovieSource(abc.ABC):
    """Base class for movie data sources.

    Implementations raise SourceError on any transport or upstream failure.
    Callers decide how to degrade.
    """

    @abc.abstractmethod
    async def search_movies(self, query: str) -> list[MovieRef]:
        """Ranked search results for free text. Best match first."""
        ...

    @abc.abstractmethod
    async def get_related_movies(self, movie_id: str) -> list[MovieRef]:
        """Related movies in the source's relevance order. Callers truncate."""
        ...

    @abc.abstractmethod
    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        ...


def parse_movie(raw: Any) -> MovieRef | None:
    """Parse a movie object, wrapped ({"movie": {...}}) or bare. None if unusable."""
    if not isinstance(raw, dict):
        return None
    movie = raw.get("movie", raw)
    if not isinstance(movie, dict) or not movie.get("title"):
        return None

    ids = movie.get("ids") or {}
    external_id = ids.get("trakt", movie.get("id"))
    year = movie.get("year")
    try:
        year = int(year) if year is not None else None
    except (TypeError, ValueError):
        year = None

    return MovieRef(
        id=str(external_id) if external_id is not None else None,
        title=str(movie["title"]),
        year=year,
        slug=ids.get("slug") or movie.get("slug"),
    )


def parse_details(raw: Any) -> MovieDetails:
    if not isinstance(raw, dict):
        return MovieDetails()
    movie = raw.get("movie", raw)
    if not isinstance(movie, dict):
        return MovieDetails()
    genres = movie.get("genres") or []
    rating = movie.get("rating")
    runtime = movie.get("runtime")
    return MovieDetails(
        genres=[str(g) for g in genres if g],
        rating=float(rating) if isinstance(rating, (int, float)) else None,
        overview=movie.get("overview"),
        runtime=int(runtime) if isinstance(runtime, (int, float)) else None,
    )


class HttpMovieSource(MovieSource):
    """Movie API client over httpx.

    Endpoints (relative to base_url):
        GET search/movies/fast?query=...
        GET movies/{id}/related/fast
        GET movies/{id}
    """

    def __init__(
        self,
        config: SourceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            headers={"User-Agent": config.user_agent},
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpMovieSource":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(
        self, operation: str, path: str, params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise SourceError(operation, "request timed out") from e
        except httpx.HTTPError as e:
            raise SourceError(operation, str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise SourceError(operation, f"HTTP {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise SourceError(operation, "response is not valid JSON") from e

    def _parse_movie_list(self, operation: str, data: Any) -> list[MovieRef]:
        if not isinstance(data, list):
            raise SourceError(operation, "expected a list of movies")
        movies: list[MovieRef] = []
        for item in data:
            movie = parse_movie(item)
            if movie is None:
                logger.debug("%s: skipping malformed entry %r", operation, item)
                continue
            movies.append(movie)
        return movies

    async def search_movies(self, query: str) -> list[MovieRef]:
        data = await self._get_json(
            f"search '{query}'", "search/movies/fast", params={"query": query},
        )
        return self._parse_movie_list(f"search '{query}'", data)

    async def get_related_movies(self, movie_id: str) -> list[MovieRef]:
        operation = f"related movies for {movie_id}"
        data = await self._get_json(operation, f"movies/{movie_id}/related/fast")
        return self._parse_movie_list(operation, data)

    async def get_movie_details(self, movie_id: str) -> MovieDetails:
        data = await self._get_json(f"details for {movie_id}", f"movies/{movie_id}")
        return parse_details(data)
