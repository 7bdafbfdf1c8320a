"""Pydantic models for the movie network explorer."""

from enum import Enum

from pydantic import BaseModel, Field


class ColorMode(str, Enum):
    DEPTH = "depth"
    GENRE = "genre"
    RATING = "rating"
    DECADE = "decade"


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def movie_key(title: str, year: int | None) -> str:
    """Human-readable "{title} ({year})" key, used for display and grouping."""
    if year is None:
        return title
    return f"{title} ({year})"


# --- Movie data (what comes out of the data source) ---


class MovieRef(BaseModel):
    """Minimal identity for a movie as returned by the data source."""
    id: str | None = None
    title: str
    year: int | None = None
    slug: str | None = None

    @property
    def key(self) -> str:
        return movie_key(self.title, self.year)

    @property
    def identity(self) -> str:
        """Canonical node key: the external id, or the MovieKey when no id is known."""
        return self.id if self.id is not None else self.key

    def same_movie(self, other: "MovieRef") -> bool:
        if self.id is not None and other.id is not None:
            return self.id == other.id
        return self.title == other.title and self.year == other.year


class MovieDetails(BaseModel):
    genres: list[str] = Field(default_factory=list)
    rating: float | None = None
    overview: str | None = None
    runtime: int | None = None


# --- Network models ---


class NetworkNode(BaseModel):
    id: str
    movie: MovieRef
    depth: int = Field(ge=0)
    details: MovieDetails | None = None
    color_category: str | None = None

    @property
    def title(self) -> str:
        return self.movie.title

    @property
    def rating(self) -> float | None:
        return self.details.rating if self.details else None

    @property
    def genres(self) -> list[str]:
        return self.details.genres if self.details else []


class NetworkEdge(BaseModel):
    """Directed storage of an undirected relation between two node ids."""
    source: str
    target: str


class NetworkSettings(BaseModel):
    show_labels: bool = True
    color_scheme: str = "default"
    color_mode: ColorMode = ColorMode.DEPTH
    hidden_categories: dict[str, list[str]] = Field(default_factory=dict)


class NetworkMetadata(BaseModel):
    total_movies: int = 0
    total_connections: int = 0
    max_depth: int = 0
    average_rating: float | None = None
    genres: list[str] = Field(default_factory=list)


class NetworkDocument(BaseModel):
    """Persistable snapshot of a network. Edges reference node ids only."""
    name: str
    description: str | None = None
    seed_movie: str | None = None
    nodes: list[NetworkNode] = Field(default_factory=list)
    edges: list[NetworkEdge] = Field(default_factory=list)
    settings: NetworkSettings = Field(default_factory=NetworkSettings)
    metadata: NetworkMetadata | None = None


class SavedNetworkRow(BaseModel):
    """Saved network summary as listed from the store (no node/edge payload)."""
    id: str
    name: str
    description: str | None = None
    seed_movie: str | None = None
    metadata: NetworkMetadata
    created_at: str
    updated_at: str


# --- Visualization payload ---


class VisNode(BaseModel):
    id: int
    name: str
    title: str
    year: int | None = None
    depth: int
    group: int
    movie_id: str | None = None


class VisLink(BaseModel):
    source: int
    target: int
    value: int = 1


class GraphData(BaseModel):
    nodes: list[VisNode] = Field(default_factory=list)
    links: list[VisLink] = Field(default_factory=list)


# --- Interactive session models ---


class Notification(BaseModel):
    id: int
    level: NotificationLevel
    message: str


class DataAvailability(BaseModel):
    mode: ColorMode
    available: int
    missing: int


class EnrichmentResult(BaseModel):
    requested: int = 0
    loaded: int = 0
    failed: list[str] = Field(default_factory=list)
