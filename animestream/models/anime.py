"""
Anime Models
Series and movie detail pages: metadata, seasons with their episodes, related titles
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class EpisodeInfo:
    id: str
    episode_number: int
    season_number: int
    title: str
    url: str
    thumbnail: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "episodeNumber": self.episode_number,
            "seasonNumber": self.season_number,
            "title": self.title,
            "thumbnail": self.thumbnail,
            "url": self.url,
        }


@dataclass
class Season:
    season_number: int
    episodes: List[EpisodeInfo] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "seasonNumber": self.season_number,
            "episodes": [e.to_dict() for e in self.episodes],
        }


@dataclass(frozen=True)
class RelatedTitle:
    id: str
    title: str
    url: str
    poster: str = ""
    type: str = "series"

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "poster": self.poster, "url": self.url, "type": self.type}


@dataclass
class AnimeDetails:
    """Detail page of a series or movie.

    ``languages_detected`` is True when the language list came from keyword
    matching over the page text instead of the page's language links.
    """
    id: str
    title: str
    url: str
    type: str = "series"
    poster: str = ""
    description: str = ""
    genres: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=list)
    languages_detected: bool = False
    rating: Optional[str] = None
    status: Optional[str] = None
    seasons: List[Season] = field(default_factory=list)
    related: List[RelatedTitle] = field(default_factory=list)

    @property
    def total_episodes(self) -> int:
        return sum(len(s.episodes) for s in self.seasons)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "poster": self.poster,
            "url": self.url,
            "description": self.description,
            "genres": list(self.genres),
            "languages": list(self.languages),
            "languagesDetected": self.languages_detected,
            "type": self.type,
        }
        if self.rating:
            data["rating"] = self.rating
        if self.status:
            data["status"] = self.status
        if self.type == "series":
            data["totalEpisodes"] = self.total_episodes
        if self.seasons:
            data["seasons"] = [s.to_dict() for s in self.seasons]
        if self.related:
            data["related"] = [r.to_dict() for r in self.related]
        return data
