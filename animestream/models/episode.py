"""
Episode Models
Structured data parsed from an episode page
"""
from dataclasses import dataclass, field
from typing import List, Optional

from .stream import SourceCandidate


@dataclass(frozen=True)
class Server:
    id: str
    name: str
    url: str


@dataclass(frozen=True)
class DownloadLink:
    url: str
    quality: str
    size: Optional[str] = None


@dataclass
class EpisodeDetails:
    """Episode metadata plus its ordered source candidates"""
    id: str
    title: str
    episode_number: int = 1
    season_number: int = 1
    thumbnail: str = ""
    sources: List[SourceCandidate] = field(default_factory=list)
    downloads: List[DownloadLink] = field(default_factory=list)
    servers: List[Server] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "episodeNumber": self.episode_number,
            "seasonNumber": self.season_number,
            "thumbnail": self.thumbnail,
            "sources": [s.to_dict() for s in self.sources],
        }
        if self.downloads:
            data["downloads"] = [{"url": d.url, "quality": d.quality, "size": d.size} for d in self.downloads]
        if self.servers:
            data["servers"] = [{"id": s.id, "name": s.name, "url": s.url} for s in self.servers]
        return data
