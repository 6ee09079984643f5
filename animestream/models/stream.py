"""
Stream Models
Source candidates produced by page extraction and the resolver's terminal result
"""
from dataclasses import dataclass
from typing import Optional


class MediaKind:
    HLS = "hls"
    MP4 = "mp4"
    IFRAME = "iframe"
    OTHER = "other"
    NONE = "none"

    RESOLVED_KINDS = (HLS, MP4, OTHER, NONE)
    DIRECT_KINDS = (HLS, MP4)


@dataclass(frozen=True)
class SourceCandidate:
    """A URL listed on an episode page that may lead to playable media"""
    url: str
    kind: str
    label: Optional[str] = None
    quality: str = "auto"

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "quality": self.quality,
            "type": self.kind,
            "server": self.label,
        }


@dataclass(frozen=True)
class ResolvedStream:
    """Outcome of a resolution; unresolved results carry no URL"""
    success: bool
    stream_url: str = ""
    media_kind: str = MediaKind.NONE

    @classmethod
    def unresolved(cls) -> "ResolvedStream":
        return cls(success=False, stream_url="", media_kind=MediaKind.NONE)

    @classmethod
    def found(cls, stream_url: str, media_kind: str) -> "ResolvedStream":
        # iframe is a pre-resolution kind only
        if media_kind not in MediaKind.RESOLVED_KINDS or media_kind == MediaKind.NONE:
            media_kind = MediaKind.OTHER
        return cls(success=True, stream_url=stream_url, media_kind=media_kind)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "streamUrl": self.stream_url,
            "type": self.media_kind,
        }
