from enum import Enum


class SourceType(Enum):
    """Music catalog sources"""

    JAMENDO = "jamendo"  # licensed catalog
    FMA = "fma"  # Free Music Archive, hosted on archive.org
    AUDIUS = "audius"  # decentralized catalog
    YTMUSIC = "ytmusic"  # video platform, streamed through mirrors

    @classmethod
    def parse(cls, value: str) -> "SourceType":
        """Parse a source tag, case-insensitive"""
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            raise ValueError(f"Unknown source: {value!r}") from None

    @property
    def uses_mirrors(self) -> bool:
        return self is SourceType.YTMUSIC
