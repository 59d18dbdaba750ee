from enum import Enum


class Platform(str, Enum):
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"


class CampaignState(str, Enum):
    NOT_CONTACTED = "not_contacted"
    CONTACTED = "contacted"
    CONFIRMED = "confirmed"
    CONTENT_POSTED = "content_posted"

    @classmethod
    def values(cls) -> list[str]:
        return [state.value for state in cls]
