from pydantic import BaseModel
from typing import Optional, Literal

ChallengeType = Literal["practice_time", "streak", "song_mastery"]
LeaderboardPeriod = Literal["week", "month"]


class ChallengeCreate(BaseModel):
    challenger_id: str
    challenge_type: ChallengeType
    duration_days: Literal[1, 3, 7, 14, 30] = 7
    song_id: Optional[str] = None
