from pydantic import BaseModel, Field
from typing import Optional, List, Literal

SessionMood = Literal["frustrated", "neutral", "good", "great", "on_fire"]


class PracticeSessionCreate(BaseModel):
    song_id: Optional[str] = None
    duration_minutes: int = Field(..., gt=0)
    practiced_at: Optional[str] = None
    bpm_achieved: Optional[int] = Field(None, gt=0)
    mood: Optional[SessionMood] = None
    energy_level: Optional[int] = Field(None, ge=1, le=5)
    sections_worked: List[str] = []
    session_goals: Optional[str] = None
    goals_achieved: bool = False
    notes: Optional[str] = None


class PracticeSessionUpdate(BaseModel):
    song_id: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0)
    practiced_at: Optional[str] = None
    bpm_achieved: Optional[int] = Field(None, gt=0)
    mood: Optional[SessionMood] = None
    energy_level: Optional[int] = Field(None, ge=1, le=5)
    sections_worked: Optional[List[str]] = None
    session_goals: Optional[str] = None
    goals_achieved: Optional[bool] = None
    notes: Optional[str] = None


class ExerciseProgressInput(BaseModel):
    current_bpm: int = Field(..., gt=0)
    bpm_achieved: Optional[int] = Field(None, gt=0)
    duration_minutes: int = Field(..., ge=0)


class SessionExerciseInput(BaseModel):
    exercise_id: str
    duration_minutes: int = Field(..., ge=0)
    bpm_achieved: Optional[int] = Field(None, gt=0)
