from fastapi import APIRouter, Depends, HTTPException, Query
from app.modules.practice.schemas import (
    PracticeSessionCreate, PracticeSessionUpdate, ExerciseProgressInput, SessionExerciseInput, SessionMood
)
from app.modules.practice.service import PracticeService, ExerciseService
from app.modules.challenges.routes import get_challenge_service
from app.modules.challenges.service import ChallengeService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/practice", tags=["practice"])


def get_practice_service(
    supabase: Client = Depends(get_request_supabase),
    challenges: ChallengeService = Depends(get_challenge_service)
) -> PracticeService:
    return PracticeService(supabase, challenges)


def get_exercise_service(supabase: Client = Depends(get_request_supabase)) -> ExerciseService:
    return ExerciseService(supabase)


@router.get("/sessions")
async def list_sessions(
    song_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    mood: Optional[SessionMood] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    """List practice sessions with optional filters"""
    return service.list_sessions(current_user["id"], song_id, start_date, end_date, mood, limit)


@router.post("/sessions", status_code=201)
async def create_session(
    data: PracticeSessionCreate,
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    return service.create_session(data, current_user["id"])


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    return service.get_session(session_id, current_user["id"])


@router.put("/sessions/{session_id}")
async def update_session(
    session_id: str,
    data: PracticeSessionUpdate,
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    return service.update_session(session_id, data, current_user["id"])


@router.delete("/sessions/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    if not service.delete_session(session_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Session non trouvée")


@router.post("/sessions/{session_id}/exercises", status_code=201)
async def record_session_exercise(
    session_id: str,
    data: SessionExerciseInput,
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    return service.record_session_exercise(session_id, data, current_user["id"])


@router.get("/stats")
async def practice_stats(
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    """Totals, this week's practice, streaks and most practiced song"""
    return service.get_stats(current_user["id"])


@router.get("/charts")
async def practice_charts(
    days_back: int = Query(365, ge=1, le=730),
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    return service.get_chart_data(current_user["id"], days_back)


@router.get("/songs/{song_id}/stats")
async def song_stats(
    song_id: str,
    current_user: Dict = Depends(get_current_user),
    service: PracticeService = Depends(get_practice_service)
):
    return service.get_song_stats(song_id, current_user["id"])


@router.get("/exercises")
async def list_exercises(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    current_user: Dict = Depends(get_current_user),
    service: ExerciseService = Depends(get_exercise_service)
):
    return service.list_exercises(current_user["id"], category, difficulty)


@router.get("/exercises/stats")
async def exercise_stats(
    current_user: Dict = Depends(get_current_user),
    service: ExerciseService = Depends(get_exercise_service)
):
    return service.get_stats(current_user["id"])


@router.get("/exercises/recent")
async def recent_exercises(
    limit: int = Query(5, ge=1, le=50),
    current_user: Dict = Depends(get_current_user),
    service: ExerciseService = Depends(get_exercise_service)
):
    return service.recently_practiced(current_user["id"], limit)


@router.get("/exercises/{exercise_id}")
async def get_exercise(
    exercise_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ExerciseService = Depends(get_exercise_service)
):
    return service.get_exercise(exercise_id, current_user["id"])


@router.post("/exercises/{exercise_id}/progress")
async def update_exercise_progress(
    exercise_id: str,
    data: ExerciseProgressInput,
    current_user: Dict = Depends(get_current_user),
    service: ExerciseService = Depends(get_exercise_service)
):
    """Record an exercise run: best BPM kept, minutes and sessions accumulated"""
    return service.update_progress(exercise_id, data, current_user["id"])
