"""
REST API for the football fantasy backend.
Thin wrappers around the services and persistence.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from football_backend.auth import (
    create_access_token,
    decode_token,
    hash_password,
    is_valid_admin_key,
    verify_password,
)
from football_backend.config import DEFAULT_COMPETITION, DEFAULT_SEED_PATH, LOG_LEVEL
from football_backend.errors import (
    ConflictError,
    FootballError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from football_backend.models import Position
from football_backend.persistence import (
    CompetitionRepository,
    MatchRepository,
    UserRepository,
    get_connection,
    init_db,
)
from football_backend.persistence.db import get_db_path
from football_backend.services import FantasyService, GameweekService, LeagueService
from football_backend.squad import PickRequest

logger = logging.getLogger(__name__)


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    seed = DEFAULT_SEED_PATH if DEFAULT_SEED_PATH.exists() else None
    init_db(db_path=get_db_path(), seed_path=seed)
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Football Fantasy API",
    description="League standings, stats and fantasy teams scored from match facts",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_STATUS: dict[type[FootballError], int] = {
    NotFoundError: 404,
    ValidationFailedError: 400,
    ForbiddenError: 403,
    ConflictError: 409,
}


@app.exception_handler(FootballError)
async def football_error_handler(request: Request, exc: FootballError) -> JSONResponse:
    status = next((code for cls, code in _ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    body: dict[str, Any] = {"detail": str(exc)}
    if isinstance(exc, ValidationFailedError):
        body["rule"] = exc.rule.value
    return JSONResponse(status_code=status, content=body)


# ---------- Request/Response models ----------

security = HTTPBearer(auto_error=False)


class SignupRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6)
    display_name: str | None = Field(None, max_length=100)


class LoginRequest(BaseModel):
    username: str
    password: str


class CreateFantasyTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    competition: str = Field(DEFAULT_COMPETITION, description="Competition code")


class PickSlot(BaseModel):
    player_id: str
    position: Position
    is_captain: bool = False
    is_vice_captain: bool = False


class UpdatePicksRequest(BaseModel):
    picks: list[PickSlot]


class ScoreRoundRequest(BaseModel):
    competition: str = Field(DEFAULT_COMPETITION, description="Competition code")
    round: int = Field(..., ge=1)


def _get_current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> str | None:
    """Return user_id from JWT or None if no/invalid token."""
    if credentials is None:
        return None
    return decode_token(credentials.credentials)


def _require_user_id(user_id: str | None = Depends(_get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required")
    return user_id


def _require_admin(x_admin_key: str | None = Header(None)) -> None:
    if not is_valid_admin_key(x_admin_key):
        logger.warning("Admin request rejected: missing or invalid admin key")
        raise HTTPException(status_code=401, detail="Invalid admin key")


# ---------- Auth ----------


@app.post("/signup")
def signup(req: SignupRequest) -> dict[str, Any]:
    """Create account. Passwords hashed, never stored plain."""
    with db_conn() as conn:
        user_repo = UserRepository()
        if user_repo.get_by_username(conn, req.username):
            raise HTTPException(status_code=400, detail="Username already taken")
        user = user_repo.create(conn, req.username, hash_password(req.password), display_name=req.display_name)
        token = create_access_token(user.id)
        return {"user_id": user.id, "username": user.username, "token": token}


@app.post("/login")
def login(req: LoginRequest) -> dict[str, Any]:
    with db_conn() as conn:
        user = UserRepository().get_by_username(conn, req.username)
        if user is None or not verify_password(req.password, user.password_hash):
            raise HTTPException(status_code=401, detail="Invalid username or password")
        token = create_access_token(user.id)
        return {"user_id": user.id, "username": user.username, "token": token}


@app.get("/profile")
def get_profile(user_id: str = Depends(_require_user_id)) -> dict[str, Any]:
    """The logged-in user."""
    with db_conn() as conn:
        user = UserRepository().get(conn, user_id)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        return user.to_dict()


# ---------- League ----------


@app.get("/competitions")
def list_competitions() -> dict[str, Any]:
    with db_conn() as conn:
        return {"competitions": [c.to_dict() for c in CompetitionRepository().list_all(conn)]}


@app.get("/competitions/{code}/standings")
def get_standings(code: str) -> dict[str, Any]:
    """League table: points, goal difference, goals for, then team name."""
    with db_conn() as conn:
        rows = LeagueService().standings(conn, code)
        return {
            "competition": code,
            "standings": [{"position": i, **row.to_dict()} for i, row in enumerate(rows, start=1)],
        }


@app.get("/competitions/{code}/stats")
def get_stats(code: str) -> dict[str, Any]:
    with db_conn() as conn:
        return {"competition": code, **LeagueService().league_leaders(conn, code).to_dict()}


@app.get("/competitions/{code}/matches")
def get_matches(code: str, round: int | None = Query(None, ge=1)) -> dict[str, Any]:
    with db_conn() as conn:
        competition = CompetitionRepository().get_by_code(conn, code)
        if competition is None:
            raise HTTPException(status_code=404, detail=f"Competition not found: {code}")
        matches = MatchRepository().list_by_competition(conn, competition.id, round)
        return {"competition": code, "matches": [m.to_dict() for m in matches]}


@app.get("/matches/{match_id}")
def get_match(match_id: str) -> dict[str, Any]:
    """Match with both clubs, lineups and events."""
    with db_conn() as conn:
        return LeagueService().match_detail(conn, match_id)


@app.get("/teams")
def list_teams() -> dict[str, Any]:
    with db_conn() as conn:
        return {"teams": [t.to_dict() for t in LeagueService().clubs(conn)]}


@app.get("/players")
def list_players(team_id: str | None = Query(None, description="Filter by club id")) -> dict[str, Any]:
    with db_conn() as conn:
        return {"players": [p.to_dict() for p in LeagueService().players(conn, team_id)]}


@app.get("/players/{player_id}")
def get_player(player_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return LeagueService().player(conn, player_id)


# ---------- Fantasy ----------


@app.get("/fantasy/leaderboard")
def get_leaderboard(competition: str = Query(DEFAULT_COMPETITION)) -> dict[str, Any]:
    with db_conn() as conn:
        return {"competition": competition, "leaderboard": FantasyService().get_leaderboard(conn, competition)}


@app.get("/fantasy/players")
def get_available_players(competition: str = Query(DEFAULT_COMPETITION)) -> dict[str, Any]:
    """Players selectable for a fantasy squad, most expensive first."""
    with db_conn() as conn:
        players = FantasyService().get_available_players(conn, competition)
        return {"competition": competition, "players": [p.to_dict() for p in players]}


@app.get("/fantasy/my-team")
def get_my_team(
    competition: str = Query(DEFAULT_COMPETITION),
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    with db_conn() as conn:
        return {"team": FantasyService().get_my_team(conn, user_id, competition)}


@app.post("/fantasy/teams")
def create_fantasy_team(
    req: CreateFantasyTeamRequest,
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    with db_conn() as conn:
        team = FantasyService().create_team(conn, user_id, req.competition, req.name)
        return team.to_dict()


@app.get("/fantasy/teams/{team_id}")
def get_fantasy_team(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        return FantasyService().get_team(conn, team_id)


@app.put("/fantasy/teams/{team_id}/picks")
def update_picks(
    team_id: str,
    req: UpdatePicksRequest,
    user_id: str = Depends(_require_user_id),
) -> dict[str, Any]:
    """Replace the full 15-player squad. Refused while a match in the competition is live."""
    picks = [
        PickRequest(
            player_id=p.player_id,
            position=p.position,
            is_captain=p.is_captain,
            is_vice_captain=p.is_vice_captain,
        )
        for p in req.picks
    ]
    with db_conn() as conn:
        svc = FantasyService()
        svc.update_picks(conn, user_id, team_id, picks)
        return svc.get_team(conn, team_id)


@app.get("/fantasy/teams/{team_id}/gameweeks")
def get_gameweek_history(team_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        history = FantasyService().get_gameweek_history(conn, team_id)
        return {"fantasy_team_id": team_id, "gameweeks": [g.to_dict() for g in history]}


@app.get("/fantasy/teams/{team_id}/gameweeks/{round}")
def get_gameweek_breakdown(team_id: str, round: int) -> dict[str, Any]:
    """Per-player points for one round, recomputed from match facts."""
    with db_conn() as conn:
        return GameweekService().gameweek_breakdown(conn, team_id, round).to_dict()


# ---------- Admin ----------


@app.post("/admin/score-round", dependencies=[Depends(_require_admin)])
def score_round(req: ScoreRoundRequest) -> dict[str, Any]:
    """Score one round for every fantasy team of the competition. No-op if nothing has finished."""
    with db_conn() as conn:
        summary = GameweekService().score_round(conn, req.competition, req.round)
        if summary is None:
            return {"scored": False, "round": req.round, "matches_processed": 0, "teams_updated": 0}
        return {"scored": True, **summary.to_dict()}
