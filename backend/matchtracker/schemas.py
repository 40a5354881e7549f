from typing import List, Literal, Optional
from datetime import date as date_type, datetime
from pydantic import BaseModel, Field, field_validator, ConfigDict

Side = Literal["player", "opponent"]
Hand = Literal["fh", "bh"]

MAX_OPPONENT_NAME_LENGTH = 200


def _reject_bool(value, field_name: str):
    # bool is a subclass of int; scores must be real integers
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer")
    return value


class ShotRef(BaseModel):
    """Opaque shot reference plus the hand it was played with."""

    shot_id: str = Field(..., min_length=1)
    hand: Hand = "fh"
    lucky: bool = False

    model_config = ConfigDict(frozen=True, extra="forbid")


class ShotCategoryOut(BaseModel):
    id: str
    name: str
    display_order: int = 0

    model_config = ConfigDict(from_attributes=True)


class ShotOut(BaseModel):
    id: str
    category_id: str
    name: str
    display_name: str
    display_order: int = 0
    description: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MatchCreate(BaseModel):
    opponent_name: str = Field(..., min_length=1, max_length=MAX_OPPONENT_NAME_LENGTH)
    date: date_type = Field(default_factory=date_type.today)
    notes: Optional[str] = None
    initial_server: Side = "player"
    best_of: int = 5
    user_id: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("opponent_name", mode="before")
    @classmethod
    def _validate_opponent_name(cls, value: str) -> str:
        if not isinstance(value, str):
            raise ValueError("opponent_name must be a string")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("opponent_name must not be empty")
        return trimmed

    @field_validator("best_of", mode="before")
    @classmethod
    def _validate_best_of(cls, value):
        value = _reject_bool(value, "best_of")
        if not isinstance(value, int) or value <= 0 or value % 2 == 0:
            raise ValueError("best_of must be a positive odd integer")
        return value


class MatchUpdate(BaseModel):
    match_score: Optional[str] = Field(default=None, pattern=r"^\d+-\d+$")
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class MatchOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    opponent_name: str
    date: date_type
    match_score: str = "0-0"
    notes: Optional[str] = None
    initial_server: Side = "player"
    best_of: int = 5
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SetCreate(BaseModel):
    match_id: str
    set_number: int = Field(..., ge=1)
    player_score: int = Field(default=0, ge=0)
    opponent_score: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("set_number", "player_score", "opponent_score", mode="before")
    @classmethod
    def _no_bools(cls, value, info):
        return _reject_bool(value, info.field_name)


class SetUpdate(BaseModel):
    player_score: int = Field(..., ge=0)
    opponent_score: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("player_score", "opponent_score", mode="before")
    @classmethod
    def _no_bools(cls, value, info):
        return _reject_bool(value, info.field_name)


class SetOut(BaseModel):
    id: str
    match_id: str
    set_number: int
    player_score: int = 0
    opponent_score: int = 0
    score: str = "0-0"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PointCreate(BaseModel):
    match_id: str
    set_id: str
    point_number: int = Field(..., ge=1)
    winner: Side
    winning_shot_id: str = Field(..., min_length=1)
    winning_hand: Optional[Hand] = None
    is_lucky_shot: bool = False
    other_shot_id: str = Field(..., min_length=1)
    other_hand: Optional[Hand] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_refs(
        cls,
        *,
        match_id: str,
        set_id: str,
        point_number: int,
        winner: str,
        winning_shot: ShotRef,
        other_shot: ShotRef,
    ) -> "PointCreate":
        return cls(
            match_id=match_id,
            set_id=set_id,
            point_number=point_number,
            winner=winner,
            winning_shot_id=winning_shot.shot_id,
            winning_hand=winning_shot.hand,
            is_lucky_shot=winning_shot.lucky,
            other_shot_id=other_shot.shot_id,
            other_hand=other_shot.hand,
        )


class PointOut(BaseModel):
    id: str
    match_id: str
    set_id: str
    point_number: int
    winner: Side
    winning_shot_id: str
    winning_hand: Optional[Hand] = None
    is_lucky_shot: bool = False
    other_shot_id: str
    other_hand: Optional[Hand] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def winning_shot(self) -> ShotRef:
        return ShotRef(
            shot_id=self.winning_shot_id,
            hand=self.winning_hand or "fh",
            lucky=self.is_lucky_shot,
        )

    @property
    def other_shot(self) -> ShotRef:
        return ShotRef(shot_id=self.other_shot_id, hand=self.other_hand or "fh")

    def records_shots(self, winning_shot: ShotRef, other_shot: ShotRef) -> bool:
        """Whether this point stores these shots.

        Only the winning shot carries a lucky flag.
        """
        return self.winning_shot == winning_shot and (
            self.other_shot_id,
            self.other_hand or "fh",
        ) == (other_shot.shot_id, other_shot.hand)


class SetScoreOut(BaseModel):
    set_number: int
    player_score: int
    opponent_score: int
    set_id: Optional[str] = None
    complete: bool = False
    winner: Optional[Side] = None


class EngineSnapshot(BaseModel):
    """Read-only view of a match in progress, for rendering."""

    match_id: str
    opponent_name: str
    match_score: str
    current_set_number: int
    sets: List[SetScoreOut]
    point_count: int
    current_server: Side
    phase: str
    selected_winner: Optional[Side] = None
    pending_winning_shot: Optional[ShotRef] = None
    pending_other_shot: Optional[ShotRef] = None
    can_undo: bool = False
    match_complete: bool = False
