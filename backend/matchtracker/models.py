from sqlalchemy.orm import relationship
from sqlalchemy import (
    Column,
    String,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Boolean,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from .db import Base


class ShotCategory(Base):
    __tablename__ = "shot_category"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    display_order = Column(Integer, nullable=False, default=0)

    shots = relationship(
        "Shot",
        order_by="Shot.display_order",
        back_populates="category",
    )


class Shot(Base):
    __tablename__ = "shot"
    id = Column(String, primary_key=True)
    category_id = Column(String, ForeignKey("shot_category.id"), nullable=False)
    name = Column(String, nullable=False)
    display_name = Column(String, nullable=False)
    display_order = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)

    category = relationship("ShotCategory", back_populates="shots")


class Match(Base):
    __tablename__ = "match"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=True)
    opponent_name = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    match_score = Column(String, nullable=False, default="0-0")
    notes = Column(Text, nullable=True)
    initial_server = Column(String, nullable=False, default="player")  # "player" | "opponent"
    best_of = Column(Integer, nullable=False, default=5)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )


class MatchSet(Base):
    __tablename__ = "match_set"
    id = Column(String, primary_key=True)
    match_id = Column(String, ForeignKey("match.id"), nullable=False)
    set_number = Column(Integer, nullable=False)
    player_score = Column(Integer, nullable=False, default=0)
    opponent_score = Column(Integer, nullable=False, default=0)
    score = Column(String, nullable=False, default="0-0")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "match_id",
            "set_number",
            name="uq_match_set_match_id_set_number",
        ),
    )


class Point(Base):
    __tablename__ = "point"
    id = Column(String, primary_key=True)
    match_id = Column(String, ForeignKey("match.id"), nullable=False)
    set_id = Column(String, ForeignKey("match_set.id"), nullable=False)
    point_number = Column(Integer, nullable=False)
    winner = Column(String, nullable=False)  # "player" | "opponent"
    winning_shot_id = Column(String, nullable=False)
    winning_hand = Column(String, nullable=True)  # "fh" | "bh"
    is_lucky_shot = Column(Boolean, nullable=False, default=False)
    other_shot_id = Column(String, nullable=False)
    other_hand = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
