from datetime import UTC, datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from lost_loot.db.base import Base


def _now() -> datetime:
    return datetime.now(UTC)


class TeamStateRecord(Base):
    __tablename__ = "team_states"

    team_id: Mapped[str] = mapped_column(String(50), primary_key=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_checkpoints: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)
    unlocked_checkpoints: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)
    keys_collected: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_now,
        nullable=False,
    )
