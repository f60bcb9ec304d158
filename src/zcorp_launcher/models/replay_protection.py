# src/zcorp_launcher/models/replay_protection.py
"""Models supporting durable replay protection."""


from sqlalchemy import BigInteger, Text
from sqlalchemy.orm import Mapped, mapped_column

from zcorp_launcher.db.session import Base


class UsedNonce(Base):
    """Record indicating that a request nonce has already been accepted."""

    __tablename__ = "used_nonce"

    # Existence means "already seen"; the primary key makes acceptance atomic.
    nonce: Mapped[str] = mapped_column(Text, primary_key=True)
    # Timestamp embedded in the nonce, used by the TTL sweep.
    issued_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
