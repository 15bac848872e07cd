from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from authcore.core.database import Base


class User(Base):
    """
    User model representing registered principals.

    Stores the login name and the encoded password hash.
    Passwords are stored as hashes (never plaintext).
    """
    __tablename__ = "users"
    # Ids are never reused, even after a delete (SQLite reuses rowids otherwise)
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    # Display form, exactly as entered at sign-up
    username = Column(String(64), nullable=False)
    # Case-folded username - the unique constraint makes uniqueness case-insensitive
    username_key = Column(String(64), unique=True, index=True, nullable=False)
    # Full bcrypt encoding: algorithm id + cost + salt + digest (60 chars)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
