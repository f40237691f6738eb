from sqlalchemy import Column, DateTime, String

from regdesk.db.base import Base, BaseModel


class User(Base, BaseModel):
    __tablename__ = "users"

    username = Column(String, unique=True, nullable=False)
    password = Column(String, nullable=False)  # compared verbatim
    status = Column(String, default="active", nullable=False)

    def __repr__(self):
        return f"<User {self.username} ({self.status})>"


class AuthSession(Base, BaseModel):
    __tablename__ = "auth_sessions"

    token = Column(String, unique=True, nullable=False, index=True)
    username = Column(String, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<AuthSession {self.username} until {self.expires_at:%Y-%m-%d %H:%M}>"
