from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, func, text

from photoshare.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(60), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)

    is_admin = Column(Boolean, nullable=False, server_default=text("false"), default=False)
    is_active = Column(Boolean, nullable=False, server_default=text("true"), default=True)

    # photo ids this user has already voted on
    votes = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
