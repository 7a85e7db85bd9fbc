from sqlalchemy import Column, String, Text, DateTime, Uuid, func
import uuid
from planner.db.session import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    image = Column(String(1024), nullable=True)
    # Storage key of an uploaded profile image; null for external image URLs
    image_key = Column(String(512), nullable=True)
    bio = Column(Text, nullable=True)
    # Accounts created through the identity provider have no local password
    hashed_password = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
