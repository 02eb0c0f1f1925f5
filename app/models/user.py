from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from app.database import Base
from app.utils.timeutils import utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="USER")      # ADMIN or USER
    position = Column(String, nullable=True)                   # SalesPosition or NULL
    is_active = Column(Boolean, nullable=False, default=True)

    phone = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
