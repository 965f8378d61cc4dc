import uuid
from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    name = Column(String, nullable=False)

    created_tasks = relationship("Task", back_populates="creator", passive_deletes=True)
    assignments = relationship("TaskAssignment", back_populates="user", passive_deletes=True)
