"""Profile model: display names, owned by the profile subsystem; read here for joins."""
from sqlalchemy import Column, String

from phishguard.db.session import Base


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(64), primary_key=True)
    full_name = Column(String(255), nullable=True)
