"""TestItem model: read-only pool of photo/email items owned by the course-content side."""
from sqlalchemy import Boolean, Column, String, Text

from phishguard.db.session import Base


class TestItem(Base):
    __tablename__ = "test_items"
    __test__ = False  # not a pytest class

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(512), nullable=True)
    is_phishing = Column(Boolean, nullable=False)
    explanation = Column(Text, nullable=True)
    difficulty_level = Column(String(32), nullable=False, default="beginner")  # beginner | intermediate | advanced
    category = Column(String(64), nullable=True)
    # JSON array of indicator ids a careful reader should notice
    indicators_json = Column(Text, nullable=False, default="[]")
