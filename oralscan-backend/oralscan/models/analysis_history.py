# oralscan/models/analysis_history.py
from sqlalchemy import Column, DateTime, Integer, String, Text

from oralscan.database.db import Base


class AnalysisHistory(Base):
    __tablename__ = "analysis_history"

    id = Column(String(64), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # anonymous client id (X-Client-Id), semua query di-scope dengan ini
    user_id = Column(String(64), nullable=False, index=True)

    image_url = Column(Text, nullable=False)
    health_score = Column(Integer, nullable=False)
    primary_condition = Column(String(64), nullable=False)
    analysis_data = Column(Text, nullable=True)  # JSON
