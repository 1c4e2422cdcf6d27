from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from envindo.models.base import Base

class ActivityLog(Base):
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_user_timestamp", "user_id", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Actor of the change; kept nullable for system jobs
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True)

    activity_type_category = Column(String, nullable=False)
    activity_description = Column(Text, nullable=False)

    user = relationship("Users", back_populates="activity_logs")
