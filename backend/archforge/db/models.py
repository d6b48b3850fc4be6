from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ArchitectureRecord(Base):
    __tablename__ = "architectures"

    id = Column(String(64), primary_key=True)
    requirements = Column(Text)
    payload = Column(Text, nullable=False)  # ArchitectureGraph.to_dict() as JSON
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
