from datetime import datetime, timezone

from sqlalchemy import Column, Integer, Float, Boolean, DateTime, ForeignKey, UniqueConstraint
from database.db import Base

class Note(Base):
    __tablename__ = "notes"  # une note par (élève, matière, évaluation)
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "evaluation_id", name="uq_note_student_subject_evaluation"),
    )

    id = Column(Integer, primary_key=True, index=True)                                   # identifiant (PK)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)  # élève
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)  # matière
    evaluation_id = Column(Integer, ForeignKey("evaluations.id"), nullable=False, index=True)  # évaluation
    value = Column(Float, nullable=False, default=0.0)                                   # note brute
    is_absent = Column(Boolean, nullable=False, default=False)                           # absent à l'épreuve
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
