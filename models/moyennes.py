from sqlalchemy import Column, Integer, Float, Boolean, Date, ForeignKey, UniqueConstraint
from database.db import Base

class Moyenne(Base):
    __tablename__ = "moyennes"  # moyenne calculée d'un élève pour une évaluation
    __table_args__ = (
        UniqueConstraint("student_id", "evaluation_id", name="uq_moyenne_student_evaluation"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    evaluation_id = Column(Integer, ForeignKey("evaluations.id"), nullable=False, index=True)
    moyenne = Column(Float, nullable=False)                 # moyenne arrondie à 2 décimales
    date = Column(Date)                                     # date du dernier calcul
    is_active = Column(Boolean, default=True)
