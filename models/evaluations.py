from sqlalchemy import Column, Integer, String, Date, ForeignKey
from database.db import Base

class Evaluation(Base):
    __tablename__ = "evaluations"  # périodes d'évaluation (EVALUATION N°1, ..., COMPOSITION DE PASSAGE)

    id = Column(Integer, primary_key=True, index=True)                          # identifiant (PK)
    nom = Column(String(100), nullable=False)                                   # libellé exact
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    school_year_id = Column(Integer, ForeignKey("school_years.id"), index=True)
    date = Column(Date)                                                         # date de passage
