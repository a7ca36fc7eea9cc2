from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from database.db import Base

class Student(Base):
    __tablename__ = "students"  # élèves

    id = Column(Integer, primary_key=True, index=True)                   # identifiant élève (PK)
    name = Column(String(150), nullable=False)                           # nom complet
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)  # classe d'inscription
    gender = Column(String(1))                                           # 'M' ou 'F'
    student_number = Column(String(30))                                  # matricule
    is_active = Column(Boolean, default=True)                            # inscrit dans l'effectif actif
