from sqlalchemy import Column, Integer, String, Float, ForeignKey
from database.db import Base

class Subject(Base):
    __tablename__ = "subjects"  # matières

    id = Column(Integer, primary_key=True, index=True)                   # identifiant matière (PK)
    name = Column(String(100), nullable=False)                           # nom affiché, utilisé dans les formules
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)  # classe
    coefficient = Column(Float, default=1.0)                             # coefficient (informatif)
