from sqlalchemy import Column, Integer, Float, ForeignKey
from database.db import Base

class ClassThreshold(Base):
    __tablename__ = "class_thresholds"  # seuils de classe

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, unique=True)
    moyenne_admission = Column(Float, nullable=False, default=10.0)     # seuil ADMIS
    moyenne_redoublement = Column(Float, nullable=False, default=8.5)   # seuil de redoublement
    max_note = Column(Integer, nullable=False, default=20)              # barème
