from sqlalchemy import Column, Integer, Float, String, Boolean, JSON, ForeignKey
from database.db import Base

class ClassAverageConfig(Base):
    __tablename__ = "class_average_configs"  # formule de calcul de la moyenne, une par classe

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, unique=True)
    divisor = Column(Float, nullable=False)                         # diviseur (> 0)
    formula = Column(String(500), nullable=False)                   # ex: =(Maths + Français) ÷ 2
    selected_subject_ids = Column(JSON, nullable=False, default=list)  # matières retenues, dans l'ordre
    is_active = Column(Boolean, default=True)
