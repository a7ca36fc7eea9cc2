from sqlalchemy import Column, Integer, String
from database.db import Base

class Class(Base):
    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, index=True)      # identifiant de la classe (PK)
    name = Column(String(100), nullable=False)              # nom affiché (ex: CM2 A)
    level = Column(String(50))                              # niveau (ex: CM2, 6e)
    user_id = Column(Integer, index=True)                   # enseignant propriétaire
