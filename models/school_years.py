from sqlalchemy import Column, Integer, String, Date, Boolean
from database.db import Base

class SchoolYear(Base):
    __tablename__ = "school_years"  # années scolaires

    id = Column(Integer, primary_key=True, index=True)     # identifiant (PK)
    name = Column(String(20), nullable=False)              # libellé (ex: 2024-2025)
    start_date = Column(Date)                              # début d'année
    end_date = Column(Date)                                # fin d'année
    is_active = Column(Boolean, default=False)             # année en cours
