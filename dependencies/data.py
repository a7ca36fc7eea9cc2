from fastapi import Depends
from sqlalchemy.orm import Session

from database.db import get_db
from services.sql_grade_source import SqlGradeSource


def get_grade_source(db: Session = Depends(get_db)) -> SqlGradeSource:
    """GradeSource de la requête, partagé par les routeurs de calcul"""
    return SqlGradeSource(db)
