from typing import Optional

from fastapi import APIRouter, Depends

from dependencies.data import get_grade_source
from services.calculation.annual import AnnualAggregator
from services.sql_grade_source import SqlGradeSource

router = APIRouter(prefix="/bilan", tags=["bilan annuel"])


# ✅ [READ] bilan annuel d'une classe
# - EVALUATION N°1..3 + COMPOSITION DE PASSAGE -> MGA -> décision
# - liste triée par MGA décroissante, élèves sans MGA en fin de liste
@router.get("/{class_id}")
def read_bilan(
    class_id: int,
    school_year_id: Optional[int] = None,
    source: SqlGradeSource = Depends(get_grade_source),
):
    report = AnnualAggregator(source).compute(class_id, school_year_id)
    return {
        "success": True,
        "data": report.model_dump(mode="json"),
        "message": f"Bilan annuel: {report.statistics.admis.total}/{report.statistics.inscrits.total} admis"
    }
