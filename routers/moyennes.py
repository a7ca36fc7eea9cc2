import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.data import get_grade_source
from dependencies.security import require_api_token
from models.evaluations import Evaluation as EvaluationModel
from models.moyennes import Moyenne as MoyenneModel
from models.students import Student as StudentModel
from schemas.moyennes import MoyenneOut
from services.calculation.period import PeriodAggregator
from services.errors import NotFoundError
from services.sql_grade_source import SqlGradeSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/moyennes", tags=["moyennes"])


# ==========================================================
# [CALCUL] moyennes d'une évaluation
# - calcule, classe et enregistre (upsert élève + évaluation)
# - relancer le calcul écrase les moyennes existantes
# ==========================================================
@router.post("/calculate/{class_id}/{evaluation_id}", dependencies=[Depends(require_api_token)])
def calculate_moyennes(
    class_id: int,
    evaluation_id: int,
    db: Session = Depends(get_db),
    source: SqlGradeSource = Depends(get_grade_source),
):
    evaluation = db.query(EvaluationModel).filter(EvaluationModel.id == evaluation_id).first()
    if evaluation is None or evaluation.class_id != class_id:
        raise NotFoundError("Évaluation non trouvée pour cette classe")

    report = PeriodAggregator(source).compute(class_id, evaluation_id)
    return {
        "success": True,
        "data": report.model_dump(mode="json"),
        "message": "Moyennes calculées" if report.formula_configured
        else "Moyennes calculées (moyenne simple: configurez la formule de la classe)"
    }


# ✅ [READ] aperçu sans enregistrement
@router.get("/preview/{class_id}/{evaluation_id}")
def preview_moyennes(class_id: int, evaluation_id: int, source: SqlGradeSource = Depends(get_grade_source)):
    report = PeriodAggregator(source).compute(class_id, evaluation_id, persist=False)
    return {"success": True, "data": report.model_dump(mode="json")}


# ✅ [READ] moyennes enregistrées d'une évaluation, par ordre décroissant
@router.get("/evaluation/{evaluation_id}")
def read_moyennes_by_evaluation(evaluation_id: int, db: Session = Depends(get_db)):
    records = (
        db.query(MoyenneModel)
        .filter(MoyenneModel.evaluation_id == evaluation_id, MoyenneModel.is_active.is_(True))
        .order_by(MoyenneModel.moyenne.desc(), MoyenneModel.id)
        .all()
    )
    return {
        "success": True,
        "data": [MoyenneOut.model_validate(r).model_dump() for r in records],
        "message": "Moyennes récupérées avec succès"
    }


# ✅ [READ] moyennes enregistrées d'une classe (toutes évaluations)
@router.get("/class/{class_id}")
def read_moyennes_by_class(class_id: int, db: Session = Depends(get_db)):
    records = (
        db.query(MoyenneModel)
        .join(StudentModel, StudentModel.id == MoyenneModel.student_id)
        .filter(StudentModel.class_id == class_id, MoyenneModel.is_active.is_(True))
        .order_by(MoyenneModel.evaluation_id, MoyenneModel.moyenne.desc())
        .all()
    )
    return {"success": True, "data": [MoyenneOut.model_validate(r).model_dump() for r in records]}
