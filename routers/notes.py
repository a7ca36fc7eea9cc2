from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.data import get_grade_source
from dependencies.security import require_api_token
from models.notes import Note as NoteModel
from models.students import Student as StudentModel
from schemas.class_thresholds import ClassThreshold
from schemas.notes import Note, NoteBulkUpsert
from services.calculation.period import PeriodAggregator
from services.errors import ScolarFlowError
from services.sql_grade_source import SqlGradeSource

router = APIRouter(prefix="/notes", tags=["notes"])


# ==========================================================
# [READ] notes d'une classe, filtrées par évaluation et/ou matière
# ==========================================================
@router.get("/")
def read_notes(
    class_id: int,
    evaluation_id: Optional[int] = None,
    subject_id: Optional[int] = None,
    db: Session = Depends(get_db),
):
    query = (
        db.query(NoteModel)
        .join(StudentModel, StudentModel.id == NoteModel.student_id)
        .filter(StudentModel.class_id == class_id)
    )
    if evaluation_id is not None:
        query = query.filter(NoteModel.evaluation_id == evaluation_id)
    if subject_id is not None:
        query = query.filter(NoteModel.subject_id == subject_id)

    records = query.order_by(NoteModel.id).all()
    return {
        "success": True,
        "data": [Note.model_validate(r).model_dump() for r in records],
        "message": f"{len(records)} note(s)"
    }


# ==========================================================
# [UPSERT] enregistrement de la saisie des notes
# - clé (élève, matière, évaluation): la dernière écriture l'emporte
# - les moyennes des évaluations touchées sont recalculées
# ==========================================================
@router.put("/bulk", dependencies=[Depends(require_api_token)])
def upsert_notes(payload: NoteBulkUpsert, source: SqlGradeSource = Depends(get_grade_source)):
    threshold = source.fetch_class_threshold(payload.class_id) or ClassThreshold.default_for(payload.class_id)
    too_high = [n for n in payload.notes if not n.is_absent and n.value > threshold.max_note]
    if too_high:
        raise ScolarFlowError(
            f"{len(too_high)} note(s) supérieure(s) au barème ({threshold.max_note})",
            code="NOTE_OUT_OF_RANGE",
            status_code=422,
        )

    saved = source.upsert_notes(payload.notes)

    evaluation_ids = sorted({n.evaluation_id for n in payload.notes})
    aggregator = PeriodAggregator(source)
    recalculated = {
        evaluation_id: len(aggregator.compute(payload.class_id, evaluation_id).results)
        for evaluation_id in evaluation_ids
    }

    return {
        "success": True,
        "data": {
            "notes": [Note.model_validate(r).model_dump() for r in saved],
            "moyennes_recalculees": recalculated,
        },
        "message": "Notes enregistrées avec succès"
    }
