from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.data import get_grade_source
from models.classes import Class as ClassModel
from models.evaluations import Evaluation as EvaluationModel
from models.school_years import SchoolYear as SchoolYearModel
from services.calculation.annual import AnnualAggregator
from services.calculation.period import PeriodAggregator
from services.errors import NotFoundError
from services.pdf_service import PDFService
from services.sql_grade_source import SqlGradeSource

router = APIRouter(prefix="/exports", tags=["exports"])

pdf_service = PDFService()


def _class_name(db: Session, class_id: int) -> str:
    cls = db.query(ClassModel).filter(ClassModel.id == class_id).first()
    if cls is None:
        raise NotFoundError("Classe non trouvée")
    return cls.name


def _school_year_name(db: Session, school_year_id: Optional[int]) -> Optional[str]:
    if school_year_id is None:
        return None
    year = db.query(SchoolYearModel).filter(SchoolYearModel.id == school_year_id).first()
    return year.name if year else None


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"}


# ✅ [HTML] bilan annuel
@router.get("/bilan/{class_id}.html", response_class=HTMLResponse)
def export_bilan_html(
    class_id: int,
    school_year_id: Optional[int] = None,
    db: Session = Depends(get_db),
    source: SqlGradeSource = Depends(get_grade_source),
):
    class_name = _class_name(db, class_id)
    report = AnnualAggregator(source).compute(class_id, school_year_id)
    return HTMLResponse(pdf_service.render_bilan_html(report, class_name, _school_year_name(db, school_year_id)))


# ✅ [PDF] bilan annuel
@router.get("/bilan/{class_id}.pdf")
def export_bilan_pdf(
    class_id: int,
    school_year_id: Optional[int] = None,
    db: Session = Depends(get_db),
    source: SqlGradeSource = Depends(get_grade_source),
):
    class_name = _class_name(db, class_id)
    school_year = _school_year_name(db, school_year_id)
    report = AnnualAggregator(source).compute(class_id, school_year_id)
    return Response(
        content=pdf_service.generate_bilan_pdf(report, class_name, school_year),
        media_type="application/pdf",
        headers=_attachment(f"Bilan_Annuel_{class_name}_{school_year or ''}.pdf"),
    )


# ✅ [PDF] moyennes d'une évaluation (sans enregistrement)
@router.get("/moyennes/{class_id}/{evaluation_id}.pdf")
def export_moyennes_pdf(
    class_id: int,
    evaluation_id: int,
    db: Session = Depends(get_db),
    source: SqlGradeSource = Depends(get_grade_source),
):
    class_name = _class_name(db, class_id)
    evaluation = db.query(EvaluationModel).filter(EvaluationModel.id == evaluation_id).first()
    if evaluation is None:
        raise NotFoundError("Évaluation non trouvée")

    report = PeriodAggregator(source).compute(class_id, evaluation_id, persist=False)
    return Response(
        content=pdf_service.generate_moyennes_pdf(report, class_name, evaluation.nom),
        media_type="application/pdf",
        headers=_attachment(f"Moyennes_{class_name}_{evaluation.nom}.pdf"),
    )
