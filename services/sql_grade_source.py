import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.class_average_configs import ClassAverageConfig as ClassAverageConfigModel
from models.class_thresholds import ClassThreshold as ClassThresholdModel
from models.evaluations import Evaluation as EvaluationModel
from models.moyennes import Moyenne as MoyenneModel
from models.notes import Note as NoteModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel
from schemas.class_average_configs import AverageFormulaConfig
from schemas.class_thresholds import ClassThreshold
from schemas.evaluations import Evaluation
from schemas.moyennes import PeriodAverage
from schemas.notes import SubjectGrade
from schemas.students import Student
from schemas.subjects import Subject
from services.errors import GradeSourceError
from services.grade_source import GradeSource

logger = logging.getLogger(__name__)


class SqlGradeSource(GradeSource):
    """GradeSource adossé à la base SQLAlchemy de l'application."""

    def __init__(self, db: Session):
        self.db = db

    # ==========================================================
    # [Lecture]
    # ==========================================================

    def fetch_formula_config(self, class_id: int) -> Optional[AverageFormulaConfig]:
        row = self._first(
            self.db.query(ClassAverageConfigModel).filter(
                ClassAverageConfigModel.class_id == class_id,
                ClassAverageConfigModel.is_active.is_(True),
            )
        )
        return AverageFormulaConfig.model_validate(row) if row else None

    def fetch_class_threshold(self, class_id: int) -> Optional[ClassThreshold]:
        row = self._first(self.db.query(ClassThresholdModel).filter(ClassThresholdModel.class_id == class_id))
        return ClassThreshold.model_validate(row) if row else None

    def fetch_students(self, class_id: int) -> List[Student]:
        rows = self._all(
            self.db.query(StudentModel)
            .filter(StudentModel.class_id == class_id, StudentModel.is_active.is_(True))
            .order_by(StudentModel.id)
        )
        return [Student.model_validate(r) for r in rows]

    def fetch_subjects(self, class_id: int) -> List[Subject]:
        rows = self._all(
            self.db.query(SubjectModel).filter(SubjectModel.class_id == class_id).order_by(SubjectModel.id)
        )
        return [Subject.model_validate(r) for r in rows]

    def fetch_evaluations(self, class_id: int, school_year_id: Optional[int] = None) -> List[Evaluation]:
        query = self.db.query(EvaluationModel).filter(EvaluationModel.class_id == class_id)
        if school_year_id is not None:
            query = query.filter(EvaluationModel.school_year_id == school_year_id)
        return [Evaluation.model_validate(r) for r in self._all(query.order_by(EvaluationModel.id))]

    def fetch_grades_for_evaluation(self, class_id: int, evaluation_id: int) -> List[SubjectGrade]:
        rows = self._all(
            self.db.query(NoteModel)
            .join(StudentModel, StudentModel.id == NoteModel.student_id)
            .filter(StudentModel.class_id == class_id, NoteModel.evaluation_id == evaluation_id)
            .order_by(NoteModel.id)
        )
        return [SubjectGrade.model_validate(r) for r in rows]

    def fetch_grades_for_subject(self, class_id: int, subject_id: int) -> List[SubjectGrade]:
        rows = self._all(
            self.db.query(NoteModel)
            .join(StudentModel, StudentModel.id == NoteModel.student_id)
            .filter(StudentModel.class_id == class_id, NoteModel.subject_id == subject_id)
            .order_by(NoteModel.id)
        )
        return [SubjectGrade.model_validate(r) for r in rows]

    # ==========================================================
    # [Écriture] upsert atomique (INSERT ... ON CONFLICT / ON DUPLICATE KEY),
    # la dernière écriture l'emporte, une validation par appel
    # ==========================================================

    def upsert_period_average(self, record: PeriodAverage) -> None:
        self.save_period_averages(record.evaluation_id, [record])

    def deactivate_period_averages(self, evaluation_id: int, student_ids: Iterable[int]) -> None:
        self.save_period_averages(evaluation_id, [], student_ids)

    def save_period_averages(
        self, evaluation_id: int, records: List[PeriodAverage], stale_student_ids: Iterable[int] = ()
    ) -> None:
        stale = list(stale_student_ids)
        try:
            if records:
                self._upsert(
                    MoyenneModel,
                    [
                        {
                            "student_id": r.student_id,
                            "evaluation_id": r.evaluation_id,
                            "moyenne": r.average,
                            "date": r.date,
                            "is_active": True,
                        }
                        for r in records
                    ],
                    keys=["student_id", "evaluation_id"],
                    columns=["moyenne", "date", "is_active"],
                )
            deactivated = 0
            if stale:
                deactivated = (
                    self.db.query(MoyenneModel)
                    .filter(
                        MoyenneModel.evaluation_id == evaluation_id,
                        MoyenneModel.student_id.in_(stale),
                        MoyenneModel.is_active.is_(True),
                    )
                    .update({MoyenneModel.is_active: False}, synchronize_session=False)
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise GradeSourceError(f"Échec d'enregistrement des moyennes: {e}") from e

        if deactivated:
            logger.info("Évaluation %s: %d moyenne(s) désactivée(s)", evaluation_id, deactivated)

    def upsert_notes(self, notes: Iterable[SubjectGrade]) -> List[NoteModel]:
        """Enregistre des notes, clé (élève, matière, évaluation). Une absence est stockée à 0."""
        now = datetime.now(timezone.utc)
        # une seule ligne par clé dans l'instruction: la dernière saisie l'emporte
        rows = {
            (n.student_id, n.subject_id, n.evaluation_id): {
                "student_id": n.student_id,
                "subject_id": n.subject_id,
                "evaluation_id": n.evaluation_id,
                "value": 0.0 if n.is_absent else n.value,
                "is_absent": n.is_absent,
                "updated_at": now,
            }
            for n in notes
        }
        if not rows:
            return []
        try:
            self._upsert(
                NoteModel,
                list(rows.values()),
                keys=["student_id", "subject_id", "evaluation_id"],
                columns=["value", "is_absent", "updated_at"],
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise GradeSourceError(f"Échec d'enregistrement des notes: {e}") from e

        student_ids = {k[0] for k in rows}
        saved = [
            row for row in self._all(
                self.db.query(NoteModel)
                .filter(
                    NoteModel.student_id.in_(student_ids),
                    NoteModel.subject_id.in_({k[1] for k in rows}),
                    NoteModel.evaluation_id.in_({k[2] for k in rows}),
                )
                .order_by(NoteModel.id)
            )
            if (row.student_id, row.subject_id, row.evaluation_id) in rows
        ]
        logger.info("%d note(s) enregistrée(s)", len(saved))
        return saved

    # ==========================================================
    # [Interne]
    # ==========================================================

    def _upsert(self, model, rows: List[dict], keys: List[str], columns: List[str]):
        """INSERT ... ON CONFLICT DO UPDATE (sqlite, postgresql) / ON DUPLICATE KEY UPDATE (mysql)"""
        dialect = self.db.get_bind().dialect.name
        if dialect in ("mysql", "mariadb"):
            stmt = mysql.insert(model).values(rows)
            stmt = stmt.on_duplicate_key_update({c: stmt.inserted[c] for c in columns})
        elif dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(model).values(rows)
            stmt = stmt.on_conflict_do_update(index_elements=keys, set_={c: stmt.excluded[c] for c in columns})
        else:
            raise GradeSourceError(f"Upsert non pris en charge pour la base {dialect}")
        self.db.execute(stmt)

    def _first(self, query):
        try:
            return query.first()
        except SQLAlchemyError as e:
            raise GradeSourceError(f"Erreur de lecture en base: {e}") from e

    def _all(self, query):
        try:
            return query.all()
        except SQLAlchemyError as e:
            raise GradeSourceError(f"Erreur de lecture en base: {e}") from e
