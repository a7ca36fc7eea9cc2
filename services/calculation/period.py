"""
services/calculation/period.py

Moyennes d'une évaluation (période) pour toute une classe:
  1) chargement des notes (par évaluation, ou matière par matière en mode dégradé)
  2) exclusion des absents: une seule note "absent" exclut l'élève de la période
  3) moyenne: formule de la classe si elle est applicable, sinon moyenne simple
  4) classement décroissant, rang = position (ordre d'origine en cas d'égalité)
  5) enregistrement des moyennes (upsert élève + évaluation), désactivation des élèves sortis du classement
"""

import datetime as dt
import logging
import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from schemas.class_average_configs import AverageFormulaConfig
from schemas.class_thresholds import ClassThreshold
from schemas.moyennes import PeriodAverage
from schemas.notes import SubjectGrade
from schemas.results import GenderCounts, PeriodReport, PeriodStatistics, StudentPeriodResult
from schemas.students import Student
from schemas.subjects import Subject
from services.calculation.formula import evaluate_formula
from services.calculation.rounding import mean, percent, round_half_up
from services.errors import GradeSourceError
from services.grade_source import GradeSource

logger = logging.getLogger(__name__)


# ==========================================================
# [Moyenne d'un élève] partagée par les notes, les moyennes et le bilan
# ==========================================================

def applicable_config(
    config: Optional[AverageFormulaConfig], subjects: Iterable[Subject]
) -> Optional[AverageFormulaConfig]:
    """La formule ne fait foi que si toutes ses matières existent encore dans la classe."""
    if config is None:
        return None
    subject_ids = {s.id for s in subjects}
    missing = [sid for sid in config.selected_subject_ids if sid not in subject_ids]
    if missing:
        logger.warning(
            "Formule de la classe %s ignorée: matière(s) %s supprimée(s), moyenne simple utilisée",
            config.class_id, missing,
        )
        return None
    return config


def student_average(
    notes: Dict[int, float],
    subjects: List[Subject],
    config: Optional[AverageFormulaConfig],
) -> Optional[float]:
    """
    notes: subject_id -> note (hors absences)
    Renvoie None si l'élève n'a aucune note.
    """
    if not notes:
        return None
    if config is None:
        return round_half_up(sum(notes.values()) / len(notes))

    names = {s.id: s.name for s in subjects}
    selected = set(config.selected_subject_ids)
    grades = {
        names[sid]: value
        for sid, value in notes.items()
        if sid in names and (not selected or sid in selected)
    }
    return evaluate_formula(config.formula, grades, config.divisor, subject_names=names.values())


def group_by_student(grades: Iterable[SubjectGrade]) -> Dict[int, List[SubjectGrade]]:
    grouped: Dict[int, List[SubjectGrade]] = OrderedDict()
    for grade in grades:
        grouped.setdefault(grade.student_id, []).append(grade)
    return grouped


def load_subject_grades(source: GradeSource, class_id: int, subjects: List[Subject]) -> List[SubjectGrade]:
    """Notes de la classe matière par matière; une matière en échec compte comme vide."""
    grades: List[SubjectGrade] = []
    for subject in subjects:
        try:
            grades.extend(source.fetch_grades_for_subject(class_id, subject.id))
        except GradeSourceError as e:
            logger.warning(
                "Impossible de charger les notes de la matière %s (%s): %s",
                subject.name, subject.id, e,
            )
    return grades


# ==========================================================
# [Statistiques d'une évaluation]
# ==========================================================

def count_by_gender(people: Iterable) -> GenderCounts:
    counts = GenderCounts()
    for p in people:
        counts.total += 1
        if p.gender == "M":
            counts.garcons += 1
        elif p.gender == "F":
            counts.filles += 1
    return counts


def period_statistics(
    students: List[Student], results: List[StudentPeriodResult], moyenne_admission: float
) -> PeriodStatistics:
    averages = [r.average for r in results]
    admis = [r for r in results if r.average >= moyenne_admission]
    inscrits = count_by_gender(students)
    class_mean = mean(averages)
    return PeriodStatistics(
        inscrits=inscrits,
        presents=count_by_gender(results),
        admis=count_by_gender(admis),
        pourcentage_admis=percent(len(admis), inscrits.total),
        moyenne_classe=round_half_up(class_mean) if class_mean is not None else None,
        plus_forte_moyenne=max(averages) if averages else None,
        plus_faible_moyenne=min(averages) if averages else None,
        moyenne_admission=moyenne_admission,
    )


# ==========================================================
# [Agrégateur]
# ==========================================================

class PeriodAggregator:
    def __init__(self, source: GradeSource, today: dt.date = None):
        self.source = source
        self.today = today

    def _grades(self, class_id: int, evaluation_id: int, subjects: List[Subject]) -> List[SubjectGrade]:
        try:
            grades = self.source.fetch_grades_for_evaluation(class_id, evaluation_id)
        except GradeSourceError as e:
            logger.warning(
                "Notes de l'évaluation %s indisponibles (%s), chargement matière par matière",
                evaluation_id, e,
            )
            grades = load_subject_grades(self.source, class_id, subjects)
        return [g for g in grades if g.evaluation_id == evaluation_id]

    def rank(
        self,
        students: List[Student],
        subjects: List[Subject],
        grades: List[SubjectGrade],
        config: Optional[AverageFormulaConfig],
    ) -> List[StudentPeriodResult]:
        """Calcul pur: notes d'une seule évaluation -> résultats classés."""
        by_student = group_by_student(grades)
        rows = []
        for student in students:
            records = by_student.get(student.id, [])
            if any(r.is_absent for r in records):
                continue
            notes = {r.subject_id: r.value for r in records}
            average = student_average(notes, subjects, config)
            if average is None:
                continue
            rows.append(
                StudentPeriodResult(
                    student_id=student.id,
                    student_name=student.name,
                    gender=student.gender,
                    notes=notes,
                    total=round_half_up(sum(notes.values())),
                    average=average,
                    rank=1,
                )
            )

        # tri stable: à moyenne égale, l'ordre de l'effectif est conservé
        rows.sort(key=lambda r: r.average, reverse=True)
        for idx, row in enumerate(rows, start=1):
            row.rank = idx
        return rows

    def _persist(self, evaluation_id: int, students: List[Student], results: List[StudentPeriodResult]):
        """
        Les moyennes enregistrées suivent les notes: un élève de l'effectif absent
        du classement (absence, plus aucune note) perd sa moyenne affichée.
        Une moyenne non finie (diviseur nul) n'est pas enregistrée.
        """
        day = self.today or dt.date.today()
        records = [
            PeriodAverage(student_id=row.student_id, evaluation_id=evaluation_id, average=row.average, date=day)
            for row in results
            if math.isfinite(row.average)
        ]
        if len(records) < len(results):
            logger.warning(
                "Évaluation %s: %d moyenne(s) non finie(s) non enregistrée(s), vérifier le diviseur",
                evaluation_id, len(results) - len(records),
            )
        kept = {r.student_id for r in records}
        stale = [s.id for s in students if s.id not in kept]
        self.source.save_period_averages(evaluation_id, records, stale)

    def compute(self, class_id: int, evaluation_id: int, persist: bool = True) -> PeriodReport:
        students = self.source.fetch_students(class_id)
        subjects = self.source.fetch_subjects(class_id)
        config = applicable_config(self.source.fetch_formula_config(class_id), subjects)
        threshold = self.source.fetch_class_threshold(class_id) or ClassThreshold.default_for(class_id)

        # toutes les notes de l'évaluation sont chargées avant le moindre calcul
        grades = self._grades(class_id, evaluation_id, subjects)
        results = self.rank(students, subjects, grades, config)

        if persist:
            self._persist(evaluation_id, students, results)

        logger.info(
            "Moyennes calculées: classe=%s évaluation=%s élèves=%d/%d formule=%s",
            class_id, evaluation_id, len(results), len(students), bool(config),
        )
        return PeriodReport(
            class_id=class_id,
            evaluation_id=evaluation_id,
            formula_configured=config is not None,
            results=results,
            statistics=period_statistics(students, results, threshold.moyenne_admission),
        )
