"""
services/calculation/annual.py

Bilan annuel d'une classe.

    moy_annuelle = moyenne des évaluations N°1..N°3 disponibles
    mga          = (moy_annuelle + 2 x moy_compo_passage) / 3, si les deux existent
    décision     = ADMIS si mga >= moyenne_admission, sinon REDOUBLER ("" sans mga)

Les moyennes de période sont recalculées à partir des notes brutes (notes
d'absence écartées), indépendamment des moyennes déjà enregistrées.
"""

import logging
import math
from typing import Dict, List, Optional

from schemas.class_average_configs import AverageFormulaConfig
from schemas.class_thresholds import ClassThreshold
from schemas.evaluations import Evaluation
from schemas.notes import SubjectGrade
from schemas.results import AnnualReport, AnnualStatistics, StudentAnnualResult
from schemas.students import Student
from schemas.subjects import Subject
from services.calculation.period import (
    applicable_config,
    count_by_gender,
    group_by_student,
    load_subject_grades,
    student_average,
)
from services.calculation.rounding import mean, percent, round_half_up
from services.grade_source import GradeSource

logger = logging.getLogger(__name__)

EVALUATION_1 = "EVALUATION N°1"
EVALUATION_2 = "EVALUATION N°2"
EVALUATION_3 = "EVALUATION N°3"
COMPOSITION_PASSAGE = "COMPOSITION DE PASSAGE"

PERIODS = {
    "moy_compo1": EVALUATION_1,
    "moy_compo2": EVALUATION_2,
    "moy_compo3": EVALUATION_3,
    "moy_compo_passage": COMPOSITION_PASSAGE,
}

ADMIS = "ADMIS"
REDOUBLER = "REDOUBLER"


def find_periods(evaluations: List[Evaluation]) -> Dict[str, Optional[Evaluation]]:
    """Associe chaque période à l'évaluation de même nom exact (la première trouvée)."""
    found = {}
    for field, nom in PERIODS.items():
        found[field] = next((e for e in evaluations if e.nom == nom), None)
    return found


def compute_mga(moy_annuelle: Optional[float], moy_compo_passage: Optional[float]) -> Optional[float]:
    if moy_annuelle is None or moy_compo_passage is None:
        return None
    return (moy_annuelle + 2 * moy_compo_passage) / 3


def decide(mga: Optional[float], threshold: ClassThreshold) -> str:
    # le seuil de redoublement n'ouvre pas (encore) de troisième issue
    if mga is None:
        return ""
    return ADMIS if mga >= threshold.moyenne_admission else REDOUBLER


def _period_average(
    records: List[SubjectGrade], subjects: List[Subject], config: Optional[AverageFormulaConfig]
) -> Optional[float]:
    notes = {r.subject_id: r.value for r in records if not r.is_absent}
    return student_average(notes, subjects, config)


def annual_result(
    student: Student,
    grades_by_evaluation: Dict[str, List[SubjectGrade]],
    subjects: List[Subject],
    config: Optional[AverageFormulaConfig],
    threshold: ClassThreshold,
) -> StudentAnnualResult:
    """grades_by_evaluation: champ de période -> notes de l'élève pour cette évaluation"""
    averages = {
        field: _period_average(grades_by_evaluation[field], subjects, config)
        if field in grades_by_evaluation else None
        for field in PERIODS
    }
    moy_annuelle = mean([averages["moy_compo1"], averages["moy_compo2"], averages["moy_compo3"]])
    mga = compute_mga(moy_annuelle, averages["moy_compo_passage"])
    # arrondi à l'affichage seulement; la décision porte sur la MGA affichée
    moy_annuelle = round_half_up(moy_annuelle) if moy_annuelle is not None else None
    mga = round_half_up(mga) if mga is not None else None

    return StudentAnnualResult(
        student_id=student.id,
        student_name=student.name,
        gender=student.gender,
        moy_annuelle=moy_annuelle,
        mga=mga,
        decision=decide(mga, threshold),
        **averages,
    )


def sort_by_mga(results: List[StudentAnnualResult]) -> List[StudentAnnualResult]:
    """MGA décroissante, élèves sans MGA en fin de liste (ordre d'origine conservé)."""
    return sorted(results, key=lambda r: -math.inf if r.mga is None else r.mga, reverse=True)


def annual_statistics(students: List[Student], results: List[StudentAnnualResult]) -> AnnualStatistics:
    presents = [
        r for r in results
        if any(getattr(r, field) is not None for field in PERIODS)
    ]
    admis = [r for r in results if r.decision == ADMIS]
    redoublants = [r for r in results if r.decision == REDOUBLER]
    inscrits = count_by_gender(students)
    presents_counts = count_by_gender(presents)
    mga_mean = mean(r.mga for r in results)

    return AnnualStatistics(
        inscrits=inscrits,
        presents=presents_counts,
        abandons={
            "garcons": inscrits.garcons - presents_counts.garcons,
            "filles": inscrits.filles - presents_counts.filles,
            "total": inscrits.total - presents_counts.total,
        },
        admis=count_by_gender(admis),
        redoublants=count_by_gender(redoublants),
        pourcentage_admis=percent(len(admis), inscrits.total),
        moyenne_generale_classe=round_half_up(mga_mean) if mga_mean is not None else None,
    )


class AnnualAggregator:
    def __init__(self, source: GradeSource):
        self.source = source

    def compute(self, class_id: int, school_year_id: Optional[int] = None) -> AnnualReport:
        students = self.source.fetch_students(class_id)
        subjects = self.source.fetch_subjects(class_id)
        config = applicable_config(self.source.fetch_formula_config(class_id), subjects)
        threshold = self.source.fetch_class_threshold(class_id) or ClassThreshold.default_for(class_id)
        periods = find_periods(self.source.fetch_evaluations(class_id, school_year_id))

        # toutes les notes de la classe, matière par matière, avant tout calcul
        by_student = group_by_student(load_subject_grades(self.source, class_id, subjects))

        results = []
        for student in students:
            records = by_student.get(student.id, [])
            grades_by_evaluation = {
                field: [r for r in records if r.evaluation_id == evaluation.id]
                for field, evaluation in periods.items()
                if evaluation is not None
            }
            results.append(annual_result(student, grades_by_evaluation, subjects, config, threshold))

        results = sort_by_mga(results)
        logger.info(
            "Bilan annuel: classe=%s année=%s élèves=%d périodes=%s",
            class_id, school_year_id, len(results),
            [PERIODS[f] for f, e in periods.items() if e is not None],
        )
        return AnnualReport(
            class_id=class_id,
            school_year_id=school_year_id,
            moyenne_admission=threshold.moyenne_admission,
            moyenne_redoublement=threshold.moyenne_redoublement,
            max_note=threshold.max_note,
            results=results,
            statistics=annual_statistics(students, results),
        )
