from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from schemas.class_average_configs import AverageFormulaConfig
from schemas.class_thresholds import ClassThreshold
from schemas.evaluations import Evaluation
from schemas.moyennes import PeriodAverage
from schemas.notes import SubjectGrade
from schemas.students import Student
from schemas.subjects import Subject


class GradeSource(ABC):
    """
    Collaborateur d'accès aux données consommé par le moteur de calcul.
    Les implémentations lèvent GradeSourceError en cas d'échec d'accès.
    """

    @abstractmethod
    def fetch_formula_config(self, class_id: int) -> Optional[AverageFormulaConfig]: ...

    @abstractmethod
    def fetch_class_threshold(self, class_id: int) -> Optional[ClassThreshold]: ...

    @abstractmethod
    def fetch_students(self, class_id: int) -> List[Student]: ...

    @abstractmethod
    def fetch_subjects(self, class_id: int) -> List[Subject]: ...

    @abstractmethod
    def fetch_evaluations(self, class_id: int, school_year_id: Optional[int] = None) -> List[Evaluation]: ...

    @abstractmethod
    def fetch_grades_for_evaluation(self, class_id: int, evaluation_id: int) -> List[SubjectGrade]: ...

    @abstractmethod
    def fetch_grades_for_subject(self, class_id: int, subject_id: int) -> List[SubjectGrade]: ...

    @abstractmethod
    def upsert_period_average(self, record: PeriodAverage) -> None: ...

    @abstractmethod
    def deactivate_period_averages(self, evaluation_id: int, student_ids: Iterable[int]) -> None:
        """Retire de l'affichage les moyennes d'élèves sortis du classement (absence, notes supprimées)."""

    def save_period_averages(
        self, evaluation_id: int, records: List[PeriodAverage], stale_student_ids: Iterable[int] = ()
    ) -> None:
        """
        Enregistre le résultat d'un calcul: upsert des moyennes classées,
        désactivation des autres élèves de l'effectif.
        Les implémentations transactionnelles le font en une seule validation.
        """
        for record in records:
            self.upsert_period_average(record)
        stale = list(stale_student_ids)
        if stale:
            self.deactivate_period_averages(evaluation_id, stale)
