"""
schemas/results.py

Enregistrements produits par le moteur de calcul (services/calculation):
  1) StudentPeriodResult / PeriodReport : une évaluation, élèves classés
  2) StudentAnnualResult / AnnualReport : bilan annuel et décision
  3) FormulaPreview : aperçu d'une formule pour l'écran de configuration
"""

from __future__ import annotations

import math
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, PlainSerializer

Decision = Literal["ADMIS", "REDOUBLER", ""]


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    # JSON n'accepte ni inf ni nan (diviseur nul côté API distante)
    if value is None or not math.isfinite(value):
        return None
    return value


# moyenne sérialisée en JSON: null si non finie
Score = Annotated[float, PlainSerializer(_finite_or_none, when_used="json")]


# =========================================================
# 1) Résultats par évaluation
# =========================================================

class StudentPeriodResult(BaseModel):
    student_id: int
    student_name: Optional[str] = None
    gender: Optional[str] = None
    notes: Dict[int, Score] = Field(default_factory=dict, description="subject_id -> note")
    total: Score
    average: Score
    rank: int = Field(..., ge=1)


class GenderCounts(BaseModel):
    """Effectifs ventilés garçons / filles / total"""
    garcons: int = 0
    filles: int = 0
    total: int = 0


class PeriodStatistics(BaseModel):
    inscrits: GenderCounts
    presents: GenderCounts
    admis: GenderCounts
    pourcentage_admis: int = 0
    moyenne_classe: Optional[Score] = None
    plus_forte_moyenne: Optional[Score] = None
    plus_faible_moyenne: Optional[Score] = None
    moyenne_admission: float


class PeriodReport(BaseModel):
    class_id: int
    evaluation_id: int
    formula_configured: bool = Field(..., description="False: moyenne simple, inviter à configurer la formule")
    results: List[StudentPeriodResult]
    statistics: PeriodStatistics


# =========================================================
# 2) Bilan annuel
# =========================================================

class StudentAnnualResult(BaseModel):
    student_id: int
    student_name: Optional[str] = None
    gender: Optional[str] = None
    moy_compo1: Optional[Score] = None
    moy_compo2: Optional[Score] = None
    moy_compo3: Optional[Score] = None
    moy_annuelle: Optional[Score] = None
    moy_compo_passage: Optional[Score] = None
    mga: Optional[Score] = None
    decision: Decision = ""


class AnnualStatistics(BaseModel):
    inscrits: GenderCounts
    presents: GenderCounts
    abandons: GenderCounts
    admis: GenderCounts
    redoublants: GenderCounts
    pourcentage_admis: int = 0
    moyenne_generale_classe: Optional[Score] = None


class AnnualReport(BaseModel):
    class_id: int
    school_year_id: Optional[int] = None
    moyenne_admission: float
    moyenne_redoublement: float
    max_note: int
    results: List[StudentAnnualResult]
    statistics: AnnualStatistics


# =========================================================
# 3) Aperçu de formule
# =========================================================

class FormulaPreviewRequest(BaseModel):
    formula: str = Field(..., examples=["=(Maths + Français) ÷ 2"])
    grades: Dict[str, float] = Field(default_factory=dict, description="nom de matière -> note")
    divisor: float = Field(1.0, gt=0)


class FormulaPreview(BaseModel):
    formula: str
    expression: Optional[str] = Field(default=None, description="formule après substitution des notes")
    result: Optional[Score]
    used_fallback: bool
