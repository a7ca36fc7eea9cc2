from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional


def _dedupe(ids: List[int]) -> List[int]:
    # ensemble ordonné: on garde la première occurrence
    seen = set()
    return [i for i in ids if not (i in seen or seen.add(i))]


def _non_blank(formula: Optional[str]) -> Optional[str]:
    if formula is None:
        return None
    formula = formula.strip()
    if not formula or formula == "=":
        raise ValueError("La formule ne peut pas être vide")
    return formula


# ✅ AverageFormulaConfig: formule active d'une classe
class AverageFormulaConfig(BaseModel):
    class_id: int
    divisor: float
    formula: str
    selected_subject_ids: List[int] = []

    model_config = ConfigDict(from_attributes=True)

    @field_validator("selected_subject_ids")
    @classmethod
    def _ordered_set(cls, v):
        return _dedupe(v)


# ✅ création: la formule peut être générée à partir des matières retenues
class AverageFormulaConfigCreate(BaseModel):
    class_id: int
    divisor: float = Field(..., gt=0)
    formula: Optional[str] = None
    selected_subject_ids: List[int] = Field(..., min_length=1)

    @field_validator("selected_subject_ids")
    @classmethod
    def _ordered_set(cls, v):
        return _dedupe(v)

    @field_validator("formula")
    @classmethod
    def _formula_not_blank(cls, v):
        return _non_blank(v)


# ✅ mise à jour partielle
class AverageFormulaConfigUpdate(BaseModel):
    divisor: Optional[float] = Field(default=None, gt=0)
    formula: Optional[str] = None
    selected_subject_ids: Optional[List[int]] = None
    is_active: Optional[bool] = None

    @field_validator("formula")
    @classmethod
    def _formula_not_blank(cls, v):
        return _non_blank(v)


# ✅ sortie
class AverageFormulaConfigOut(AverageFormulaConfig):
    id: int
    is_active: bool = True
