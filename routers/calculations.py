from fastapi import APIRouter

from schemas.results import FormulaPreview, FormulaPreviewRequest
from services.calculation.formula import evaluate_formula_detailed

router = APIRouter(prefix="/calculations", tags=["calculs"])


# ✅ [PREVIEW] aperçu d'une formule sur un jeu de notes
# - utilisé par l'écran de configuration pour montrer un exemple en direct
@router.post("/preview")
def preview_formula(body: FormulaPreviewRequest):
    result = evaluate_formula_detailed(body.formula, body.grades, body.divisor)
    return {
        "success": True,
        "data": FormulaPreview(
            formula=body.formula,
            expression=result.expression,
            result=result.value,
            used_fallback=result.used_fallback,
        ).model_dump(mode="json"),
        "message": "Repli sur somme / diviseur" if result.used_fallback else "Formule évaluée"
    }
