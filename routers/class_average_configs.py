from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_api_token
from models.class_average_configs import ClassAverageConfig as ClassAverageConfigModel
from models.classes import Class as ClassModel
from models.subjects import Subject as SubjectModel
from schemas.class_average_configs import (
    AverageFormulaConfigCreate,
    AverageFormulaConfigOut,
    AverageFormulaConfigUpdate,
)
from services.calculation.formula import build_formula
from services.errors import ConflictError, NotFoundError, ScolarFlowError

router = APIRouter(prefix="/class-average-configs", tags=["formules de moyenne"])


def _subject_names(db: Session, class_id: int, subject_ids, strict: bool = True) -> list:
    """Noms des matières retenues, dans l'ordre de sélection"""
    rows = db.query(SubjectModel).filter(SubjectModel.class_id == class_id).all()
    names = {s.id: s.name for s in rows}
    unknown = [sid for sid in subject_ids if sid not in names]
    if unknown and not strict:
        return [names[sid] for sid in subject_ids if sid in names]
    if unknown:
        raise ScolarFlowError(f"Matière(s) {unknown} absente(s) de la classe {class_id}", code="UNKNOWN_SUBJECT")
    return [names[sid] for sid in subject_ids]


def _out(row: ClassAverageConfigModel) -> dict:
    return AverageFormulaConfigOut.model_validate(row).model_dump()


# ==========================================================
# [CRUD]
# ==========================================================

# ✅ [CREATE] formule d'une classe
# - sans formule saisie: =(A + B + ...) ÷ diviseur, générée depuis la sélection
@router.post("/", dependencies=[Depends(require_api_token)])
def create_config(new_config: AverageFormulaConfigCreate, db: Session = Depends(get_db)):
    if db.query(ClassModel).filter(ClassModel.id == new_config.class_id).first() is None:
        raise NotFoundError("Classe non trouvée")
    if db.query(ClassAverageConfigModel).filter(ClassAverageConfigModel.class_id == new_config.class_id).first():
        raise ConflictError("Une configuration existe déjà pour cette classe")

    names = _subject_names(db, new_config.class_id, new_config.selected_subject_ids)
    db_config = ClassAverageConfigModel(
        class_id=new_config.class_id,
        divisor=new_config.divisor,
        formula=new_config.formula or build_formula(names, new_config.divisor),
        selected_subject_ids=new_config.selected_subject_ids,
        is_active=True,
    )
    db.add(db_config)
    db.commit()
    db.refresh(db_config)
    return {"success": True, "data": _out(db_config), "message": "Configuration créée avec succès"}


# ✅ [READ] toutes les configurations actives
@router.get("/")
def read_configs(db: Session = Depends(get_db)):
    records = db.query(ClassAverageConfigModel).filter(ClassAverageConfigModel.is_active.is_(True)).all()
    return {"success": True, "data": [_out(r) for r in records]}


# ✅ [READ] configuration d'une classe
@router.get("/class/{class_id}")
def read_class_config(class_id: int, db: Session = Depends(get_db)):
    config = db.query(ClassAverageConfigModel).filter(ClassAverageConfigModel.class_id == class_id).first()
    if config is None:
        return {"success": False, "error": {"code": 404, "message": "Aucune formule configurée pour cette classe"}}
    return {"success": True, "data": _out(config)}


# ✅ [UPDATE] modification partielle
# - nouvelle sélection sans formule saisie: la formule est régénérée
# - nouveau diviseur seul: une formule générée est régénérée, une formule saisie est conservée
@router.put("/{config_id}", dependencies=[Depends(require_api_token)])
def update_config(config_id: int, updated: AverageFormulaConfigUpdate, db: Session = Depends(get_db)):
    config = db.query(ClassAverageConfigModel).filter(ClassAverageConfigModel.id == config_id).first()
    if config is None:
        raise NotFoundError("Configuration non trouvée")

    changes = {k: v for k, v in updated.model_dump(exclude_unset=True).items() if v is not None}
    if "selected_subject_ids" in changes:
        ids = list(dict.fromkeys(changes["selected_subject_ids"]))
        names = _subject_names(db, config.class_id, ids)
        changes["selected_subject_ids"] = ids
        if not changes.get("formula"):
            changes["formula"] = build_formula(names, changes.get("divisor", config.divisor))
    elif "divisor" in changes and "formula" not in changes:
        # formule générée: le diviseur affiché suit la nouvelle valeur
        names = _subject_names(db, config.class_id, config.selected_subject_ids or [], strict=False)
        if names and config.formula == build_formula(names, config.divisor):
            changes["formula"] = build_formula(names, changes["divisor"])

    for key, value in changes.items():
        setattr(config, key, value)

    db.commit()
    db.refresh(config)
    return {"success": True, "data": _out(config), "message": "Configuration mise à jour"}


# ✅ [DELETE]
@router.delete("/{config_id}", dependencies=[Depends(require_api_token)])
def delete_config(config_id: int, db: Session = Depends(get_db)):
    config = db.query(ClassAverageConfigModel).filter(ClassAverageConfigModel.id == config_id).first()
    if config is None:
        raise NotFoundError("Configuration non trouvée")
    db.delete(config)
    db.commit()
    return {"success": True, "data": {"config_id": config_id}, "message": "Configuration supprimée"}
