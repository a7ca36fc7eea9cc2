from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.settings import settings
from database.db import get_db
from dependencies.security import require_api_token, require_role
from models.class_thresholds import ClassThreshold as ClassThresholdModel
from models.classes import Class as ClassModel
from schemas.class_thresholds import ClassThreshold, ClassThresholdOut
from services.errors import ConflictError, NotFoundError

router = APIRouter(prefix="/class-thresholds", tags=["seuils de classe"])


def _to_row(threshold: ClassThreshold) -> dict:
    return threshold.model_dump(exclude={"class_id"})


# ✅ [READ] tous les seuils
@router.get("/")
def read_thresholds(db: Session = Depends(get_db)):
    records = db.query(ClassThresholdModel).all()
    return {"success": True, "data": [ClassThresholdOut.model_validate(r).model_dump() for r in records]}


# ✅ [READ] seuils d'une classe (valeurs par défaut si non configurés)
@router.get("/class/{class_id}")
def read_class_threshold(class_id: int, db: Session = Depends(get_db)):
    row = db.query(ClassThresholdModel).filter(ClassThresholdModel.class_id == class_id).first()
    if row is None:
        return {
            "success": True,
            "data": {**ClassThreshold.default_for(class_id).model_dump(), "is_default": True},
            "message": "Seuils par défaut"
        }
    return {"success": True, "data": {**ClassThresholdOut.model_validate(row).model_dump(), "is_default": False}}


# ✅ [CREATE]
@router.post("/", dependencies=[Depends(require_api_token)])
def create_threshold(threshold: ClassThreshold, db: Session = Depends(get_db)):
    if db.query(ClassModel).filter(ClassModel.id == threshold.class_id).first() is None:
        raise NotFoundError("Classe non trouvée")
    if db.query(ClassThresholdModel).filter(ClassThresholdModel.class_id == threshold.class_id).first():
        raise ConflictError("Des seuils existent déjà pour cette classe")

    row = ClassThresholdModel(class_id=threshold.class_id, **_to_row(threshold))
    db.add(row)
    db.commit()
    db.refresh(row)
    return {"success": True, "data": ClassThresholdOut.model_validate(row).model_dump(), "message": "Seuils créés"}


# ✅ [UPDATE]
@router.put("/class/{class_id}", dependencies=[Depends(require_api_token)])
def update_threshold(class_id: int, threshold: ClassThreshold, db: Session = Depends(get_db)):
    row = db.query(ClassThresholdModel).filter(ClassThresholdModel.class_id == class_id).first()
    if row is None:
        raise NotFoundError("Seuils non trouvés pour cette classe")

    for key, value in _to_row(threshold).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return {"success": True, "data": ClassThresholdOut.model_validate(row).model_dump(), "message": "Seuils mis à jour"}


# ✅ [DELETE] réservé aux administrateurs
@router.delete(
    "/class/{class_id}",
    dependencies=[Depends(require_api_token), Depends(require_role(settings.ADMIN_ROLE))],
)
def delete_threshold(class_id: int, db: Session = Depends(get_db)):
    row = db.query(ClassThresholdModel).filter(ClassThresholdModel.class_id == class_id).first()
    if row is None:
        raise NotFoundError("Seuils non trouvés pour cette classe")
    db.delete(row)
    db.commit()
    return {"success": True, "data": {"class_id": class_id}, "message": "Seuils supprimés"}
