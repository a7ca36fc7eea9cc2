from pydantic import BaseModel, ConfigDict, Field, model_validator

from config.settings import settings


# ✅ seuils de classe
class ClassThreshold(BaseModel):
    class_id: int
    moyenne_admission: float = Field(settings.DEFAULT_MOYENNE_ADMISSION, ge=0)
    moyenne_redoublement: float = Field(settings.DEFAULT_MOYENNE_REDOUBLEMENT, ge=0)
    max_note: int = Field(settings.DEFAULT_MAX_NOTE, gt=0)

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _check_order(self):
        if self.moyenne_redoublement > self.moyenne_admission:
            raise ValueError("moyenne_redoublement ne peut pas dépasser moyenne_admission")
        if self.moyenne_admission > self.max_note:
            raise ValueError("moyenne_admission ne peut pas dépasser max_note")
        return self

    @classmethod
    def default_for(cls, class_id: int) -> "ClassThreshold":
        """Seuils par défaut (10 / 8.5) quand la classe n'est pas configurée."""
        return cls(class_id=class_id)


class ClassThresholdOut(ClassThreshold):
    id: int
