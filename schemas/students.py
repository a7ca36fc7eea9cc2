from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional

# ✅ élève de l'effectif d'une classe
class Student(BaseModel):
    id: int
    name: str
    class_id: int
    gender: Optional[Literal["M", "F"]] = None
    student_number: Optional[str] = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)
