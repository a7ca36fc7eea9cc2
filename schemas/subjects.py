from pydantic import BaseModel, ConfigDict

# ✅ matière: le nom est le jeton utilisé dans les formules
class Subject(BaseModel):
    id: int
    name: str
    class_id: int
    coefficient: float = 1.0

    model_config = ConfigDict(from_attributes=True)
