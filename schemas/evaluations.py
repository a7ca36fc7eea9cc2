import datetime as dt
from pydantic import BaseModel, ConfigDict
from typing import Optional

# ✅ évaluation d'une classe (période)
class Evaluation(BaseModel):
    id: int
    nom: str
    class_id: int
    school_year_id: Optional[int] = None
    date: Optional[dt.date] = None

    model_config = ConfigDict(from_attributes=True)
