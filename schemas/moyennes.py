import datetime as dt
from pydantic import BaseModel, ConfigDict
from typing import Optional

# ✅ enregistrement "moyenne" (upsert par student_id + evaluation_id)
class PeriodAverage(BaseModel):
    student_id: int
    evaluation_id: int
    average: float
    date: dt.date


class MoyenneOut(BaseModel):
    id: int
    student_id: int
    evaluation_id: int
    moyenne: float
    date: Optional[dt.date] = None

    model_config = ConfigDict(from_attributes=True)
