from pydantic import BaseModel, ConfigDict, Field
from typing import List

# ✅ SubjectGrade: une note par (élève, matière, évaluation)
class SubjectGrade(BaseModel):
    student_id: int                          # élève
    subject_id: int                          # matière
    evaluation_id: int                       # évaluation
    value: float = 0.0                       # note brute
    is_absent: bool = False                  # absent à l'épreuve

    model_config = ConfigDict(from_attributes=True)


# ✅ entrée de saisie: une ligne du tableau de notes
class NoteUpsert(SubjectGrade):
    value: float = Field(0.0, ge=0)


# ✅ saisie groupée (enregistrement de la page Notes)
class NoteBulkUpsert(BaseModel):
    class_id: int
    notes: List[NoteUpsert] = Field(..., min_length=1)


# ✅ sortie: note persistée
class Note(SubjectGrade):
    id: int
