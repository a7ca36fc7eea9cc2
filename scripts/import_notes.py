import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal
from schemas.notes import SubjectGrade
from services.sql_grade_source import SqlGradeSource

CSV_PATH = "data/notes.csv"  # ✅ fichier source

def migrate_notes():
    db: Session = SessionLocal()

    with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        notes = [
            SubjectGrade(
                student_id=int(row["student_id"]),                  # élève
                subject_id=int(row["subject_id"]),                  # matière
                evaluation_id=int(row["evaluation_id"]),            # évaluation
                value=float((row.get("value") or "0").replace(",", ".")),  # note
                is_absent=row.get("is_absent", "0") in ("1", "true", "True", "ABS"),
            )
            for row in reader
        ]

    # ✅ upsert (élève, matière, évaluation): réimporter ne crée pas de doublon
    SqlGradeSource(db).upsert_notes(notes)
    db.close()
    print(f"✅ {len(notes)} note(s) CSV → DB importée(s)")

if __name__ == "__main__":
    migrate_notes()
