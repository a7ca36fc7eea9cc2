import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.students import Student as StudentModel  # ✅ modèle

CSV_PATH = "data/students.csv"  # ✅ fichier source

def migrate_students():
    db: Session = SessionLocal()

    with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            student = StudentModel(
                id=int(row["id"]),                                  # identifiant
                name=row["name"],                                   # nom complet
                class_id=int(row["class_id"]),                      # classe
                gender=(row.get("gender") or "").upper()[:1] or None,  # 'M' / 'F'
                student_number=row.get("student_number") or None,   # matricule
                is_active=row.get("is_active", "1") not in ("0", "false", "False"),
            )
            db.merge(student)

    db.commit()
    db.close()
    print("✅ Élèves CSV → DB importés")

if __name__ == "__main__":
    migrate_students()
