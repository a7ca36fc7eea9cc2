import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.subjects import Subject as SubjectModel  # ✅ modèle

CSV_PATH = "data/subjects.csv"  # ✅ fichier source

def migrate_subjects():
    db: Session = SessionLocal()

    with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            subject = SubjectModel(
                id=int(row["id"]),                                # identifiant
                name=row["name"].strip(),                         # nom utilisé dans les formules
                class_id=int(row["class_id"]),                    # classe
                coefficient=float(row.get("coefficient") or 1),   # coefficient
            )
            db.merge(subject)

    db.commit()
    db.close()
    print("✅ Matières CSV → DB importées")

if __name__ == "__main__":
    migrate_subjects()
