import csv
from datetime import date
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.evaluations import Evaluation as EvaluationModel  # ✅ modèle

CSV_PATH = "data/evaluations.csv"  # ✅ fichier source

def migrate_evaluations():
    db: Session = SessionLocal()

    with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            evaluation = EvaluationModel(
                id=int(row["id"]),                                    # identifiant
                nom=row["nom"].strip(),                               # ex: EVALUATION N°1
                class_id=int(row["class_id"]),                        # classe
                school_year_id=int(row["school_year_id"]) if row.get("school_year_id") else None,
                date=date.fromisoformat(row["date"]) if row.get("date") else None,
            )
            db.merge(evaluation)

    db.commit()
    db.close()
    print("✅ Évaluations CSV → DB importées")

if __name__ == "__main__":
    migrate_evaluations()
