import csv
from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.classes import Class as ClassModel  # ✅ modèle

CSV_PATH = "data/classes.csv"  # ✅ fichier source

def migrate_classes():
    db: Session = SessionLocal()

    with open(CSV_PATH, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            school_class = ClassModel(
                id=int(row["id"]),                  # identifiant
                name=row["name"],                   # nom (ex: CM2 A)
                level=row.get("level") or None,     # niveau
            )
            db.merge(school_class)

    db.commit()
    db.close()
    print("✅ Classes CSV → DB importées")

if __name__ == "__main__":
    migrate_classes()
