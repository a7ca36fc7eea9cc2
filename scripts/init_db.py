from database.db import Base, engine

# ✅ enregistrement de toutes les tables sur Base.metadata
from models import (  # noqa: F401
    classes, school_years, students, subjects, evaluations,
    notes, moyennes, class_average_configs, class_thresholds,
)

def init_db():
    Base.metadata.create_all(bind=engine)
    print("✅ Tables créées")

if __name__ == "__main__":
    init_db()
