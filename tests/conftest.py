import os

# configuration de test, avant tout import de config.settings
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite://"
os.environ["API_INTERNAL_TOKEN"] = "test-token"
os.environ["ADMIN_ROLE"] = "admin"

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db
from models import (  # noqa: F401  enregistrement des tables
    classes, school_years, students, subjects, evaluations,
    notes, moyennes, class_average_configs, class_thresholds,
)
from models.classes import Class as ClassModel
from models.evaluations import Evaluation as EvaluationModel
from models.school_years import SchoolYear as SchoolYearModel
from models.students import Student as StudentModel
from models.subjects import Subject as SubjectModel


# ==========================================================
# [Base SQLite en mémoire] pour les tests d'API
# ==========================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    from main import app

    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def school(db):
    """
    Classe CM2 A: Maths (1), Français (2), Sciences (3)
    Élèves: Awa (F), Bakary (M), Chloé (F), Didier (M)
    Évaluations 2024-2025: N°1 (1), N°2 (2), COMPOSITION DE PASSAGE (4); N°3 non organisée
    """
    db.add(SchoolYearModel(id=1, name="2024-2025", is_active=True))
    db.add(ClassModel(id=1, name="CM2 A", level="CM2"))
    db.add_all([
        SubjectModel(id=1, name="Maths", class_id=1),
        SubjectModel(id=2, name="Français", class_id=1),
        SubjectModel(id=3, name="Sciences", class_id=1),
    ])
    db.add_all([
        StudentModel(id=1, name="Awa", class_id=1, gender="F"),
        StudentModel(id=2, name="Bakary", class_id=1, gender="M"),
        StudentModel(id=3, name="Chloé", class_id=1, gender="F"),
        StudentModel(id=4, name="Didier", class_id=1, gender="M"),
    ])
    db.add_all([
        EvaluationModel(id=1, nom="EVALUATION N°1", class_id=1, school_year_id=1, date=date(2024, 11, 15)),
        EvaluationModel(id=2, nom="EVALUATION N°2", class_id=1, school_year_id=1, date=date(2025, 2, 14)),
        EvaluationModel(id=4, nom="COMPOSITION DE PASSAGE", class_id=1, school_year_id=1, date=date(2025, 6, 10)),
    ])
    db.commit()
    return db


@pytest.fixture
def auth():
    return {"Authorization": "Bearer test-token"}
