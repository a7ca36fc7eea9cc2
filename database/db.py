from sqlalchemy import create_engine               # moteur SQLAlchemy
from sqlalchemy.orm import declarative_base        # classe Base des modèles
from sqlalchemy.orm import sessionmaker            # fabrique de sessions

from config.settings import settings               # ✅ configuration (.env)

# ✅ sqlite exige check_same_thread=False avec le serveur ASGI
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

# ✅ moteur construit à partir de l'URL calculée dans settings
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

# ✅ fabrique de sessions utilisée par les routeurs et les scripts
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ Base déclarative commune à tous les modèles
Base = declarative_base()


def get_db():
    """Dépendance FastAPI: une session par requête, toujours refermée."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
