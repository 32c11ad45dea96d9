# scripts/init_db.py
"""
Script to initialize database tables. Run from project root:
    python scripts/init_db.py
"""
from muster.infrastructure.db.session import Base, engine
import muster.infrastructure.models  # noqa: F401  registers tables on Base


def init():
    Base.metadata.create_all(bind=engine)
    print("DB initialized")


if __name__ == "__main__":
    init()
