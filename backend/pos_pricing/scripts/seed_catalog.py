"""
Seed script: create catalog tables and a default VAT tax if none exists
Run: python -m pos_pricing.scripts.seed_catalog
"""
import logging
import os
from sqlmodel import SQLModel, Session, select
from pos_pricing.db.session import engine
from pos_pricing.models import Tax
from pos_pricing.core.config import settings
from pos_pricing.services.money import normalize_rate, HUNDRED

logger = logging.getLogger(__name__)


def create_tables():
    if settings.DATABASE_URL.startswith("sqlite:///"):
        db_path = settings.DATABASE_URL[len("sqlite:///"):]
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    SQLModel.metadata.create_all(engine)


def seed_default_tax(session: Session) -> Tax:
    """Create the default VAT row unless an active tax already exists"""
    existing = session.exec(select(Tax).where(Tax.is_active == True)).first()
    if existing:
        logger.info("Tax already exists: %s (%s%%)", existing.name, existing.rate)
        return existing

    tax = Tax(name="VAT", rate=normalize_rate(settings.DEFAULT_VAT_RATE) * HUNDRED, is_active=True)
    session.add(tax)
    session.commit()
    session.refresh(tax)
    logger.info("Tax created: %s (%s%%)", tax.name, tax.rate)
    return tax


def main():
    logging.basicConfig(level=settings.LOG_LEVEL)
    logger.info("Creating tables...")
    create_tables()
    logger.info("Seeding default tax...")
    with Session(engine) as session:
        seed_default_tax(session)
    logger.info("Done!")


if __name__ == "__main__":
    main()
