# file: portaal/db/seed/seed.py

from sqlalchemy.orm import Session
from sqlalchemy import select
from datetime import datetime, timezone
import logging
import uuid

from portaal.core.log_config import configure_logging
from portaal.db.session import engine
from portaal.models.dealers import Dealer
from portaal.models.user_preferences import UserPreferences
from portaal.schemas.preferences import DEFAULT_PREFERENCES

logger = logging.getLogger("seed")


def run_seed():
    if engine is None:
        logger.error("❌ DATABASE_URL não definido, seed cancelado")
        return

    logger.info("🔧 Iniciando seed...")

    now = datetime.now(timezone.utc)

    dealers = [
        {
            "name": "Portaal Beheerder",
            "email": "admin@dealerportaal.nl",
            "company": "Dealer Portaal",
            "role": "admin",
        },
        {
            "name": "Jan de Vries",
            "email": "jan@autohuisdevries.nl",
            "phone": "+31201234567",
            "company": "Autohuis De Vries",
            "role": "dealer",
        },
        {
            "name": "Sanne Bakker",
            "email": "sanne@bakkermobiliteit.nl",
            "phone": "+31307654321",
            "company": "Bakker Mobiliteit",
            "role": "manager",
        },
    ]

    with Session(engine) as db:
        for d in dealers:
            exists = db.scalars(
                select(Dealer).where(Dealer.email == d["email"])
            ).first()

            if exists:
                logger.info(f"⚠️ Dealer {d['name']} já existe, pulando...")
                continue

            dealer = Dealer(
                id=str(uuid.uuid4()),
                status="active",
                is_active=True,
                created_at=now,
                registration_date=now,
                **d,
            )
            db.add(dealer)
            db.add(UserPreferences(user_id=dealer.id, **DEFAULT_PREFERENCES))

        db.commit()

    logger.info("🎉 Seed concluído com sucesso!")


if __name__ == "__main__":
    configure_logging()
    run_seed()
