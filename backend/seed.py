from __future__ import annotations

import argparse
import logging

from gamenight import models
from gamenight.database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)

DEMO_USER = {"name": "Test User", "email": "test@example.com"}
DEMO_GROUP = "Board Game Night"

GAME_TEMPLATES = {
    "7 Wonders": {
        "Base Game": [
            ("military", "Military"),
            ("treasury", "Treasury"),
            ("wonders", "Wonders"),
            ("civilian", "Civilian"),
            ("scientific", "Scientific"),
            ("commercial", "Commercial"),
            ("guilds", "Guilds"),
        ],
    },
    "Lost Ruins of Arnak": {
        "Base Game": [
            ("research", "Research"),
            ("temple", "Temple"),
            ("idols", "Idols"),
            ("guardians", "Guardians"),
            ("items", "Items/Artifacts"),
        ],
    },
}


def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def seed(reset: bool = False) -> None:
    if reset:
        reset_database()
    else:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        user = db.query(models.User).filter(models.User.email == DEMO_USER["email"]).first()
        if user is None:
            user = models.User(name=DEMO_USER["name"], email=DEMO_USER["email"])
            db.add(user)
            db.flush()

        if db.query(models.Group.id).filter(models.Group.name == DEMO_GROUP).first() is None:
            group = models.Group(name=DEMO_GROUP)
            group.members = [models.GroupMember(user_id=user.id, role="ADMIN")]
            db.add(group)

        for game_name, templates in GAME_TEMPLATES.items():
            if db.query(models.Game.id).filter(models.Game.name == game_name).first() is not None:
                continue

            game = models.Game(name=game_name)
            db.add(game)
            game.templates = [
                models.ScoreTemplate(
                    name=template_name,
                    fields=[
                        {"key": key, "label": label, "type": "number", "multiplier": 1}
                        for key, label in fields
                    ],
                )
                for template_name, fields in templates.items()
            ]

        db.commit()
        logger.info("Seeded %d games into group '%s'", len(GAME_TEMPLATES), DEMO_GROUP)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo users, games and score templates.")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    seed(reset=args.reset)
