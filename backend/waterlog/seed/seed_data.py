"""
Seed data script for the Waterlog database.
Populates plant archetypes and an optional demo user with rooms.
"""
from sqlalchemy.orm import Session

from waterlog.auth import get_password_hash
from waterlog.database import Base, SessionLocal, get_engine
from waterlog.models import PlantArchetype, Room, User
from waterlog.services.rooms import get_graveyard_room
from waterlog.services.scheduling import DEFAULT_EMA_ALPHA, DEFAULT_SNOOZE_FACTOR

# Default watering interval in days per archetype
ARCHETYPES = [
    ("Fern", 5),
    ("Succulent", 21),
    ("Aroid", 7),
    ("Cactus", 30),
    ("Tropical", 10),
]

DEMO_EMAIL = "admin@example.com"
DEMO_PASSWORD = "change-me-please"
DEMO_ROOMS = ["Living Room", "Bedroom"]


def seed_archetypes(session: Session) -> int:
    """Insert missing archetypes; existing ones are left untouched."""
    existing = {a.name for a in session.query(PlantArchetype).all()}
    added = 0
    for name, interval in ARCHETYPES:
        if name in existing:
            continue
        session.add(PlantArchetype(name=name, default_interval=interval))
        added += 1
    session.flush()
    return added


def seed_demo_user(session: Session) -> User:
    user = session.query(User).filter(User.email == DEMO_EMAIL).first()
    if user:
        return user

    user = User(
        email=DEMO_EMAIL,
        password_hash=get_password_hash(DEMO_PASSWORD),
        settings={"ema_alpha": DEFAULT_EMA_ALPHA, "snooze_factor": DEFAULT_SNOOZE_FACTOR},
    )
    session.add(user)
    session.flush()
    for order, name in enumerate(DEMO_ROOMS):
        session.add(Room(user_id=user.id, name=name, sort_order=order))
    get_graveyard_room(session, user)
    return user


def seed_database(session: Session = None, with_demo_user: bool = True) -> dict:
    """Seed the database with archetypes (and a demo user). Safe to run repeatedly."""
    own_session = session is None
    if own_session:
        Base.metadata.create_all(bind=get_engine())
        session = SessionLocal()

    try:
        added = seed_archetypes(session)
        if with_demo_user:
            seed_demo_user(session)
        session.commit()

        counts = {
            "archetypes_added": added,
            "archetypes": session.query(PlantArchetype).count(),
            "users": session.query(User).count(),
        }
        print(f"✓ Seeded {added} new archetypes ({counts['archetypes']} total)")
        print(f"✓ {counts['users']} users")
        print("Database seeding complete!")
        return counts
    except Exception:
        session.rollback()
        raise
    finally:
        if own_session:
            session.close()


if __name__ == "__main__":
    seed_database()
