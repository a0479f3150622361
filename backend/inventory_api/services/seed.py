import logging

from sqlalchemy.orm import Session

from inventory_api.core.config import Settings
from inventory_api.core.roles import Role
from inventory_api.core.security import CredentialService
from inventory_api.models.category import Category
from inventory_api.models.user import User
from inventory_api.services.user_service import normalize_email


logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Shop Admin"

DEFAULT_CATEGORIES = [
    ("Incense", "Incense sticks and cones", "incense", 1),
    ("Candles", "Candles and oil lamps", "candle", 2),
    ("Flowers", "Fresh and artificial flowers", "flower", 3),
    ("Offerings", "Fruit trays and offering sets", "gift", 4),
    ("Other", "Everything else", "box", 5),
]


def seed_defaults(db: Session, settings: Settings, credentials: CredentialService) -> None:
    """Create the default admin and categories on an empty store."""
    email = normalize_email(settings.default_admin_email)
    if not db.query(User).filter(User.email == email).first():
        db.add(
            User(
                email=email,
                hashed_password=credentials.hash_password(settings.default_admin_password),
                name=DEFAULT_ADMIN_NAME,
                role=Role.admin.value,
            )
        )
        logger.info("seeded default admin %s", email)

    if db.query(Category).count() == 0:
        for name, description, icon, display_order in DEFAULT_CATEGORIES:
            db.add(Category(name=name, description=description, icon=icon, display_order=display_order))
        logger.info("seeded %d default categories", len(DEFAULT_CATEGORIES))

    db.commit()
