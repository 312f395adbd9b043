import sys

from app.config import get_settings
from app.database import Database
from app.services.users import ensure_admin
from app.utils.log import configure_logging


def main():
    settings = get_settings()
    configure_logging(settings.ENV, settings.LOG_LEVEL)

    if not settings.ADMIN_PASSWORD:
        print("ADMIN_PASSWORD is not set")
        sys.exit(1)

    database = Database(settings.DATABASE_URL)
    database.connect()
    try:
        with database.session() as db:
            user, created = ensure_admin(
                db,
                email=settings.ADMIN_EMAIL,
                password=settings.ADMIN_PASSWORD,
                name=settings.ADMIN_NAME,
            )
        print(("Created" if created else "Already exists") + f": {user.email} (id={user.id})")
    finally:
        database.disconnect()


if __name__ == "__main__":
    main()
