from app.config import get_settings
from app.database import Database
from app.services.publisher_worker import publish_due
from app.utils.log import configure_logging


def main():
    settings = get_settings()
    configure_logging(settings.ENV, settings.LOG_LEVEL)

    database = Database(settings.DATABASE_URL)
    database.connect()
    try:
        with database.session() as db:
            res = publish_due(db)
        print(res)
    finally:
        database.disconnect()


if __name__ == "__main__":
    main()
