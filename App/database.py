from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from sqlalchemy import event, inspect
from sqlalchemy.engine import Engine
from sqlite3 import Connection as SQLite3Connection

db = SQLAlchemy()
migrate = Migrate()


def init_db(app):
    db.init_app(app)
    migrate.init_app(app, db)


def ensure_tables(app):
    """Create any table the models define but the database lacks.

    Returns the names of the tables that had to be created.
    """
    with app.app_context():
        existing_tables = set(inspect(db.engine).get_table_names())
        missing = [name for name in db.metadata.tables if name not in existing_tables]
        if missing:
            db.create_all()
        return missing


@event.listens_for(Engine, "connect")
def _enable_sqlite_fk(dbapi_connection, connection_record):
    # Only apply for the sqlite3 DBAPI (file or in-memory)
    if isinstance(dbapi_connection, SQLite3Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()
