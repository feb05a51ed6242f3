SQLALCHEMY_DATABASE_URI = "sqlite:///classroom-groups.db"
SECRET_KEY = "change-me"
ENV = "development"
LOG_LEVEL = "INFO"
SERVICE_NAME = "classroom-group-assignment"

# The assignment editor stops offering "add group" past this many groups
MAX_GROUPS_PER_ACTIVITY = 6

# Front ends allowed to call /api/* (the projected classroom display, the editor)
CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
