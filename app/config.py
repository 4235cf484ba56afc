import os

SECRET_KEY = os.environ.get("SECRET_KEY", "TU_SECRET_KEY_TEMPORAL")
ALGORITHM = os.environ.get("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = float(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# Default to local SQLite for dev/tests; override via env in Docker/Prod
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./taskmaster.db")

# "memory" (per process), "redis" (shared) or "none" (always miss)
CACHE_BACKEND = os.environ.get("CACHE_BACKEND", "memory").lower()
CACHE_TTL_SECONDS = int(os.environ.get("CACHE_TTL_SECONDS", 600))
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

REQUEST_TIMEOUT_SECONDS = float(os.environ.get("REQUEST_TIMEOUT_SECONDS", 30))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]
