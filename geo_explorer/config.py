import os
from dotenv import load_dotenv


def load_environment_config():
    """
    Load environment-specific configuration based on APP_ENV variable.

    Environments:
    - production: Uses .env.production
    - sit: Uses .env.sit
    - test: Uses .env.test
    - development: Uses .env (default)
    """
    env = os.getenv('APP_ENV', 'development').lower()

    env_files = {
        'production': '.env.production',
        'sit': '.env.sit',
        'test': '.env.test',
        'development': '.env',
    }

    env_file = env_files.get(env, '.env')

    if os.path.exists(env_file):
        load_dotenv(env_file)
        print(f"🔧 Loaded configuration from: {env_file}")
    else:
        # Fallback to default .env
        load_dotenv()
        print(f"⚠️  Environment file {env_file} not found, using default .env")
        if env != 'development':
            print(f"💡 Create {env_file} for {env} environment configuration")


load_environment_config()


# Model credential - the only secret the service needs
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0"))

_timeout_str = os.getenv("OPENAI_TIMEOUT_SECONDS", "")
OPENAI_TIMEOUT_SECONDS = float(_timeout_str) if _timeout_str else None

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Application port configuration
APP_PORT = int(os.getenv("APP_PORT", "8092"))

# Query input limits
MAX_QUERY_LENGTH = int(os.getenv("MAX_QUERY_LENGTH", "5000"))

# In-memory session limit (oldest sessions are evicted first)
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "1000"))


# Parse CORS origins from comma-separated string
cors_origins_str = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]

CORS_ALLOW_CREDENTIALS = os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"

# Parse CORS methods
cors_methods_str = os.getenv("CORS_ALLOW_METHODS", "*")
CORS_ALLOW_METHODS = [method.strip() for method in cors_methods_str.split(",") if method.strip()] if cors_methods_str != "*" else ["*"]

# Parse CORS headers
cors_headers_str = os.getenv("CORS_ALLOW_HEADERS", "*")
CORS_ALLOW_HEADERS = [header.strip() for header in cors_headers_str.split(",") if header.strip()] if cors_headers_str != "*" else ["*"]

CORS_MAX_AGE = int(os.getenv("CORS_MAX_AGE", "600"))


# Map camera and drawing constants
FLY_TO_ZOOM = 14
FLY_TO_DURATION_SECONDS = 2.5
FIT_BOUNDS_PADDING_PX = 50
FIT_BOUNDS_DURATION_SECONDS = 2.0
DRAW_CLOSE_RADIUS_PX = 25
MAP_TILE_SIZE_PX = 256
