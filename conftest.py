import os

# Load .env.test for tests if present so local overrides never leak in from .env
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("ATTENDANCE_API_URL", "http://attendance.test/api")

from libs.common.config import get_settings

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
