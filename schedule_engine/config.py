import os

from dotenv import load_dotenv

# Load environment variables from a .env file, if present
load_dotenv()

HOST = os.getenv("SCHEDULE_ENGINE_HOST", "127.0.0.1")
PORT = int(os.getenv("SCHEDULE_ENGINE_PORT", "8000"))

LOG_LEVEL = os.getenv("SCHEDULE_ENGINE_LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("SCHEDULE_ENGINE_LOG_FILE") or None

# Uploads accepted by /parse-excel
ALLOWED_UPLOAD_EXTENSIONS = (".xlsx", ".csv")
