import os
from dotenv import load_dotenv

load_dotenv()

SERVICE_HOST = os.getenv("SERVICE_HOST", "0.0.0.0")
SERVICE_PORT = os.getenv("SERVICE_PORT", 8000)

# Import/export tuning
IMPORT_CHUNK_SIZE = int(os.getenv("IMPORT_CHUNK_SIZE", "50"))
IMPORT_YIELD_DELAY_MS = float(os.getenv("IMPORT_YIELD_DELAY_MS", "10"))
EXPORT_VERSION = os.getenv("EXPORT_VERSION", "1.0.0")
