import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")
INTENT_MODEL = os.getenv("INTENT_MODEL", "gpt-4o-mini")

SYNTHESIS_TEMPERATURE = float(os.getenv("SYNTHESIS_TEMPERATURE", "0.7"))
EDIT_TEMPERATURE = float(os.getenv("EDIT_TEMPERATURE", "0.3"))
INTENT_TEMPERATURE = float(os.getenv("INTENT_TEMPERATURE", "0.1"))

SYNTHESIS_MAX_TOKENS = int(os.getenv("SYNTHESIS_MAX_TOKENS", "4000"))
INTENT_MAX_TOKENS = int(os.getenv("INTENT_MAX_TOKENS", "150"))

CHAT_TEMPERATURE = float(os.getenv("CHAT_TEMPERATURE", "0.5"))
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "600"))

LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./archforge.db")
SESSION_STORE = os.getenv("SESSION_STORE", "sql")  # sql | memory

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
