import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

# LLM configuration
# auto | anthropic | openai | local | dummy
LLM_PROVIDER = os.getenv("LLM_PROVIDER", "auto")
LLM_MODEL = os.getenv("LLM_MODEL", "")
LLM_MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "100"))
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))

# Local model runtime exposing an OpenAI-compatible API (Ollama, llama.cpp server, vLLM)
LOCAL_LLM_BASE_URL = os.getenv("LOCAL_LLM_BASE_URL", "")
LOCAL_LLM_MODEL = os.getenv("LOCAL_LLM_MODEL", "tinyllama")

# MIMIC-III style notes database
DATABASE_PATH = os.getenv("DATABASE_PATH", "mimiciii_demo.db")
SEED_DEMO_NOTES = _flag("SEED_DEMO_NOTES", "true")

FHIR_BASE_URL = os.getenv("FHIR_BASE_URL", "https://hapi.fhir.org/baseR4")
FHIR_TIMEOUT = float(os.getenv("FHIR_TIMEOUT", "30"))

# Optional JSON file replacing the built-in guideline catalogue
GUIDELINES_PATH = os.getenv("GUIDELINES_PATH", "")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
