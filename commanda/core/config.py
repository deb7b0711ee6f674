import os
from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./commanda.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS
_cors_env = os.getenv("ORIGENS_CORS", os.getenv("CORS_ORIGINS", ""))
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Sessão do dashboard (cookie assinado)
SESSION_SECRET = os.getenv("SESSION_SECRET", "")
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "commanda_session")
SESSION_MAX_AGE_SECONDS = int(os.getenv("SESSION_MAX_AGE_SECONDS", "604800"))

# Uazapi (gateway WhatsApp)
UAZAPI_API_URL = os.getenv("UAZAPI_API_URL", "").strip().rstrip("/")
UAZAPI_ADMIN_TOKEN = os.getenv("UAZAPI_ADMIN_TOKEN", "").strip()
UAZAPI_SYSTEM_NAME = os.getenv("UAZAPI_SYSTEM_NAME", "commanda").strip() or "commanda"
UAZAPI_TIMEOUT_SECONDS = float(os.getenv("UAZAPI_TIMEOUT_SECONDS", "20"))
UAZAPI_CONNECT_MAX_RETRIES = int(os.getenv("UAZAPI_CONNECT_MAX_RETRIES", "5"))
UAZAPI_POLL_INTERVAL_SECONDS = float(os.getenv("UAZAPI_POLL_INTERVAL_SECONDS", "2"))
N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL", "").strip()
# notificação de status do pedido para o cliente (fluxo n8n -> WhatsApp)
N8N_ORDER_STATUS_WEBHOOK_URL = os.getenv("N8N_ORDER_STATUS_WEBHOOK_URL", "").strip()
ORDER_NOTIFY_TIMEOUT_SECONDS = float(os.getenv("ORDER_NOTIFY_TIMEOUT_SECONDS", "10"))

# Jobs assíncronos
JOB_DISPATCHER = os.getenv("JOB_DISPATCHER", "local" if IS_DEV else "inngest").strip().lower()
INNGEST_INTERNAL_SECRET = os.getenv("INNGEST_INTERNAL_SECRET", "").strip()
INNGEST_BASE_URL = os.getenv("INNGEST_BASE_URL", "https://inn.gs").strip().rstrip("/")
INNGEST_EVENT_KEY = os.getenv("INNGEST_EVENT_KEY", "").strip()
APP_URL = os.getenv("APP_URL", os.getenv("NEXT_PUBLIC_APP_URL", "http://localhost:8000")).strip().rstrip("/")
