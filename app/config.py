import os
import logging

logger = logging.getLogger(__name__)

def _load_dotenv():
    candidates = [
        os.path.join(os.getcwd(), ".env"),
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env"),
    ]
    for path in candidates:
        if not os.path.exists(path):
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    s = line.strip()
                    if not s or s.startswith("#"):
                        continue
                    if "=" in s:
                        k, v = s.split("=", 1)
                        k = k.strip()
                        v = v.strip().strip('"').strip("'")
                        if k and (k not in os.environ or not os.environ[k]):
                            os.environ[k] = v
        except OSError:
            logger.warning("Não foi possível ler %s", path)
        return path
    return None

ENV_FILE = _load_dotenv()

API_HOST = os.getenv("API_HOST") or os.getenv("HOST") or "0.0.0.0"
API_PORT = int(os.getenv("API_PORT") or os.getenv("PORT") or "3000")
API_URL_OVERRIDE = os.getenv("API_URL")
JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS") or "30")
APP_TIMEZONE = os.getenv("APP_TIMEZONE") or "America/Sao_Paulo"
LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()

# lidos a cada chamada
def jwt_secret():
    return os.getenv("JWT_SECRET") or None

def webhook_secret():
    return os.getenv("WEBHOOK_SECRET") or None

def test_mode():
    tm = str(os.getenv("TEST_MODE") or "").strip().lower()
    return tm in ("1", "true", "yes", "on")

def api_url():
    if API_URL_OVERRIDE:
        return API_URL_OVERRIDE
    host = "127.0.0.1" if API_HOST == "0.0.0.0" else API_HOST
    return f"http://{host}:{API_PORT}"

def check_env():
    """Resumo das variáveis de ambiente relevantes, sem expor os segredos."""
    has_cred = bool(os.getenv("FIREBASE_CREDENTIALS") or os.getenv("FIREBASE_CREDENTIALS_JSON"))
    return {
        "env_file": ENV_FILE,
        "jwt_secret": bool(jwt_secret()),
        "webhook_secret": bool(webhook_secret()),
        "firebase_credentials": has_cred or os.path.exists(os.path.join(os.getcwd(), "chave_firebase.json")),
        "test_mode": test_mode(),
        "host": API_HOST,
        "port": API_PORT,
        "timezone": APP_TIMEZONE,
    }
