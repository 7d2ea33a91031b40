import logging

import requests

from app.config import api_url

logger = logging.getLogger(__name__)

def _post(path, payload, headers=None, timeout=10):
    url = f"{api_url()}{path}"
    try:
        response = requests.post(url, json=payload, headers=headers or {}, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("Falha ao chamar %s: %s", url, e)
        return {"error": str(e)}
    try:
        data = response.json()
    except ValueError:
        return {"error": f"status {response.status_code}"}
    if response.status_code >= 400 and not isinstance(data, dict):
        return {"error": f"status {response.status_code}"}
    if response.status_code >= 400 and "error" not in data:
        data["error"] = f"status {response.status_code}"
    return data

def testar_parser(texto, timeout=10):
    """Envia o texto para o endpoint de diagnóstico e devolve o resultado do parser."""
    return _post("/api/webhook/test-parse", {"message": texto}, timeout=timeout)

def enviar_mensagem(texto, token, timeout=10):
    headers = {"Authorization": f"Bearer {token}"}
    return _post("/api/webhook/whatsapp", {"message": texto}, headers=headers, timeout=timeout)
