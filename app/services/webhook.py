import re

def so_digitos(s):
    return re.sub(r'[^\d]', '', str(s or ''))

def _texto(body, *keys):
    for k in keys:
        v = body.get(k)
        if v:
            return str(v)
    return None

def extrair_remetente(body):
    """Reduz os formatos de webhook suportados a ``(numero, texto)``.

    Evolution API: ``from`` + ``message``/``text``/``body``.
    Twilio: ``From`` (``whatsapp:+55...``) + ``Body``.
    Genérico: ``phone``/``phoneNumber`` + ``message``/``text``/``body``.
    Qualquer um dos dois pode vir ``None``.
    """
    body = body or {}
    if body.get("from"):
        return so_digitos(body["from"]) or None, _texto(body, "message", "text", "body")
    if body.get("From"):
        return so_digitos(body["From"]) or None, _texto(body, "Body")
    raw_phone = body.get("phone") or body.get("phoneNumber")
    if raw_phone:
        return so_digitos(raw_phone) or None, _texto(body, "message", "text", "body")
    return None, None

def limpar_numero_whatsapp(numero):
    return re.sub(r'[^\d+]', '', str(numero or ''))
