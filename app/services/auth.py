import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import bcrypt
import jwt
from flask import g, jsonify, request

from app.config import JWT_EXPIRES_DAYS, jwt_secret

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

def hash_password(password):
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")

def verify_password(password_hash, password):
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # hash corrompido ou em formato desconhecido
        logger.warning("password_hash inválido no banco")
        return False

def sign_token(claims):
    secret = jwt_secret()
    if not secret:
        raise RuntimeError("JWT_SECRET não está configurado")
    payload = dict(claims)
    payload["exp"] = datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRES_DAYS)
    return jwt.encode(payload, secret, algorithm=ALGORITHM)

def decode_token(token):
    """Decodifica o token; levanta ``jwt.InvalidTokenError`` se inválido ou expirado."""
    secret = jwt_secret()
    if not secret:
        raise jwt.InvalidTokenError("JWT_SECRET não está configurado")
    return jwt.decode(token, secret, algorithms=[ALGORITHM])

def token_for_user(user):
    return sign_token({"userId": user["id"], "email": user["email"]})

def bearer_token():
    auth = request.headers.get("Authorization") or ""
    parts = auth.split(" ")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]

def token_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Token não fornecido"}), 401
        try:
            g.user = decode_token(token)
        except jwt.InvalidTokenError:
            return jsonify({"error": "Token inválido ou expirado"}), 403
        return fn(*args, **kwargs)
    return wrapper
