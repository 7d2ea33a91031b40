# arquivo: api_monetize.py
import logging

import jwt
from flask import Flask, g, jsonify, request
from flask_cors import CORS

from app.config import jwt_secret, webhook_secret
from app.services import database as db
from app.services.auth import (
    bearer_token,
    decode_token,
    hash_password,
    token_for_user,
    token_required,
    verify_password,
)
from app.services.rule_based import parse_transaction_message
from app.services.webhook import extrair_remetente, limpar_numero_whatsapp, so_digitos
from app.utils.formatting import resumo_transacao

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)

def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def _user_id():
    return g.user.get("userId")

def _public_user(u):
    return {"id": u["id"], "email": u["email"], "name": u.get("name")}

def _erro_interno(msg):
    logger.exception(msg)
    return jsonify({"error": msg}), 500

# ===== SAÚDE =====
@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({"status": "ok", "message": "MonetizeSpeed API está funcionando"})

# ===== AUTENTICAÇÃO =====
@app.route('/api/auth/register', methods=['POST'])
def register():
    data = _payload()
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")
    if not email or not password:
        return jsonify({"error": "Email e senha são obrigatórios"}), 400
    if len(password) < 6:
        return jsonify({"error": "A senha deve ter pelo menos 6 caracteres"}), 400
    if not jwt_secret():
        logger.error("JWT_SECRET não está configurado")
        return jsonify({"error": "Erro de configuração do servidor", "message": "JWT_SECRET não está configurado"}), 500
    try:
        if db.buscar_usuario_por_email(email):
            return jsonify({"error": "Email já cadastrado"}), 400
        user = db.criar_usuario(email, hash_password(password), data.get("name"))
        token = token_for_user(user)
    except Exception:
        return _erro_interno("Erro ao cadastrar usuário")
    logger.info("Usuário %s cadastrado", user["id"])
    return jsonify({
        "message": "Usuário criado com sucesso",
        "token": token,
        "user": _public_user(user),
    }), 201

@app.route('/api/auth/login', methods=['POST'])
def login():
    data = _payload()
    email = str(data.get("email") or "").strip()
    password = str(data.get("password") or "")
    if not email or not password:
        return jsonify({"error": "Email e senha são obrigatórios"}), 400
    try:
        user = db.buscar_usuario_por_email(email)
    except Exception:
        return _erro_interno("Erro ao buscar usuário")
    if not user:
        return jsonify({"error": "Credenciais inválidas"}), 401
    if not user.get("password_hash"):
        logger.error("Usuário sem password_hash: %s", user["id"])
        return jsonify({"error": "Erro interno do servidor", "message": "Dados do usuário inválidos"}), 500
    if not verify_password(user["password_hash"], password):
        return jsonify({"error": "Credenciais inválidas"}), 401
    if not jwt_secret():
        logger.error("JWT_SECRET não está configurado")
        return jsonify({"error": "Erro de configuração do servidor", "message": "JWT_SECRET não está configurado"}), 500
    return jsonify({
        "message": "Login realizado com sucesso",
        "token": token_for_user(user),
        "user": _public_user(user),
    })

@app.route('/api/auth/verify', methods=['GET'])
@token_required
def verify():
    try:
        user = db.buscar_usuario_por_id(_user_id())
    except Exception:
        return _erro_interno("Erro ao verificar token")
    if not user:
        return jsonify({"error": "Usuário não encontrado"}), 404
    return jsonify({"user": _public_user(user)})

# ===== TRANSAÇÕES =====
@app.route('/api/transactions', methods=['GET'])
@token_required
def transactions_list():
    try:
        return jsonify(db.listar_transacoes(_user_id()))
    except Exception:
        return _erro_interno("Erro ao buscar transações")

@app.route('/api/transactions', methods=['POST'])
@token_required
def transactions_create():
    data = _payload()
    if not all(data.get(k) for k in ("type", "category", "amount", "date")):
        return jsonify({"error": "Campos obrigatórios: type, category, amount, date"}), 400
    try:
        tx = db.criar_transacao(_user_id(), data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        return _erro_interno("Erro ao criar transação")
    return jsonify(tx), 201

@app.route('/api/transactions/<transacao_id>', methods=['PUT'])
@token_required
def transactions_update(transacao_id):
    try:
        tx = db.atualizar_transacao(_user_id(), transacao_id, _payload())
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        return _erro_interno("Erro ao atualizar transação")
    if tx is None:
        return jsonify({"error": "Transação não encontrada"}), 404
    return jsonify(tx)

@app.route('/api/transactions/<transacao_id>', methods=['DELETE'])
@token_required
def transactions_delete(transacao_id):
    try:
        ok = db.excluir_transacao(_user_id(), transacao_id)
    except Exception:
        return _erro_interno("Erro ao deletar transação")
    if not ok:
        return jsonify({"error": "Transação não encontrada"}), 404
    return jsonify({"message": "Transação deletada com sucesso"})

# ===== ORÇAMENTOS =====
def _limite(v):
    """Converte o limite vindo do cliente; ``None`` se não for número positivo."""
    try:
        val = float(v)
    except (TypeError, ValueError):
        return None
    return val if val > 0 else None

@app.route('/api/budgets', methods=['GET'])
@token_required
def budgets_list():
    try:
        return jsonify(db.listar_orcamentos(_user_id()))
    except Exception:
        return _erro_interno("Erro ao buscar orçamentos")

@app.route('/api/budgets', methods=['POST'])
@token_required
def budgets_save():
    data = _payload()
    category = str(data.get("category") or "").strip()
    if not category or not data.get("limit"):
        return jsonify({"error": "Campos obrigatórios: category, limit"}), 400
    limit = _limite(data.get("limit"))
    if limit is None:
        return jsonify({"error": "Limite inválido"}), 400
    try:
        orcamento, _ = db.salvar_orcamento(_user_id(), category, limit)
    except Exception:
        return _erro_interno("Erro ao salvar orçamento")
    return jsonify(orcamento), 201

@app.route('/api/budgets/<orcamento_id>', methods=['PUT'])
@token_required
def budgets_update(orcamento_id):
    data = _payload()
    category = str(data.get("category") or "").strip()
    limit = _limite(data.get("limit"))
    if not category or limit is None:
        return jsonify({"error": "Campos obrigatórios: category, limit"}), 400
    try:
        orcamento = db.atualizar_orcamento(_user_id(), orcamento_id, category, limit)
    except Exception:
        return _erro_interno("Erro ao atualizar orçamento")
    if orcamento is None:
        return jsonify({"error": "Orçamento não encontrado"}), 404
    return jsonify(orcamento)

@app.route('/api/budgets/<orcamento_id>', methods=['DELETE'])
@token_required
def budgets_delete(orcamento_id):
    try:
        ok = db.excluir_orcamento(_user_id(), orcamento_id)
    except Exception:
        return _erro_interno("Erro ao deletar orçamento")
    if not ok:
        return jsonify({"error": "Orçamento não encontrado"}), 404
    return jsonify({"message": "Orçamento deletado com sucesso"})

# ===== METAS =====
def _campos_meta(data):
    name = str(data.get("name") or "").strip()
    try:
        target = float(data.get("target"))
        saved = float(data.get("saved") or 0)
    except (TypeError, ValueError):
        return None
    if not name or target <= 0 or saved < 0:
        return None
    return name, target, saved

@app.route('/api/goals', methods=['GET'])
@token_required
def goals_list():
    try:
        return jsonify(db.listar_metas(_user_id()))
    except Exception:
        return _erro_interno("Erro ao buscar metas")

@app.route('/api/goals', methods=['POST'])
@token_required
def goals_create():
    data = _payload()
    if not data.get("name") or not data.get("target"):
        return jsonify({"error": "Campos obrigatórios: name, target"}), 400
    campos = _campos_meta(data)
    if campos is None:
        return jsonify({"error": "Campos inválidos"}), 400
    try:
        meta = db.criar_meta(_user_id(), *campos)
    except Exception:
        return _erro_interno("Erro ao criar meta")
    return jsonify(meta), 201

@app.route('/api/goals/<meta_id>', methods=['PUT'])
@token_required
def goals_update(meta_id):
    campos = _campos_meta(_payload())
    if campos is None:
        return jsonify({"error": "Campos obrigatórios: name, target"}), 400
    try:
        meta = db.atualizar_meta(_user_id(), meta_id, *campos)
    except Exception:
        return _erro_interno("Erro ao atualizar meta")
    if meta is None:
        return jsonify({"error": "Meta não encontrada"}), 404
    return jsonify(meta)

@app.route('/api/goals/<meta_id>', methods=['DELETE'])
@token_required
def goals_delete(meta_id):
    try:
        ok = db.excluir_meta(_user_id(), meta_id)
    except Exception:
        return _erro_interno("Erro ao deletar meta")
    if not ok:
        return jsonify({"error": "Meta não encontrada"}), 404
    return jsonify({"message": "Meta deletada com sucesso"})

# ===== USUÁRIO =====
@app.route('/api/user/whatsapp', methods=['PUT'])
@token_required
def user_whatsapp():
    numero = _payload().get("whatsapp_number")
    if not numero:
        return jsonify({"error": "Número do WhatsApp é obrigatório"}), 400
    limpo = limpar_numero_whatsapp(numero)
    if len(limpo) < 10:
        return jsonify({"error": "Número inválido"}), 400
    try:
        # gravado só com dígitos, igual ao que o webhook recebe
        user = db.atualizar_whatsapp(_user_id(), so_digitos(limpo))
    except Exception:
        return _erro_interno("Erro ao atualizar número do WhatsApp")
    if user is None:
        return jsonify({"error": "Usuário não encontrado"}), 404
    return jsonify({
        "message": "Número do WhatsApp atualizado com sucesso",
        "user": {"id": user["id"], "email": user["email"], "whatsapp_number": user.get("whatsapp_number")},
    })

@app.route('/api/user/me', methods=['GET'])
@token_required
def user_me():
    try:
        user = db.buscar_usuario_por_id(_user_id())
    except Exception:
        return _erro_interno("Erro ao buscar informações do usuário")
    if not user:
        return jsonify({"error": "Usuário não encontrado"}), 404
    return jsonify({
        "id": user["id"],
        "email": user["email"],
        "name": user.get("name"),
        "whatsapp_number": user.get("whatsapp_number"),
        "created_at": user.get("created_at"),
    })

# ===== WEBHOOK =====
def _registrar(user_id, texto, eco_mensagem=False):
    candidato = parse_transaction_message(texto)
    if not candidato.amount:
        body = {"error": "Não foi possível identificar o valor na mensagem", "parsed": candidato.to_dict()}
        if eco_mensagem:
            body["message"] = texto
        logger.info("Mensagem sem valor para usuário %s: %r", user_id, texto)
        return jsonify(body), 400
    tx = db.salvar_candidato(user_id, candidato)
    return jsonify({
        "success": True,
        "message": "Transação criada com sucesso",
        "transaction": tx,
        "reply": resumo_transacao(tx),
    })

@app.route('/api/webhook/whatsapp', methods=['POST'])
def webhook_whatsapp():
    # Twilio manda form-urlencoded
    data = _payload() or request.form.to_dict()
    auth_header = request.headers.get("Authorization")
    secret = request.headers.get("X-Webhook-Secret")
    if not auth_header and not secret:
        return jsonify({"error": "Não autorizado"}), 401
    try:
        user_id = None
        if auth_header and auth_header.startswith("Bearer "):
            try:
                user_id = decode_token(bearer_token()).get("userId")
            except jwt.InvalidTokenError:
                return jsonify({"error": "Token inválido"}), 401

        expected = webhook_secret()
        if secret and expected and secret == expected:
            numero, texto = extrair_remetente(data)
            if not numero:
                return jsonify({"error": "Número do WhatsApp não fornecido"}), 400
            user = db.buscar_usuario_por_whatsapp(numero)
            if not user:
                return jsonify({
                    "error": "Usuário não encontrado para este número",
                    "phoneNumber": numero,
                    "hint": "Cadastre seu número em /api/user/whatsapp",
                }), 404
            if not texto:
                return jsonify({"error": "Mensagem não fornecida"}), 400
            return _registrar(user["id"], texto, eco_mensagem=True)

        if not user_id:
            return jsonify({"error": "Usuário não identificado"}), 401
        texto = data.get("message")
        if not texto:
            return jsonify({"error": "Mensagem não fornecida"}), 400
        return _registrar(user_id, str(texto))
    except Exception:
        return _erro_interno("Erro ao processar webhook")

@app.route('/api/webhook/test-parse', methods=['POST'])
def webhook_test_parse():
    texto = _payload().get("message")
    if not texto:
        return jsonify({"error": "Mensagem não fornecida"}), 400
    parsed = parse_transaction_message(str(texto))
    return jsonify({"original": texto, "parsed": parsed.to_dict()})
