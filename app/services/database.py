import os
import math
import logging
import uuid
try:
    import firebase_admin
    from firebase_admin import credentials, firestore
except ImportError:
    firebase_admin = None
    credentials = None
    firestore = None

from app.config import test_mode
from app.utils.datas import agora, parse_data_iso

logger = logging.getLogger(__name__)

_app = None
_db = None

TRANSACTION_TYPES = ('income', 'expense')
TRANSACTION_STATUS = ('paid', 'received', 'pending_payment', 'pending_receipt')

# ===== Firestore em memória (TEST_MODE) =====

class _FakeDocSnap:
    def __init__(self, _id, _data, _exists):
        self.id = _id
        self._data = _data
        self.exists = bool(_exists)
    def to_dict(self):
        if not self.exists:
            return None
        return dict(self._data or {})

class _FakeDocRef:
    def __init__(self, store, path):
        self._store = store
        self._path = path
        self.id = path.rsplit("/", 1)[-1]
    def get(self):
        data = self._store.get(self._path)
        return _FakeDocSnap(self.id, data, data is not None)
    def set(self, payload, merge=False):
        nxt = dict(payload or {})
        if merge:
            cur = dict(self._store.get(self._path) or {})
            cur.update(nxt)
            nxt = cur
        self._store[self._path] = nxt
    def update(self, payload):
        if self._path not in self._store:
            raise KeyError(f"documento inexistente: {self._path}")
        self._store[self._path].update(dict(payload or {}))
    def delete(self):
        self._store.pop(self._path, None)
    def collection(self, name):
        return _FakeCollectionRef(self._store, f"{self._path}/{name}")

class _FakeQueryRef:
    def __init__(self, store, path, conds):
        self._store = store
        self._path = path
        self._conds = conds
    def where(self, field, op, value):
        if op != "==":
            raise ValueError(f"operador não suportado no modo de teste: {op}")
        return _FakeQueryRef(self._store, self._path, self._conds + [(field, value)])
    def stream(self):
        prefix = f"{self._path}/"
        depth = self._path.count("/") + 1
        out = []
        for k, v in list(self._store.items()):
            if not k.startswith(prefix) or k.count("/") != depth:
                continue
            if all(v.get(f) == val for f, val in self._conds):
                out.append(_FakeDocSnap(k.rsplit("/", 1)[-1], v, True))
        return out

class _FakeCollectionRef(_FakeQueryRef):
    def __init__(self, store, path):
        super().__init__(store, path, [])
    def document(self, doc_id=None):
        return _FakeDocRef(self._store, f"{self._path}/{doc_id or uuid.uuid4().hex[:20]}")

class _FakeFirestoreClient:
    def __init__(self):
        self._store = {}
    def collection(self, name):
        return _FakeCollectionRef(self._store, str(name))

def _cred_path():
    p1 = os.getenv("FIREBASE_CREDENTIALS")
    if p1 and os.path.exists(p1):
        return p1
    raw = (p1 or os.getenv("FIREBASE_CREDENTIALS_JSON") or "").strip()
    if raw.startswith("{"):
        runtime_path = os.path.join(os.getcwd(), "__runtime_firebase_cred.json")
        if not os.path.exists(runtime_path):
            with open(runtime_path, "w", encoding="utf-8") as f:
                f.write(raw)
        return runtime_path
    return os.path.join(os.getcwd(), "chave_firebase.json")

def init_firebase():
    global _app, _db
    if _db is not None:
        return _db
    if test_mode():
        logger.info("TEST_MODE ativo: usando Firestore em memória")
        _db = _FakeFirestoreClient()
        return _db
    if firebase_admin is None:
        raise RuntimeError("firebase-admin não instalado")
    path = _cred_path()
    logger.info("Conectando ao Firestore com credenciais de %s", path)
    cred = credentials.Certificate(path)
    _app = firebase_admin.initialize_app(cred)
    _db = firestore.client()
    return _db

def get_db():
    return init_firebase()

def reset_db():
    global _app, _db
    if _app is not None and firebase_admin is not None:
        firebase_admin.delete_app(_app)
    _app = None
    _db = None

def testar_conexao():
    db = get_db()
    ref = db.collection("_healthcheck").document("ping")
    ref.set({"em": agora().isoformat()})
    return ref.get().exists

# ===== helpers =====

def _agora_iso():
    return agora().isoformat()

def _usuario_ref(user_id):
    return get_db().collection("usuarios").document(str(user_id))

def _com_id(snap):
    o = snap.to_dict() or {}
    o["id"] = snap.id
    return o

def _valor(v):
    return round(float(v), 2)

def _primeiro(query):
    for snap in query.stream():
        return _com_id(snap)
    return None

# ===== usuários =====

def criar_usuario(email, password_hash, name=None):
    ref = get_db().collection("usuarios").document()
    now = _agora_iso()
    doc = {
        "email": email.lower(),
        "password_hash": password_hash,
        "name": name or None,
        "whatsapp_number": None,
        "created_at": now,
        "updated_at": now,
    }
    ref.set(doc)
    doc["id"] = ref.id
    return doc

def buscar_usuario_por_email(email):
    q = get_db().collection("usuarios").where("email", "==", str(email or "").lower())
    return _primeiro(q)

def buscar_usuario_por_id(user_id):
    if not user_id:
        return None
    snap = _usuario_ref(user_id).get()
    if not snap.exists:
        return None
    return _com_id(snap)

def buscar_usuario_por_whatsapp(numero):
    """Procura pelo número como veio e sem o código do país (55)."""
    col = get_db().collection("usuarios")
    candidatos = [numero]
    if numero.startswith("55") and len(numero) > 2:
        candidatos.append(numero[2:])
    for n in candidatos:
        u = _primeiro(col.where("whatsapp_number", "==", n))
        if u:
            return u
    return None

def atualizar_whatsapp(user_id, numero):
    ref = _usuario_ref(user_id)
    if not ref.get().exists:
        return None
    ref.update({"whatsapp_number": numero, "updated_at": _agora_iso()})
    return _com_id(ref.get())

# ===== transações =====

def normalizar_transacao(dados):
    """Valida e normaliza o payload de uma transação.

    Levanta ``ValueError`` com a mensagem para o cliente quando algum campo
    é inválido.
    """
    tipo = str(dados.get("type") or "").strip()
    if tipo not in TRANSACTION_TYPES:
        raise ValueError("Tipo inválido: use 'income' ou 'expense'")
    try:
        valor = _valor(dados.get("amount"))
    except (TypeError, ValueError):
        raise ValueError("Valor inválido")
    if not math.isfinite(valor) or valor <= 0:
        raise ValueError("Valor inválido")
    data = parse_data_iso(dados.get("date"))
    if data is None:
        raise ValueError("Data inválida")
    status = dados.get("status") or ("paid" if tipo == "expense" else "received")
    if status not in TRANSACTION_STATUS:
        raise ValueError("Status inválido")
    return {
        "type": tipo,
        "category": str(dados.get("category") or "").strip(),
        "amount": valor,
        "date": data.isoformat(),
        "description": dados.get("description") or None,
        "recurring": bool(dados.get("recurring") or False),
        "status": status,
        "receipt_url": dados.get("receipt_url") or None,
    }

def listar_transacoes(user_id):
    itens = [_com_id(s) for s in _usuario_ref(user_id).collection("transacoes").stream()]
    itens.sort(key=lambda o: (o.get("date") or "", o.get("created_at") or ""), reverse=True)
    return itens

def criar_transacao(user_id, dados):
    payload = normalizar_transacao(dados)
    now = _agora_iso()
    payload.update({"user_id": str(user_id), "created_at": now, "updated_at": now})
    ref = _usuario_ref(user_id).collection("transacoes").document()
    ref.set(payload)
    payload["id"] = ref.id
    logger.info("Transação %s criada para usuário %s (%s %.2f)", ref.id, user_id, payload["type"], payload["amount"])
    return payload

def atualizar_transacao(user_id, transacao_id, dados):
    ref = _usuario_ref(user_id).collection("transacoes").document(str(transacao_id))
    if not ref.get().exists:
        return None
    payload = normalizar_transacao(dados)
    payload["updated_at"] = _agora_iso()
    ref.update(payload)
    return _com_id(ref.get())

def excluir_transacao(user_id, transacao_id):
    ref = _usuario_ref(user_id).collection("transacoes").document(str(transacao_id))
    if not ref.get().exists:
        return False
    ref.delete()
    return True

def salvar_candidato(user_id, candidato):
    """Persiste uma transação extraída de mensagem; sem valor positivo, rejeita."""
    if not candidato.amount or candidato.amount <= 0:
        raise ValueError("Não foi possível identificar o valor na mensagem")
    return criar_transacao(user_id, candidato.to_dict())

# ===== orçamentos =====

def _orcamento_out(o):
    return {"id": o["id"], "category": o.get("category"), "limit": o.get("limit_amount")}

def listar_orcamentos(user_id):
    itens = [_com_id(s) for s in _usuario_ref(user_id).collection("orcamentos").stream()]
    itens.sort(key=lambda o: o.get("category") or "")
    return [_orcamento_out(o) for o in itens]

def salvar_orcamento(user_id, category, limit):
    """Cria o orçamento da categoria ou atualiza o limite do existente."""
    col = _usuario_ref(user_id).collection("orcamentos")
    now = _agora_iso()
    existente = _primeiro(col.where("category", "==", category))
    if existente:
        ref = col.document(existente["id"])
        ref.update({"limit_amount": _valor(limit), "updated_at": now})
        return _orcamento_out(_com_id(ref.get())), False
    ref = col.document()
    ref.set({
        "user_id": str(user_id),
        "category": category,
        "limit_amount": _valor(limit),
        "created_at": now,
        "updated_at": now,
    })
    return _orcamento_out(_com_id(ref.get())), True

def atualizar_orcamento(user_id, orcamento_id, category, limit):
    ref = _usuario_ref(user_id).collection("orcamentos").document(str(orcamento_id))
    if not ref.get().exists:
        return None
    ref.update({"category": category, "limit_amount": _valor(limit), "updated_at": _agora_iso()})
    return _orcamento_out(_com_id(ref.get()))

def excluir_orcamento(user_id, orcamento_id):
    ref = _usuario_ref(user_id).collection("orcamentos").document(str(orcamento_id))
    if not ref.get().exists:
        return False
    ref.delete()
    return True

# ===== metas =====

def _meta_out(o):
    return {"id": o["id"], "name": o.get("name"), "target": o.get("target"), "saved": o.get("saved", 0.0)}

def listar_metas(user_id):
    itens = [_com_id(s) for s in _usuario_ref(user_id).collection("metas").stream()]
    itens.sort(key=lambda o: o.get("created_at") or "", reverse=True)
    return [_meta_out(o) for o in itens]

def criar_meta(user_id, name, target, saved=0):
    now = _agora_iso()
    ref = _usuario_ref(user_id).collection("metas").document()
    ref.set({
        "user_id": str(user_id),
        "name": name,
        "target": _valor(target),
        "saved": _valor(saved or 0),
        "created_at": now,
        "updated_at": now,
    })
    return _meta_out(_com_id(ref.get()))

def atualizar_meta(user_id, meta_id, name, target, saved=0):
    ref = _usuario_ref(user_id).collection("metas").document(str(meta_id))
    if not ref.get().exists:
        return None
    ref.update({
        "name": name,
        "target": _valor(target),
        "saved": _valor(saved or 0),
        "updated_at": _agora_iso(),
    })
    return _meta_out(_com_id(ref.get()))

def excluir_meta(user_id, meta_id):
    ref = _usuario_ref(user_id).collection("metas").document(str(meta_id))
    if not ref.get().exists:
        return False
    ref.delete()
    return True
