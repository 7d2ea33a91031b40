"""
tests/test_database.py - camada de persistência sobre o Firestore em memória.
"""
from datetime import date

import pytest

from app.services import database as db
from app.services.rule_based import parse_transaction_message


def test_get_db_is_cached_and_reset():
    a = db.get_db()
    assert db.get_db() is a
    db.reset_db()
    assert db.get_db() is not a


def test_testar_conexao():
    assert db.testar_conexao() is True


def test_fake_where_chains_equality_filters():
    col = db.get_db().collection("itens")
    col.document("a").set({"cor": "azul", "tamanho": 1})
    col.document("b").set({"cor": "azul", "tamanho": 2})
    col.document("c").set({"cor": "verde", "tamanho": 1})
    col.document("a").collection("sub").document("x").set({"cor": "azul"})
    ids = sorted(s.id for s in col.where("cor", "==", "azul").stream())
    assert ids == ["a", "b"]
    ids = [s.id for s in col.where("cor", "==", "azul").where("tamanho", "==", 2).stream()]
    assert ids == ["b"]


def test_fake_rejects_other_operators():
    with pytest.raises(ValueError):
        db.get_db().collection("itens").where("valor", ">", 1)


def test_fake_set_merge_and_update():
    ref = db.get_db().collection("itens").document("a")
    ref.set({"x": 1, "y": 2})
    ref.set({"y": 3}, merge=True)
    assert ref.get().to_dict() == {"x": 1, "y": 3}
    ref.update({"x": 9})
    assert ref.get().to_dict() == {"x": 9, "y": 3}
    ref.delete()
    assert not ref.get().exists
    with pytest.raises(KeyError):
        ref.update({"x": 1})


def test_users_by_email_and_whatsapp():
    u = db.criar_usuario("Ana@Example.com", "hash", "Ana")
    assert db.buscar_usuario_por_email("ANA@example.com")["id"] == u["id"]
    assert db.buscar_usuario_por_email("outra@example.com") is None
    assert db.buscar_usuario_por_whatsapp("11987654321") is None

    db.atualizar_whatsapp(u["id"], "11987654321")
    assert db.buscar_usuario_por_whatsapp("11987654321")["id"] == u["id"]
    assert db.buscar_usuario_por_whatsapp("5511987654321")["id"] == u["id"]
    assert db.atualizar_whatsapp("nao-existe", "11987654321") is None


def test_buscar_usuario_por_id_empty():
    assert db.buscar_usuario_por_id(None) is None
    assert db.buscar_usuario_por_id("nao-existe") is None


def test_normalizar_transacao_defaults():
    t = db.normalizar_transacao({"type": "income", "category": " Salário ", "amount": "1500.459", "date": "2024-03-01"})
    assert t["status"] == "received"
    assert t["amount"] == 1500.46
    assert t["category"] == "Salário"
    assert t["recurring"] is False
    assert t["description"] is None


@pytest.mark.parametrize("campo,valor", [
    ("type", "outro"),
    ("amount", None),
    ("amount", 0),
    ("amount", "nan"),
    ("date", "32/13/2024"),
    ("status", "pago"),
])
def test_normalizar_transacao_rejects(campo, valor):
    dados = {"type": "expense", "category": "Lazer", "amount": 10, "date": "2024-03-01"}
    dados[campo] = valor
    with pytest.raises(ValueError):
        db.normalizar_transacao(dados)


def test_salvar_candidato():
    u = db.criar_usuario("ana@example.com", "hash")
    cand = parse_transaction_message("gastei 35,50 reais no almoço", today=date(2024, 3, 15))
    tx = db.salvar_candidato(u["id"], cand)
    assert tx["amount"] == 35.5
    assert tx["date"] == "2024-03-15"
    assert tx["status"] == "paid"
    assert db.listar_transacoes(u["id"])[0]["id"] == tx["id"]


def test_salvar_candidato_without_amount_is_rejected():
    u = db.criar_usuario("ana@example.com", "hash")
    cand = parse_transaction_message("paguei o almoço")
    with pytest.raises(ValueError):
        db.salvar_candidato(u["id"], cand)
    assert db.listar_transacoes(u["id"]) == []


def test_salvar_orcamento_reports_creation():
    u = db.criar_usuario("ana@example.com", "hash")
    _, criado = db.salvar_orcamento(u["id"], "Lazer", 100)
    assert criado is True
    orc, criado = db.salvar_orcamento(u["id"], "Lazer", 150)
    assert criado is False
    assert orc["limit"] == 150.0
    assert len(db.listar_orcamentos(u["id"])) == 1
