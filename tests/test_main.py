"""
tests/test_main.py - linha de comando.
"""
import json

import main
from app.utils.formatting import formatar_moeda, resumo_transacao


def test_parse_prints_candidate(capsys):
    assert main.main(["--parse", "gastei 35,50 reais no almoço"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["amount"] == 35.5
    assert out["category"] == "Alimentação"
    assert out["status"] == "paid"


def test_parse_without_amount_exits_1(capsys):
    assert main.main(["--parse", "paguei o almoço"]) == 1
    assert json.loads(capsys.readouterr().out)["amount"] is None


def test_parse_remote_uses_http_client(monkeypatch, capsys):
    from app.services import finance_api
    monkeypatch.setattr(finance_api, "testar_parser", lambda texto: {"parsed": {"amount": 7.0, "type": "expense"}})
    assert main.main(["--parse", "qualquer", "--remote"]) == 0
    assert json.loads(capsys.readouterr().out)["amount"] == 7.0


def test_parse_remote_error(monkeypatch, capsys):
    from app.services import finance_api
    monkeypatch.setattr(finance_api, "testar_parser", lambda texto: {"error": "recusado"})
    assert main.main(["--parse", "qualquer", "--remote"]) == 1


def test_check_env(capsys):
    assert main.main(["--check-env"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["jwt_secret"] is True
    assert report["webhook_secret"] is True
    assert report["test_mode"] is True
    assert "segredo" not in json.dumps(report)


def test_test_connection():
    assert main.main(["--test-connection"]) == 0


def test_formatar_moeda():
    assert formatar_moeda(1234.5) == "R$ 1.234,50"
    assert formatar_moeda(-10) == "- R$ 10,00"
    assert formatar_moeda(0) == "R$ 0,00"
    assert formatar_moeda(35.5, negrito=True) == "*R$ 35,50*"


def test_resumo_transacao():
    txt = resumo_transacao({"type": "income", "amount": 200.0, "category": "Salário", "date": "2024-03-15"})
    assert txt == "💰 Receita registrada: *R$ 200,00* em Salário (15/03/2024)"
