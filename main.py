import argparse
import json
import logging
import os
import sys

from app.config import API_HOST, API_PORT, LOG_LEVEL, check_env, jwt_secret

logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL, logging.INFO)
)
logger = logging.getLogger("monetize")

def run_api():
    import api_monetize
    os.environ["FLASK_SKIP_DOTENV"] = "1"
    if not jwt_secret():
        logger.warning("⚠️ JWT_SECRET não configurado. Login e cadastro retornarão erro 500.")
    logger.info("🚀 Servidor rodando na porta %s", API_PORT)
    api_monetize.app.run(host=API_HOST, port=API_PORT, debug=False, use_reloader=False)

def run_parse(texto, remote=False):
    if remote:
        from app.services.finance_api import testar_parser
        res = testar_parser(texto)
        if "error" in res:
            print(json.dumps(res, ensure_ascii=False, indent=2))
            return 1
        parsed = res.get("parsed", {})
    else:
        from app.services.rule_based import parse_transaction_message
        parsed = parse_transaction_message(texto).to_dict()
    print(json.dumps(parsed, ensure_ascii=False, indent=2))
    return 0 if parsed.get("amount") else 1

def run_test_connection():
    from app.services.database import testar_conexao
    try:
        ok = testar_conexao()
    except Exception:
        logger.exception("❌ Erro ao conectar ao banco de dados")
        return 1
    if not ok:
        logger.error("❌ Conexão sem resposta do banco de dados")
        return 1
    logger.info("✅ Conexão com banco de dados estabelecida")
    return 0

def main(argv=None):
    parser = argparse.ArgumentParser(description="MonetizeSpeed API")
    parser.add_argument("--service", choices=["api"], default="api")
    parser.add_argument("--parse", metavar="TEXTO", help="Mostra a transação extraída do texto e sai")
    parser.add_argument("--remote", action="store_true", help="Com --parse, usa a API em execução")
    parser.add_argument("--check-env", action="store_true", help="Mostra a configuração encontrada")
    parser.add_argument("--test-connection", action="store_true", help="Testa a conexão com o Firestore")
    args = parser.parse_args(argv)
    if args.check_env:
        print(json.dumps(check_env(), ensure_ascii=False, indent=2))
        return 0
    if args.test_connection:
        return run_test_connection()
    if args.parse is not None:
        return run_parse(args.parse, remote=args.remote)
    run_api()
    return 0

if __name__ == "__main__":
    sys.exit(main())
