def formatar_moeda(valor, com_simbolo=True, negrito=False):
    if valor is None or valor == 0:
        texto = "R$ 0,00" if com_simbolo else "0,00"
        return f"*{texto}*" if negrito else texto
    valor_abs = abs(valor)
    valor_str = f"{valor_abs:,.2f}"
    valor_str = valor_str.replace(",", "X").replace(".", ",").replace("X", ".")
    sinal = "- " if valor < 0 else ""
    simbolo = "R$ " if com_simbolo else ""
    texto = f"{sinal}{simbolo}{valor_str}"
    return f"*{texto}*" if negrito else texto

def formatar_data(iso):
    s = str(iso or "")
    if len(s) >= 10 and s[4] == "-" and s[7] == "-":
        return f"{s[8:10]}/{s[5:7]}/{s[:4]}"
    return s

def resumo_transacao(transacao):
    """Texto curto de confirmação enviado de volta ao chat."""
    tipo = transacao.get("type")
    rotulo = "💸 Despesa" if tipo == "expense" else "💰 Receita"
    valor = formatar_moeda(float(transacao.get("amount") or 0), negrito=True)
    categoria = transacao.get("category") or "Outros"
    return f"{rotulo} registrada: {valor} em {categoria} ({formatar_data(transacao.get('date'))})"
