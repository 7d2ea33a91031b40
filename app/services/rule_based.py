import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from app.utils.datas import hoje

EXPENSE_KEYWORDS = ('gastei', 'paguei', 'comprei', 'despesa', 'gasto', 'pago')
INCOME_KEYWORDS = ('recebi', 'ganhei', 'entrou', 'receita', 'recebido')

# Tried in order; the first pattern whose first match gives a positive value wins.
# ASCII digits only; \s still covers the non-breaking space.
VALUE_PATTERNS = (
    re.compile(r'([0-9]+[.,]?[0-9]*)\s*(?:reais?|r\$|rs)'),
    re.compile(r'r\$\s*([0-9]+[.,]?[0-9]*)'),
    re.compile(r'([0-9]+[.,]?[0-9]*)'),
)

CATEGORY_GROUPS = (
    ('Alimentação', ('alimentação', 'almoço', 'jantar', 'lanche', 'comida', 'restaurante')),
    ('Transporte', ('transporte', 'uber', 'táxi', 'combustível', 'gasolina', 'ônibus')),
    ('Lazer', ('lazer', 'cinema', 'show', 'festa', 'viagem')),
    ('Saúde', ('saúde', 'médico', 'farmácia', 'hospital')),
    ('Educação', ('educação', 'curso', 'livro', 'escola')),
    ('Moradia', ('moradia', 'aluguel', 'condomínio', 'luz', 'água', 'internet')),
    ('Compras', ('compras', 'supermercado', 'mercado')),
    ('Salário', ('salário', 'freelance', 'freela', 'venda')),
)

# keyword -> label, in declaration order
CATEGORY_KEYWORDS = tuple(
    (kw, label) for label, keywords in CATEGORY_GROUPS for kw in keywords
)
CATEGORY_LABELS = tuple(label for label, _ in CATEGORY_GROUPS)
DEFAULT_CATEGORY = 'Outros'

STATUS_BY_TYPE = {'expense': 'paid', 'income': 'received'}


@dataclass(frozen=True)
class ParsedTransaction:
    """Transação candidata extraída de uma mensagem livre.

    ``amount`` é ``None`` quando nenhum valor positivo foi encontrado; quem
    persiste deve rejeitar o candidato nesse caso.
    """
    type: str
    amount: Optional[float]
    category: str
    date: date
    description: str

    @property
    def status(self):
        return STATUS_BY_TYPE[self.type]

    def to_dict(self):
        return {
            "type": self.type,
            "amount": self.amount,
            "category": self.category,
            "date": self.date.isoformat(),
            "description": self.description,
            "status": self.status,
        }


def detect_type(text):
    t = (text or '').lower()
    if any(k in t for k in EXPENSE_KEYWORDS):
        return 'expense'
    if any(k in t for k in INCOME_KEYWORDS):
        return 'income'
    return 'expense'


def parse_value(raw):
    s = re.sub(r'[^0-9,.]', '', raw or '').replace(',', '.', 1)
    try:
        return float(s)
    except ValueError:
        return None


def _try_pattern(pattern, text):
    m = pattern.search(text)
    if not m:
        return None
    val = parse_value(m.group(0))
    if val is None or not val > 0:
        return None
    return val


def extract_amount(text):
    t = (text or '').lower()
    for pattern in VALUE_PATTERNS:
        val = _try_pattern(pattern, t)
        if val is not None:
            return val
    return None


def detect_category(text):
    t = (text or '').lower()
    for kw, label in CATEGORY_KEYWORDS:
        if kw in t:
            return label
    return DEFAULT_CATEGORY


def _trim(s):
    # strip() does not treat the BOM as whitespace
    return s.strip().strip('\ufeff').strip()


def parse_transaction_message(message, today=None):
    message = message or ''
    text = _trim(message.lower())
    return ParsedTransaction(
        type=detect_type(text),
        amount=extract_amount(text),
        category=detect_category(text),
        date=today or hoje(),
        description=_trim(message),
    )
