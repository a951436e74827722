import math
from typing import Optional


def formatar_moeda(valor: float) -> str:
    """1234.56 → 'R$ 1.234,56'"""
    if valor < 0:
        return f"-R$ {_formatar_numero_br(abs(valor))}"
    return f"R$ {_formatar_numero_br(valor)}"


def formatar_percentual(valor: float) -> str:
    """0.2534 → '25,34%'"""
    pct = valor * 100
    if pct < 0:
        return f"-{_formatar_numero_br(abs(pct))}%"
    return f"{_formatar_numero_br(pct)}%"


def formatar_tarifa(valor: float) -> str:
    """0.85 → 'R$ 0,8500/kWh'"""
    return f"R$ {_formatar_numero_br(valor, casas=4)}/kWh"


def formatar_payback(meses: float) -> str:
    """38 → '38 meses (3a 2m)' | inf → 'Não se paga no horizonte'"""
    if not math.isfinite(meses):
        return "Não se paga no horizonte"
    total = int(meses)
    anos, resto = divmod(total, 12)
    return f"{total} meses ({anos}a {resto}m)"


def formatar_tir(tir: Optional[float]) -> str:
    if tir is None:
        return "N/D"
    return formatar_percentual(tir)


def parse_valor_br(valor_str: str) -> float:
    """'22,81' → 22.81 | ',00' → 0.0 | '' → 0.0"""
    if not valor_str or not isinstance(valor_str, str):
        return 0.0
    valor_str = valor_str.strip().replace("R$", "").strip()
    if not valor_str:
        return 0.0
    valor_str = valor_str.replace('.', '').replace(',', '.')
    try:
        return float(valor_str)
    except ValueError:
        return 0.0


def _formatar_numero_br(valor: float, casas: int = 2) -> str:
    """1234.56 → '1.234,56'"""
    texto = f"{valor:,.{casas}f}"  # "1,234.56"
    return texto.replace(',', '_').replace('.', ',').replace('_', '.')
