import math
from decimal import ROUND_HALF_UP, Context, Decimal

CENTAVO = Decimal("0.01")
_CONTEXTO_CENTAVOS = Context(prec=400)  # comporta qualquer float finito


def numero_finito(valor, padrao: float = 0.0) -> float:
    """float(valor), or `padrao` for None, bad text, NaN and ±inf."""
    if valor is None or isinstance(valor, bool):
        return padrao
    try:
        numero = float(valor)
    except (TypeError, ValueError):
        return padrao
    if not math.isfinite(numero):
        return padrao
    return numero


def nao_negativo(valor, padrao: float = 0.0) -> float:
    return max(0.0, numero_finito(valor, padrao))


def fracao(valor, padrao: float = 0.0) -> float:
    """Clamp to [0, 1]."""
    return min(1.0, max(0.0, numero_finito(valor, padrao)))


def para_mensal(taxa_aa) -> float:
    """Annual rate → compounded monthly equivalent: (1 + i)^(1/12) - 1.

    0.08 a.a. → 0.006434 a.m.
    """
    taxa = numero_finito(taxa_aa, padrao=math.nan)
    if math.isnan(taxa) or taxa <= -1:
        return 0.0
    return (1 + taxa) ** (1.0 / 12.0) - 1.0


def fator_composto(taxa, periodos) -> float:
    """(1 + taxa)^periodos; an overflowing or non-finite power gives 0."""
    try:
        fator = (1 + numero_finito(taxa)) ** periodos
    except OverflowError:
        return 0.0
    return numero_finito(fator)


def arredondar_centavos(valor) -> float:
    """Half-up rounding to cents: 0.125 → 0.13."""
    numero = numero_finito(valor)
    return float(Decimal(numero).quantize(CENTAVO, rounding=ROUND_HALF_UP, context=_CONTEXTO_CENTAVOS))
