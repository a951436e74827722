import math

from motor_proposta.constantes import (
    CICLO_MINIMO_REAJUSTE,
    MES_REAJUSTE_PADRAO,
    MES_REFERENCIA_PADRAO,
    MESES_POR_ANO,
)
from motor_proposta.taxas import fator_composto, fracao, nao_negativo, numero_finito


def normalizar_mes(mes, padrao: int) -> int:
    """Month as 1..12; zero, out-of-range and non-numeric values fall back to `padrao`."""
    valor = numero_finito(mes)
    if valor < 1 or valor > 12:
        return padrao
    return int(valor)


def meses_ate_primeiro_reajuste(mes_reajuste, mes_referencia) -> int:
    """Months between contract start and the first tariff adjustment.

    The first adjustment never fires before a full cycle: any distance
    shorter than 12 months (including 0) is pushed to 12.
    """
    aniversario = normalizar_mes(mes_reajuste, MES_REAJUSTE_PADRAO)
    referencia = normalizar_mes(mes_referencia, MES_REFERENCIA_PADRAO)
    meses = (aniversario - referencia + MESES_POR_ANO) % MESES_POR_ANO
    if meses == 0 or meses < CICLO_MINIMO_REAJUSTE:
        meses = CICLO_MINIMO_REAJUSTE
    return meses


def passos_reajuste(m, mes_reajuste, mes_referencia) -> int:
    """Number of annual adjustments already applied at month `m` (1-based)."""
    mes = numero_finito(m)
    if mes <= 1:
        return 0
    primeiro = meses_ate_primeiro_reajuste(mes_reajuste, mes_referencia)
    decorridos = int(math.floor(mes)) - 1
    if decorridos < primeiro:
        return 0
    return 1 + (decorridos - primeiro) // MESES_POR_ANO


def tarifa_cheia_projetada(
    tarifa_cheia, inflacao_aa, m,
    mes_reajuste=MES_REAJUSTE_PADRAO, mes_referencia=MES_REFERENCIA_PADRAO,
) -> float:
    tarifa = nao_negativo(tarifa_cheia)
    passos = passos_reajuste(m, mes_reajuste, mes_referencia)
    if passos == 0:
        return tarifa
    valor = tarifa * fator_composto(inflacao_aa, passos)
    return max(0.0, numero_finito(valor))


def tarifa_descontada(
    tarifa_cheia, desconto, inflacao_aa, m,
    mes_reajuste=MES_REAJUSTE_PADRAO, mes_referencia=MES_REFERENCIA_PADRAO,
) -> float:
    """Escalated tariff net of the contractual discount."""
    cheia = tarifa_cheia_projetada(tarifa_cheia, inflacao_aa, m, mes_reajuste, mes_referencia)
    return cheia * (1 - fracao(desconto))


def tarifa_projetada_anos(tarifa_cheia, inflacao_aa, anos) -> float:
    """Tariff compounded once per elapsed year (network-bill projection)."""
    n = max(0, int(math.floor(numero_finito(anos))))
    valor = nao_negativo(tarifa_cheia) * fator_composto(inflacao_aa, n)
    return max(0.0, numero_finito(valor))
