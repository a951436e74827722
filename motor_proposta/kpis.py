import logging
import math
from typing import Optional

import numpy_financial as npf

from motor_proposta.constantes import (
    MESES_POR_ANO,
    TIR_CHUTE_INICIAL,
    TIR_DERIVADA_MINIMA,
    TIR_MAX_ITERACOES,
    TIR_TAXA_MINIMA,
    TIR_TOLERANCIA,
)
from motor_proposta.taxas import nao_negativo, numero_finito

logger = logging.getLogger(__name__)


def calcular_payback_meses(capex, lucros_anuais) -> float:
    """Months until cumulative profit covers CAPEX.

    Each year's profit is spread evenly over its 12 months. Returns 0 when
    there is nothing to recover and math.inf when the horizon ends first.
    """
    investimento = nao_negativo(capex)
    if investimento <= 0:
        return 0.0

    acumulado = 0.0
    meses = 0
    for lucro in lucros_anuais:
        lucro_mes = numero_finito(lucro) / MESES_POR_ANO
        for _ in range(MESES_POR_ANO):
            meses += 1
            acumulado += lucro_mes
            if acumulado >= investimento:
                return float(meses)
    return math.inf


def calcular_roi_percent(capex, lucro_total) -> float:
    investimento = nao_negativo(capex)
    if investimento <= 0:
        return 0.0
    return numero_finito(lucro_total) / investimento * 100


def calcular_vpl(capex, lucros_anuais, taxa_desconto_aa) -> float:
    """NPV of [-capex, profit_1, ..., profit_n] at the annual discount rate."""
    taxa = nao_negativo(taxa_desconto_aa)
    fluxos = [-nao_negativo(capex)] + [numero_finito(v) for v in lucros_anuais]
    vpl = float(npf.npv(taxa, fluxos))
    return vpl if math.isfinite(vpl) else 0.0


def _vpl_e_derivada(fluxos: list[float], taxa: float) -> tuple[float, float]:
    vpl = 0.0
    derivada = 0.0
    for t, fluxo in enumerate(fluxos):
        vpl += fluxo / (1 + taxa) ** t
        derivada += -t * fluxo / (1 + taxa) ** (t + 1)
    return vpl, derivada


def calcular_tir(fluxos) -> Optional[float]:
    """IRR by Newton-Raphson, bounded to TIR_MAX_ITERACOES steps.

    Returns None when the flows admit no root or no rate above -1 is found.
    """
    fluxos = [numero_finito(f) for f in fluxos]
    if len(fluxos) < 2:
        return None
    if not (any(f > 0 for f in fluxos) and any(f < 0 for f in fluxos)):
        # no sign change, no root
        return None

    taxa = TIR_CHUTE_INICIAL
    for _ in range(TIR_MAX_ITERACOES):
        try:
            vpl, derivada = _vpl_e_derivada(fluxos, taxa)
        except (OverflowError, ZeroDivisionError):
            logger.warning("TIR divergiu (taxa %.6g)", taxa)
            break
        if abs(derivada) < TIR_DERIVADA_MINIMA:
            break
        proxima = taxa - vpl / derivada
        if not math.isfinite(proxima) or proxima <= TIR_TAXA_MINIMA:
            logger.warning("TIR divergiu (taxa %.6f)", proxima)
            break
        if abs(proxima - taxa) < TIR_TOLERANCIA:
            return proxima
        taxa = proxima
    else:
        logger.warning("TIR não convergiu em %d iterações", TIR_MAX_ITERACOES)

    return taxa if taxa > TIR_TAXA_MINIMA else None


def calcular_lcoe(capex, opex_anuais, energias_anuais) -> float:
    """(CAPEX + Σ OPEX) / Σ energy, R$/kWh."""
    energia_total = sum(nao_negativo(e) for e in energias_anuais)
    if energia_total <= 0:
        return 0.0
    custo_total = nao_negativo(capex) + sum(nao_negativo(o) for o in opex_anuais)
    return custo_total / energia_total
