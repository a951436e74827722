import logging
import math
from typing import Optional

import numpy as np
import pandas as pd

from motor_proposta.constantes import (
    CRESCIMENTO_TARIFA_PADRAO,
    MESES_POR_ANO,
    MIN_PONTOS_HISTORICO,
    TARIFA_PADRAO_RKWH,
)
from motor_proposta.models import EntradaSimulacao, PontoTarifaHistorica
from motor_proposta.taxas import fator_composto

logger = logging.getLogger(__name__)


def ordenar_historico(pontos) -> list[PontoTarifaHistorica]:
    """Chronological (ano, mes) order of a tariff history.

    Accepts PontoTarifaHistorica instances, dicts or a DataFrame with
    columns ano/mes/tarifa. Rows without a year or a numeric tariff are
    dropped; a missing month counts as January.
    """
    if pontos is None:
        return []
    if isinstance(pontos, pd.DataFrame):
        df = pontos.copy()
    else:
        registros = [p.model_dump() if isinstance(p, PontoTarifaHistorica) else dict(p) for p in pontos]
        df = pd.DataFrame(registros)

    if df.empty or "ano" not in df.columns or "tarifa" not in df.columns:
        return []
    if "mes" not in df.columns:
        df["mes"] = 1

    for coluna in ("ano", "mes", "tarifa"):
        df[coluna] = pd.to_numeric(df[coluna], errors="coerce")
    df = df.replace([np.inf, -np.inf], np.nan)

    descartados = int(df[["ano", "tarifa"]].isna().any(axis=1).sum())
    if descartados:
        logger.debug("Histórico tarifário: %d ponto(s) inválido(s) descartado(s)", descartados)
    df = df.dropna(subset=["ano", "tarifa"])
    df["mes"] = df["mes"].fillna(1)

    df = df.sort_values(["ano", "mes"], kind="mergesort")
    return [
        PontoTarifaHistorica(ano=row.ano, mes=row.mes, tarifa=row.tarifa)
        for row in df.itertuples(index=False)
    ]


def regressao_linear(valores) -> Optional[tuple[float, float]]:
    """OLS fit y = slope·x + intercept over index positions 0..n-1.

    Returns None when the system is singular (fewer than two points).
    """
    y = np.asarray(valores, dtype=float)
    n = len(y)
    if n == 0:
        return None
    x = np.arange(n, dtype=float)

    denominador = n * np.sum(x * x) - np.sum(x) ** 2
    if denominador == 0:
        return None
    inclinacao = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denominador
    intercepto = (np.sum(y) - inclinacao * np.sum(x)) / n
    return float(inclinacao), float(intercepto)


def _serie_crescimento_padrao(base: float, anos: int) -> list[float]:
    return [base * fator_composto(CRESCIMENTO_TARIFA_PADRAO, i) for i in range(1, anos + 1)]


def projetar_tarifas(entrada: EntradaSimulacao) -> list[float]:
    """Projected tariff for each analysis year (R$/kWh).

    With fewer than six historical points the base tariff grows 8% a year;
    otherwise a linear trend over the history is extrapolated 12 positions
    per year past the last observation.
    """
    base = entrada.tarifa_inicial or TARIFA_PADRAO_RKWH
    anos = entrada.anos_analise
    historico = ordenar_historico(entrada.historico)

    if len(historico) < MIN_PONTOS_HISTORICO:
        logger.warning(
            "Histórico tarifário com %d ponto(s), usando crescimento padrão de %.0f%% a.a.",
            len(historico), CRESCIMENTO_TARIFA_PADRAO * 100,
        )
        return _serie_crescimento_padrao(base, anos)

    valores = [p.tarifa if p.tarifa > 0 else base for p in historico]
    ajuste = regressao_linear(valores)
    if ajuste is None:
        logger.warning("Regressão tarifária singular, usando crescimento padrão")
        return _serie_crescimento_padrao(base, anos)

    inclinacao, intercepto = ajuste
    ultimo_indice = len(valores) - 1
    tarifas = []
    for ano in range(1, anos + 1):
        x = ultimo_indice + ano * MESES_POR_ANO
        tarifa = inclinacao * x + intercepto
        tarifas.append(tarifa if math.isfinite(tarifa) and tarifa > 0 else base)

    logger.debug("Tarifa projetada: inclinação %.6f, intercepto %.4f", inclinacao, intercepto)
    return tarifas
