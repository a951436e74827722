import logging
import math

import pandas as pd

from motor_proposta.constantes import MES_INICIO_BUYOUT
from motor_proposta.models import EstadoSimulacao, LinhaBuyout, ParametrosBuyout
from motor_proposta.tarifas import tarifa_cheia_projetada
from motor_proposta.taxas import (
    arredondar_centavos,
    fator_composto,
    nao_negativo,
    numero_finito,
    para_mensal,
)

logger = logging.getLogger(__name__)

COLUNAS_TABELA = {
    "mes": "Mês",
    "tarifa_cheia": "Tarifa Cheia (R$/kWh)",
    "tarifa_descontada": "Tarifa Descontada (R$/kWh)",
    "prestacao_efetiva": "Prestação Efetiva (R$)",
    "prestacao_acum": "Prestação Acumulada (R$)",
    "cashback": "Cashback (R$)",
    "valor_residual": "Valor de Compra (R$)",
}


def valor_reposicao(vm0, depreciacao_aa, m) -> float:
    """Replacement value depreciated monthly: vm0 × (1 − dep_m)^m."""
    base = nao_negativo(vm0)
    mes = numero_finito(m)
    if mes <= 0:
        return base
    fator = max(0.0, 1 - para_mensal(depreciacao_aa))
    return max(0.0, base * fator ** mes)


def custos_restantes(m, prazo, custos_fixos, opex, seguro, ipca_aa) -> float:
    """Monthly fixed costs from `m` to the end of the contract, compounded by IPCA."""
    mes = int(math.floor(numero_finito(m)))
    prazo = int(math.floor(numero_finito(prazo)))
    if mes > prazo:
        return 0.0
    base = max(0.0, numero_finito(custos_fixos) + numero_finito(opex) + numero_finito(seguro))
    if base == 0:
        return 0.0

    ipca_m = para_mensal(ipca_aa)
    inicio = max(1, mes)
    total = sum(base * fator_composto(ipca_m, k - inicio) for k in range(inicio, prazo + 1))
    return numero_finito(total)


def gross_up(inadimplencia_aa, tributos_aa) -> float:
    """1 / ((1 − default_m)(1 − tax_m)); degenerate denominators give 1."""
    denominador = (1 - para_mensal(inadimplencia_aa)) * (1 - para_mensal(tributos_aa))
    if denominador <= 0:
        return 1.0
    return 1 / denominador


def credito_cashback(cashback_pct, pagos_acum) -> float:
    pct = numero_finito(cashback_pct)
    pagos = numero_finito(pagos_acum)
    if pct <= 0 or pagos <= 0:
        return 0.0
    return pct * pagos


def _fora_da_janela(m: float, duracao: int) -> bool:
    return m < MES_INICIO_BUYOUT or m > duracao


def valor_compra_cliente(params: ParametrosBuyout, m, pagos_acum=0.0) -> float:
    """Price at which the client may buy the asset at month `m`.

    Defined for months 7..duration; 0 elsewhere, including duration + 1
    when the asset transfers at no cost.
    """
    mes = numero_finito(m)
    if _fora_da_janela(mes, params.duracao_meses):
        return 0.0

    reposicao = valor_reposicao(params.vm0, params.depreciacao_aa, mes)
    custos = custos_restantes(
        mes, params.duracao_meses, params.custos_fixos_m,
        params.opex_m, params.seguro_m, params.ipca_aa,
    )
    cashback = credito_cashback(params.cashback_pct, pagos_acum)

    valor = (reposicao + custos) * gross_up(params.inadimplencia_aa, params.tributos_aa) - cashback
    if not math.isfinite(valor):
        return 0.0
    return max(0.0, arredondar_centavos(valor))


def valor_compra_linear(params: ParametrosBuyout, m, pagos_acum=0.0) -> float:
    """Month-7 valuation scaled down linearly to zero at the end of the contract."""
    mes = numero_finito(m)
    duracao = params.duracao_meses
    if duracao <= MES_INICIO_BUYOUT or _fora_da_janela(mes, duracao):
        return 0.0

    valor_inicial = valor_compra_cliente(params, MES_INICIO_BUYOUT, pagos_acum)
    if valor_inicial <= 0:
        return 0.0

    fator = (duracao - mes) / (duracao - MES_INICIO_BUYOUT)
    return max(0.0, arredondar_centavos(valor_inicial * fator))


def _pagos_efetivos(estado: EstadoSimulacao, prestacao_acum: float) -> float:
    if estado.pagos_acum_manual > 0:
        return min(estado.pagos_acum_manual, prestacao_acum)
    return prestacao_acum


def gerar_tabela_buyout(estado: EstadoSimulacao) -> list[LinhaBuyout]:
    """One BuyoutLine per contract month.

    Gross installment = generation × discounted tariff + minimum fee +
    fixed costs + OPEX + insurance, then net of monthly default and taxes.
    """
    b = estado.buyout
    t = estado.tarifa
    duracao = b.duracao_meses
    if duracao == 0:
        return []

    inad_m = para_mensal(b.inadimplencia_aa)
    trib_m = para_mensal(b.tributos_aa)
    custos_mes = estado.taxa_minima + b.custos_fixos_m + b.opex_m + b.seguro_m

    linhas = []
    prestacao_acum = 0.0
    for mes in range(1, duracao + 1):
        tarifa_cheia = tarifa_cheia_projetada(
            t.tarifa_cheia, t.inflacao_aa, mes, t.mes_reajuste, t.mes_referencia
        )
        tarifa_desc = tarifa_cheia * (1 - t.desconto)

        prestacao_bruta = estado.geracao_mensal_kwh * tarifa_desc + custos_mes
        prestacao_efetiva = prestacao_bruta * (1 - inad_m) * (1 - trib_m)
        prestacao_acum += prestacao_efetiva

        pagos = _pagos_efetivos(estado, prestacao_acum)

        residual = valor_compra_cliente(b, mes, pagos) if mes >= MES_INICIO_BUYOUT else 0.0

        linhas.append(LinhaBuyout(
            mes=mes,
            tarifa_cheia=tarifa_cheia,
            tarifa_descontada=tarifa_desc,
            prestacao_efetiva=prestacao_efetiva,
            prestacao_acum=prestacao_acum,
            cashback=max(0.0, pagos * b.cashback_pct),
            valor_residual=residual,
        ))

    logger.debug("Tabela de buyout: %d meses, prestação acumulada R$ %.2f", duracao, prestacao_acum)
    return linhas


def curva_buyout(estado: EstadoSimulacao, linear: bool = False) -> list[float]:
    """Buyout value per month; the linear curve reuses the table's paid amounts."""
    linhas = gerar_tabela_buyout(estado)
    if not linear:
        return [linha.valor_residual for linha in linhas]

    return [
        valor_compra_linear(estado.buyout, linha.mes, _pagos_efetivos(estado, linha.prestacao_acum))
        for linha in linhas
    ]


def tabela_buyout_dataframe(linhas: list[LinhaBuyout]) -> pd.DataFrame:
    df = pd.DataFrame([linha.model_dump() for linha in linhas], columns=list(COLUNAS_TABELA))
    return df.rename(columns=COLUNAS_TABELA)
