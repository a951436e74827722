import logging
import math
from typing import Optional

import numpy_financial as npf

from motor_proposta.constantes import HORIZONTE_VENDA_MESES
from motor_proposta.models import FormVenda, RetornoVenda
from motor_proposta.taxas import numero_finito, para_mensal

logger = logging.getLogger(__name__)


def pmt(i_m, n, pv) -> float:
    """Level payment of a loan of `pv` over `n` months at monthly rate `i_m`."""
    i_m = numero_finito(i_m, math.nan)
    n = numero_finito(n, math.nan)
    pv = numero_finito(pv, math.nan)
    if math.isnan(i_m) or math.isnan(n) or math.isnan(pv) or n <= 0:
        return 0.0
    if abs(i_m) < 1e-9:
        return pv / n
    return float(-npf.pmt(i_m, n, pv))


def _juros_mensal(am_pct: Optional[float], aa_pct: Optional[float]) -> float:
    # monthly rate wins over the annual one
    if am_pct is not None:
        return am_pct / 100
    if aa_pct is None:
        return 0.0
    return para_mensal(aa_pct / 100)


def _taxa_mdr(form: FormVenda) -> float:
    mdr = {
        "PIX": form.taxa_mdr_pix_pct,
        "DEBITO": form.taxa_mdr_debito_pct,
        "CREDITO": form.taxa_mdr_credito_vista_pct,
    }
    return mdr[form.modo_pagamento] / 100


def calcular_retorno_venda(form: FormVenda) -> RetornoVenda:
    """Month-by-month return of a direct sale over a 30-year horizon.

    Savings are flat: (generation, or consumption when there is no
    generation estimate) × tariff − minimum fee.
    """
    horizonte = HORIZONTE_VENDA_MESES
    energia = form.geracao_estimada_kwh_mes if form.geracao_estimada_kwh_mes > 0 else form.consumo_kwh_mes
    economia_mes = max(0.0, energia * form.tarifa_rkwh - form.taxa_minima_mensal)

    economia = [economia_mes] * horizonte
    pagamentos = [0.0] * horizonte
    capex = form.capex_total

    investimento_inicial = 0.0
    total_pagamentos = 0.0

    if form.condicao == "AVISTA":
        investimento_inicial = capex * (1 + _taxa_mdr(form))
        total_pagamentos = capex
    elif form.condicao == "PARCELADO":
        parcelas = form.n_parcelas
        juros = _juros_mensal(form.juros_cartao_am_pct, form.juros_cartao_aa_pct)
        parcela = pmt(juros, parcelas, capex) * (1 + form.taxa_mdr_credito_parcelado_pct / 100)
        for mes in range(min(parcelas, horizonte)):
            pagamentos[mes] = parcela
            total_pagamentos += parcela
    else:  # FINANCIAMENTO
        parcelas = form.n_parcelas_fin
        entrada = form.entrada_financiamento
        investimento_inicial = entrada
        total_pagamentos = entrada
        juros = _juros_mensal(form.juros_fin_am_pct, form.juros_fin_aa_pct)
        parcela = pmt(juros, parcelas, max(0.0, capex - entrada))
        for mes in range(min(parcelas, horizonte)):
            pagamentos[mes] = parcela
            total_pagamentos += parcela

    fluxo = []
    saldo = []
    acumulado = -investimento_inicial
    payback = None
    for mes in range(horizonte):
        fluxo_mes = economia[mes] - pagamentos[mes]
        acumulado += fluxo_mes
        fluxo.append(fluxo_mes)
        saldo.append(acumulado)
        if payback is None and acumulado >= 0:
            payback = mes + 1

    taxa_desconto_m = 0.0
    if form.taxa_desconto_aa_pct is not None:
        taxa_desconto_m = para_mensal(form.taxa_desconto_aa_pct / 100)
    vpl = None
    if taxa_desconto_m > 0:
        vpl = float(npf.npv(taxa_desconto_m, [-investimento_inicial] + fluxo))

    economia_total = sum(economia)
    if form.condicao == "AVISTA":
        roi = (economia_total - capex) / capex if capex > 0 else 0.0
    elif total_pagamentos > 0:
        roi = (economia_total - total_pagamentos) / total_pagamentos
    else:
        roi = 0.0

    logger.debug("Venda %s/%s: payback %s, ROI %.4f", form.condicao, form.modo_pagamento, payback, roi)

    return RetornoVenda(
        economia=economia,
        pagamento_mensal=pagamentos,
        fluxo=fluxo,
        saldo=saldo,
        payback=payback,
        roi=roi,
        vpl=vpl,
        investimento_inicial=investimento_inicial,
        total_pagamentos=total_pagamentos,
    )
