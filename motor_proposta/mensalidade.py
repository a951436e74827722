import logging
import math
from typing import Optional

from motor_proposta.constantes import CONSUMO_MINIMO_KWH, MESES_POR_ANO
from motor_proposta.models import ConfigTusd, EntradaMensalidade
from motor_proposta.tarifas import tarifa_cheia_projetada, tarifa_projetada_anos
from motor_proposta.taxas import arredondar_centavos, fracao, nao_negativo, numero_finito
from motor_proposta.tusd import calcular_tusd_fio_b

logger = logging.getLogger(__name__)


def kc_ajustado_por_entrada(kc, tarifa_cheia, desconto, prazo, entrada) -> float:
    """Contracted kWh reduced by the share of the contract paid up front."""
    kc = numero_finito(kc)
    if kc <= 0:
        return 0.0
    entrada = numero_finito(entrada)
    prazo = numero_finito(prazo)
    if entrada <= 0 or prazo <= 0:
        return kc

    denominador = kc * nao_negativo(tarifa_cheia) * (1 - fracao(desconto)) * prazo
    if denominador <= 0:
        return kc
    reducao = min(1.0, max(0.0, entrada / denominador))
    return kc * (1 - reducao)


def credito_mensal(entrada, prazo) -> float:
    """Down payment spread evenly over the contract: 4200 over 60 months → 70."""
    entrada = numero_finito(entrada)
    prazo = numero_finito(prazo)
    if entrada <= 0 or prazo <= 0:
        return 0.0
    return entrada / prazo


def _encargo_tusd(energia_kwh: float, tarifa_cheia_mes: float, tusd: ConfigTusd) -> float:
    tarifa_legada = tusd.tarifa_rkwh if tusd.tarifa_rkwh else tarifa_cheia_mes
    return calcular_tusd_fio_b(
        energia_kwh,
        tusd.simultaneidade,
        tusd.percentual_fio_b,
        tarifa_legada,
        tusd.tarifa_fio_b_oficial,
        tusd.fator_incidencia_lei14300,
    )


def mensalidade_liquida(entrada: EntradaMensalidade) -> float:
    """Client's net monthly bill for month `entrada.m`.

    energy × discounted tariff + fixed charges + TUSD Fio B, minus the
    monthly down-payment credit when the down payment is taken as credit.
    Fixed charges and TUSD are skipped for exempt contracts.
    """
    t = entrada.tarifa

    if entrada.modo_entrada == "REDUZ":
        kc = kc_ajustado_por_entrada(
            entrada.kc_kwh_mes, t.tarifa_cheia, t.desconto,
            entrada.prazo_meses, entrada.entrada_rs,
        )
    else:
        kc = entrada.kc_kwh_mes

    if kc <= 0:
        return 0.0

    tarifa_cheia_mes = tarifa_cheia_projetada(
        t.tarifa_cheia, t.inflacao_aa, entrada.m, t.mes_reajuste, t.mes_referencia
    )
    tarifa_desc = tarifa_cheia_mes * (1 - t.desconto)
    custo_energia = kc * tarifa_desc

    encargos = 0.0
    tusd = 0.0
    if not entrada.isento_encargos:
        encargos = entrada.taxa_minima + entrada.encargos_fixos
        tusd = _encargo_tusd(kc, tarifa_cheia_mes, entrada.tusd)

    base = custo_energia + encargos + tusd

    credito = 0.0
    if entrada.modo_entrada == "CREDITO":
        credito = credito_mensal(entrada.entrada_rs, entrada.prazo_meses)

    valor = max(0.0, base - credito)
    return valor if math.isfinite(valor) else 0.0


def serie_mensalidades(entrada: EntradaMensalidade, meses: Optional[int] = None) -> list[float]:
    """Installments for months 1..N (N defaults to the contract term)."""
    n = entrada.prazo_meses if meses is None else int(nao_negativo(meses))
    return [
        mensalidade_liquida(entrada.model_copy(update={"m": mes}))
        for mes in range(1, n + 1)
    ]


def mensalidades_por_ano(serie: list[float]) -> list[float]:
    """Average installment of each 12-month slice, rounded to cents."""
    medias = []
    for inicio in range(0, len(serie), MESES_POR_ANO):
        fatia = [numero_finito(v) for v in serie[inicio:inicio + MESES_POR_ANO]]
        medias.append(arredondar_centavos(sum(fatia) / len(fatia)))
    return medias


def taxa_minima(tipo_ligacao: str, tarifa) -> float:
    """Minimum billable consumption for the connection type × tariff."""
    consumo_minimo = CONSUMO_MINIMO_KWH.get(str(tipo_ligacao or "").lower())
    if consumo_minimo is None:
        logger.warning("Tipo de ligação desconhecido: %s", tipo_ligacao)
        return 0.0
    return nao_negativo(tarifa) * consumo_minimo


def valor_conta_rede(
    tarifa_cheia,
    inflacao_aa,
    anos_decorridos,
    tipo_ligacao: str,
    cip=0.0,
    tusd: Optional[ConfigTusd] = None,
    energia_gerada_kwh=0.0,
) -> float:
    """Bill still paid to the utility with solar: minimum fee + CIP + TUSD Fio B."""
    tusd = tusd or ConfigTusd()
    tarifa = tarifa_projetada_anos(tarifa_cheia, inflacao_aa, anos_decorridos)
    encargo = calcular_tusd_fio_b(
        energia_gerada_kwh,
        tusd.simultaneidade,
        tusd.percentual_fio_b,
        tusd.tarifa_rkwh or 0.0,
        tusd.tarifa_fio_b_oficial,
        tusd.fator_incidencia_lei14300,
    )
    valor = taxa_minima(tipo_ligacao, tarifa) + nao_negativo(cip) + encargo
    return valor if math.isfinite(valor) else 0.0


def economia_mensal(
    consumo_mensal_kwh,
    tarifa_cheia,
    inflacao_aa,
    anos_decorridos,
    tipo_ligacao: str,
    cip=0.0,
    tusd: Optional[ConfigTusd] = None,
    energia_gerada_kwh=0.0,
) -> float:
    """Bill without solar minus the network bill with solar. May be negative."""
    tarifa = tarifa_projetada_anos(tarifa_cheia, inflacao_aa, anos_decorridos)
    conta_sem_solar = nao_negativo(consumo_mensal_kwh) * tarifa + nao_negativo(cip)
    conta_com_solar = valor_conta_rede(
        tarifa_cheia, inflacao_aa, anos_decorridos, tipo_ligacao, cip, tusd, energia_gerada_kwh
    )
    economia = conta_sem_solar - conta_com_solar
    return economia if math.isfinite(economia) else 0.0
