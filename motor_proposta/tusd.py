import logging
import math
from typing import Optional

from motor_proposta.constantes import (
    FATOR_ANO_TUSD,
    FATOR_INCIDENCIA_PADRAO,
    PESO_TUSD_PADRAO,
    SIMULTANEIDADE_FALLBACK,
    SIMULTANEIDADE_PADRAO,
    SIMULTANEIDADE_POR_PERFIL,
)
from motor_proposta.models import EntradaTusdAnual, ResultadoTusd
from motor_proposta.taxas import fracao, nao_negativo, numero_finito

logger = logging.getLogger(__name__)


def calcular_tusd_fio_b(
    energia_gerada_kwh,
    simultaneidade=SIMULTANEIDADE_PADRAO,
    percentual_fio_b=0.0,
    tarifa_tusd_rkwh=0.0,
    tarifa_fio_b_oficial=None,
    fator_incidencia=FATOR_INCIDENCIA_PADRAO,
) -> float:
    """Monthly TUSD Fio B charge on compensated energy (R$).

    compensated = generated × (1 − simultaneity)
    rate = official Fio B rate when > 0, else legacy TUSD rate × legacy percent
    charge = rate × compensated × incidence factor
    """
    energia = numero_finito(energia_gerada_kwh)
    if energia <= 0:
        return 0.0

    simult = fracao(simultaneidade, SIMULTANEIDADE_PADRAO)
    energia_compensada = energia * (1 - simult)

    oficial = numero_finito(tarifa_fio_b_oficial)
    if oficial > 0:
        tarifa_aplicada = oficial
    else:
        tarifa_aplicada = nao_negativo(tarifa_tusd_rkwh) * nao_negativo(percentual_fio_b)

    encargo = tarifa_aplicada * energia_compensada * fracao(fator_incidencia, FATOR_INCIDENCIA_PADRAO)
    if not math.isfinite(encargo):
        return 0.0
    return max(0.0, encargo)


def fator_ano_tusd(ano) -> float:
    """Lei 14.300 phase-in: share of Fio B charged in a calendar year."""
    return FATOR_ANO_TUSD.get(int(numero_finito(ano)), 1.0)


def _normalizar_fracao(valor) -> Optional[float]:
    # 55 → 0.55; above 100 saturates
    numero = numero_finito(valor, math.nan)
    if math.isnan(numero):
        return None
    if numero <= 0:
        return 0.0
    if numero > 1:
        return min(1.0, numero / 100) if numero <= 100 else 1.0
    return numero


def _buscar_chave(config: dict, chave: str) -> Optional[float]:
    alvo = chave.strip().lower()
    for nome, valor in config.items():
        if nome.strip().lower() == alvo:
            return valor
    return None


def resolver_simultaneidade(tipo_cliente: str, sub_tipo: Optional[str] = None,
                            override=None, perfis: Optional[dict] = None) -> float:
    sobrescrita = _normalizar_fracao(override)
    if sobrescrita is not None:
        return sobrescrita

    perfis = perfis if perfis is not None else SIMULTANEIDADE_POR_PERFIL
    grupo = perfis.get(str(tipo_cliente or "").strip().lower())
    if grupo:
        if isinstance(sub_tipo, str) and sub_tipo.strip():
            encontrado = _buscar_chave(grupo, sub_tipo)
            if encontrado is not None:
                return fracao(encontrado)
        padrao = _buscar_chave(grupo, "padrao")
        if padrao is not None:
            return fracao(padrao)

    logger.debug("Simultaneidade sem perfil para %s/%s, usando %.2f",
                 tipo_cliente, sub_tipo, SIMULTANEIDADE_FALLBACK)
    return SIMULTANEIDADE_FALLBACK


def _base_tusd(entrada: EntradaTusdAnual) -> float:
    informada = nao_negativo(entrada.tusd_rkwh)
    if informada > 0:
        return informada

    tarifa = nao_negativo(entrada.tarifa_cheia_rkwh)
    if tarifa <= 0:
        return 0.0

    peso = _normalizar_fracao(entrada.peso_tusd)
    return tarifa * (peso if peso is not None else PESO_TUSD_PADRAO)


def calcular_tusd_nao_compensavel(
    entrada: EntradaTusdAnual, perfis: Optional[dict] = None
) -> ResultadoTusd:
    """Non-compensable TUSD for a given calendar year and consumer profile."""
    consumo = entrada.consumo_mensal_kwh
    simultaneidade = fracao(resolver_simultaneidade(
        entrada.tipo_cliente, entrada.sub_tipo, entrada.simultaneidade_padrao, perfis
    ))

    kwh_instantaneo = consumo * simultaneidade
    kwh_compensado = consumo * (1 - simultaneidade)

    fator_ano = fator_ano_tusd(entrada.ano)
    tusd_nao_comp = _base_tusd(entrada) * fator_ano

    return ResultadoTusd(
        fator_ano=fator_ano,
        simultaneidade_usada=simultaneidade,
        kwh_instantaneo=kwh_instantaneo,
        kwh_compensado=kwh_compensado,
        tusd_nao_comp_rkwh=tusd_nao_comp,
        custo_tusd_mes=tusd_nao_comp * kwh_compensado,
    )
