import math
from typing import Literal, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from motor_proposta.constantes import (
    FATOR_INCIDENCIA_PADRAO,
    MES_REAJUSTE_PADRAO,
    MES_REFERENCIA_PADRAO,
    SIMULTANEIDADE_PADRAO,
)
from motor_proposta.tarifas import normalizar_mes
from motor_proposta.taxas import fracao, nao_negativo, numero_finito

ModoEntrada = Literal["CREDITO", "REDUZ", "NONE"]
TipoLigacao = Literal["monofasico", "bifasico", "trifasico"]
CondicaoPagamento = Literal["AVISTA", "PARCELADO", "FINANCIAMENTO"]
ModoPagamento = Literal["PIX", "DEBITO", "CREDITO"]

_ALIASES_MODO_ENTRADA = {
    "CREDITO": "CREDITO",
    "CREDIT": "CREDITO",
    "CRÉDITO MENSAL": "CREDITO",
    "REDUZ": "REDUZ",
    "REDUCE_CONTRACTED": "REDUZ",
    "REDUZIR KC": "REDUZ",
    "NONE": "NONE",
}


def _inteiro_nao_negativo(valor) -> int:
    return int(math.floor(nao_negativo(valor)))


def _positivo_ou_none(valor) -> Optional[float]:
    numero = numero_finito(valor)
    return numero if numero > 0 else None


def _finito_ou_none(valor) -> Optional[float]:
    numero = numero_finito(valor, padrao=math.nan)
    return None if math.isnan(numero) else numero


class _ValorImutavel(BaseModel):
    model_config = ConfigDict(frozen=True)


# =========================================================
# TARIFA E TUSD
# =========================================================
class ParametrosTarifa(_ValorImutavel):
    tarifa_cheia: float = 0.0          # R$/kWh
    desconto: float = 0.0              # fração contratual
    inflacao_aa: float = 0.0           # reajuste anual da tarifa
    mes_reajuste: int = MES_REAJUSTE_PADRAO
    mes_referencia: int = MES_REFERENCIA_PADRAO

    @field_validator("tarifa_cheia", mode="before")
    @classmethod
    def _tarifa_nao_negativa(cls, v):
        return nao_negativo(v)

    @field_validator("desconto", mode="before")
    @classmethod
    def _desconto_fracao(cls, v):
        return fracao(v)

    @field_validator("inflacao_aa", mode="before")
    @classmethod
    def _inflacao_finita(cls, v):
        return numero_finito(v)

    @field_validator("mes_reajuste", mode="before")
    @classmethod
    def _mes_reajuste(cls, v):
        return normalizar_mes(v, MES_REAJUSTE_PADRAO)

    @field_validator("mes_referencia", mode="before")
    @classmethod
    def _mes_referencia(cls, v):
        return normalizar_mes(v, MES_REFERENCIA_PADRAO)


class ConfigTusd(_ValorImutavel):
    percentual_fio_b: float = 0.0
    simultaneidade: float = SIMULTANEIDADE_PADRAO
    tarifa_rkwh: Optional[float] = None
    tarifa_fio_b_oficial: Optional[float] = None
    fator_incidencia_lei14300: float = FATOR_INCIDENCIA_PADRAO

    @field_validator("percentual_fio_b", mode="before")
    @classmethod
    def _percentual(cls, v):
        return nao_negativo(v)

    @field_validator("simultaneidade", mode="before")
    @classmethod
    def _simultaneidade(cls, v):
        return fracao(v, SIMULTANEIDADE_PADRAO)

    @field_validator("tarifa_rkwh", "tarifa_fio_b_oficial", mode="before")
    @classmethod
    def _tarifas_opcionais(cls, v):
        return _positivo_ou_none(v)

    @field_validator("fator_incidencia_lei14300", mode="before")
    @classmethod
    def _fator_incidencia(cls, v):
        return fracao(v, FATOR_INCIDENCIA_PADRAO)


class EntradaTusdAnual(_ValorImutavel):
    ano: int
    tipo_cliente: str = "residencial"
    sub_tipo: Optional[str] = None
    consumo_mensal_kwh: float = 0.0
    tarifa_cheia_rkwh: Optional[float] = None
    tusd_rkwh: Optional[float] = None
    peso_tusd: Optional[float] = None
    simultaneidade_padrao: Optional[float] = None

    @field_validator("ano", mode="before")
    @classmethod
    def _ano_inteiro(cls, v):
        return int(numero_finito(v))

    @field_validator("consumo_mensal_kwh", mode="before")
    @classmethod
    def _consumo(cls, v):
        return nao_negativo(v)


class ResultadoTusd(_ValorImutavel):
    fator_ano: float
    simultaneidade_usada: float
    kwh_instantaneo: float
    kwh_compensado: float
    tusd_nao_comp_rkwh: float
    custo_tusd_mes: float


# =========================================================
# MENSALIDADE
# =========================================================
def _normalizar_modo_entrada(valor) -> str:
    chave = str(valor or "NONE").strip().upper()
    return _ALIASES_MODO_ENTRADA.get(chave, "NONE")


class EntradaMensalidade(_ValorImutavel):
    kc_kwh_mes: float = 0.0
    tarifa: ParametrosTarifa = Field(default_factory=ParametrosTarifa)
    m: int = 1
    taxa_minima: float = 0.0
    encargos_fixos: float = 0.0
    entrada_rs: float = 0.0
    modo_entrada: ModoEntrada = "NONE"
    prazo_meses: int = 0
    tusd: ConfigTusd = Field(default_factory=ConfigTusd)
    isento_encargos: bool = False

    @field_validator("kc_kwh_mes", "taxa_minima", "encargos_fixos", "entrada_rs", mode="before")
    @classmethod
    def _valores_nao_negativos(cls, v):
        return nao_negativo(v)

    @field_validator("m", mode="before")
    @classmethod
    def _mes_inteiro(cls, v):
        return int(math.floor(numero_finito(v)))

    @field_validator("prazo_meses", mode="before")
    @classmethod
    def _prazo(cls, v):
        return _inteiro_nao_negativo(v)

    @field_validator("modo_entrada", mode="before")
    @classmethod
    def _modo(cls, v):
        return _normalizar_modo_entrada(v)


# =========================================================
# BUYOUT
# =========================================================
class ParametrosBuyout(_ValorImutavel):
    vm0: float = 0.0                   # valor de reposição inicial
    depreciacao_aa: float = 0.0
    ipca_aa: float = 0.0
    inadimplencia_aa: float = 0.0
    tributos_aa: float = 0.0
    custos_fixos_m: float = 0.0
    opex_m: float = 0.0
    seguro_m: float = 0.0
    cashback_pct: float = 0.0
    duracao_meses: int = 0

    @field_validator("vm0", "custos_fixos_m", "opex_m", "seguro_m", mode="before")
    @classmethod
    def _valores_nao_negativos(cls, v):
        return nao_negativo(v)

    @field_validator("depreciacao_aa", "ipca_aa", "inadimplencia_aa", "tributos_aa", mode="before")
    @classmethod
    def _taxas_finitas(cls, v):
        return numero_finito(v)

    @field_validator("cashback_pct", mode="before")
    @classmethod
    def _cashback(cls, v):
        return fracao(v)

    @field_validator("duracao_meses", mode="before")
    @classmethod
    def _duracao(cls, v):
        return _inteiro_nao_negativo(v)


class EstadoSimulacao(_ValorImutavel):
    """Leasing state driving the month-by-month buyout table."""

    geracao_mensal_kwh: float = 0.0
    tarifa: ParametrosTarifa = Field(default_factory=ParametrosTarifa)
    taxa_minima: float = 0.0
    buyout: ParametrosBuyout = Field(default_factory=ParametrosBuyout)
    pagos_acum_manual: float = 0.0  # 0 = use the accumulated installments

    @field_validator("geracao_mensal_kwh", "taxa_minima", "pagos_acum_manual", mode="before")
    @classmethod
    def _valores_nao_negativos(cls, v):
        return nao_negativo(v)


class LinhaBuyout(_ValorImutavel):
    mes: int
    tarifa_cheia: float
    tarifa_descontada: float
    prestacao_efetiva: float
    prestacao_acum: float
    cashback: float
    valor_residual: float


# =========================================================
# SIMULAÇÃO DE CENÁRIOS
# =========================================================
class PontoTarifaHistorica(_ValorImutavel):
    # ano/tarifa ficam None quando inválidos; ordenar_historico descarta a linha
    ano: Optional[int] = None
    mes: int = 1
    tarifa: Optional[float] = None

    @field_validator("ano", mode="before")
    @classmethod
    def _ano(cls, v):
        ano = _finito_ou_none(v)
        return None if ano is None else int(ano)

    @field_validator("mes", mode="before")
    @classmethod
    def _mes(cls, v):
        return normalizar_mes(v, 1)

    @field_validator("tarifa", mode="before")
    @classmethod
    def _tarifa(cls, v):
        return _finito_ou_none(v)


class EntradaSimulacao(_ValorImutavel):
    capex: float = 0.0
    opex_mensal: float = 0.0
    consumo_mensal_kwh: float = 0.0
    energia_vendida_kwh_mensal: float = 0.0
    tarifa_inicial: Optional[float] = None
    historico: list[PontoTarifaHistorica] = Field(default_factory=list)
    anos_analise: int = 25
    tusd_absorvida_pct: float = 0.0
    taxa_desconto_aa: float = 0.0

    @field_validator(
        "capex", "opex_mensal", "consumo_mensal_kwh", "energia_vendida_kwh_mensal",
        "taxa_desconto_aa", mode="before",
    )
    @classmethod
    def _valores_nao_negativos(cls, v):
        return nao_negativo(v)

    @field_validator("tarifa_inicial", mode="before")
    @classmethod
    def _tarifa_inicial(cls, v):
        return _positivo_ou_none(v)

    @field_validator("historico", mode="before")
    @classmethod
    def _historico(cls, v):
        if v is None:
            return []
        if isinstance(v, pd.DataFrame):
            return v.to_dict("records")
        if isinstance(v, (list, tuple)):
            return list(v)
        return []

    @field_validator("anos_analise", mode="before")
    @classmethod
    def _anos(cls, v):
        return max(1, _inteiro_nao_negativo(v))

    @field_validator("tusd_absorvida_pct", mode="before")
    @classmethod
    def _tusd(cls, v):
        return fracao(v)


class RegistroAnoSimulacao(_ValorImutavel):
    ano: int
    receita_bruta: float
    opex: float
    tusd_absorvida: float
    lucro_liquido: float
    tarifa_projetada: float
    lcoe: float
    energia_gerada: float
    roi_acumulado: float


class KPIsEssenciais(_ValorImutavel):
    capex_total: float
    opex_mensal: float
    opex_anual: float
    lucro_liquido_mensal: float
    lucro_liquido_anual: float
    lucro_liquido_total: float
    roi_percent: float
    payback_meses: float  # math.inf quando o investimento não se paga


class KPIsAvancados(_ValorImutavel):
    vpl: float
    tir: Optional[float] = None
    lcoe: float


class ResultadoCenario(_ValorImutavel):
    nome: str
    serie_ano: list[RegistroAnoSimulacao]
    kpis_essenciais: KPIsEssenciais
    kpis_avancados: KPIsAvancados


class EstatisticasRisco(_ValorImutavel):
    roi_medio: float = 0.0
    roi_p5: float = 0.0
    roi_p50: float = 0.0
    roi_p95: float = 0.0
    desvio_padrao_roi: float = 0.0
    lucro_medio: float = 0.0
    probabilidade_lucro_negativo: float = 0.0   # lucro total < 0
    probabilidade_prejuizo: float = 0.0         # lucro total < CAPEX


class ResultadoRisco(_ValorImutavel):
    n: int
    semente: int
    roi_amostras: list[float]
    lucro_amostras: list[float]
    estatisticas: EstatisticasRisco


class CelulaSensibilidade(_ValorImutavel):
    delta_tarifa: float
    delta_energia: float
    delta_capex: float
    delta_tusd: float
    roi_percent: float


class ResultadoSimulacao(_ValorImutavel):
    entrada: EntradaSimulacao
    tarifas_projetadas: list[float]
    base: ResultadoCenario
    otimista: ResultadoCenario
    pessimista: ResultadoCenario
    risco: Optional[ResultadoRisco] = None
    sensibilidade: Optional[list[CelulaSensibilidade]] = None

    @property
    def cenarios(self) -> dict:
        return {"base": self.base, "otimista": self.otimista, "pessimista": self.pessimista}


# =========================================================
# VENDA DIRETA
# =========================================================
class FormVenda(_ValorImutavel):
    consumo_kwh_mes: float = 0.0
    geracao_estimada_kwh_mes: float = 0.0
    tarifa_rkwh: float = 0.0
    taxa_minima_mensal: float = 0.0
    capex_total: float = 0.0
    condicao: CondicaoPagamento = "AVISTA"
    modo_pagamento: ModoPagamento = "PIX"

    # Percentuais (ex.: 2.5 = 2,5%)
    taxa_mdr_pix_pct: float = 0.0
    taxa_mdr_debito_pct: float = 0.0
    taxa_mdr_credito_vista_pct: float = 0.0
    taxa_mdr_credito_parcelado_pct: float = 0.0

    n_parcelas: int = 12
    juros_cartao_am_pct: Optional[float] = None
    juros_cartao_aa_pct: Optional[float] = None

    n_parcelas_fin: int = 60
    juros_fin_am_pct: Optional[float] = None
    juros_fin_aa_pct: Optional[float] = None
    entrada_financiamento: float = 0.0

    taxa_desconto_aa_pct: Optional[float] = None

    @field_validator(
        "consumo_kwh_mes", "geracao_estimada_kwh_mes", "tarifa_rkwh",
        "taxa_minima_mensal", "capex_total", "entrada_financiamento", mode="before",
    )
    @classmethod
    def _valores_nao_negativos(cls, v):
        return nao_negativo(v)

    @field_validator(
        "taxa_mdr_pix_pct", "taxa_mdr_debito_pct", "taxa_mdr_credito_vista_pct",
        "taxa_mdr_credito_parcelado_pct", mode="before",
    )
    @classmethod
    def _mdr(cls, v):
        return numero_finito(v)

    @field_validator(
        "juros_cartao_am_pct", "juros_cartao_aa_pct", "juros_fin_am_pct",
        "juros_fin_aa_pct", "taxa_desconto_aa_pct", mode="before",
    )
    @classmethod
    def _percentuais_opcionais(cls, v):
        numero = numero_finito(v, math.nan)
        return None if math.isnan(numero) else numero

    @field_validator("n_parcelas", "n_parcelas_fin", mode="before")
    @classmethod
    def _parcelas(cls, v):
        return _inteiro_nao_negativo(v)


class RetornoVenda(_ValorImutavel):
    economia: list[float]
    pagamento_mensal: list[float]
    fluxo: list[float]
    saldo: list[float]
    payback: Optional[int] = None
    roi: float
    vpl: Optional[float] = None
    investimento_inicial: float
    total_pagamentos: float
