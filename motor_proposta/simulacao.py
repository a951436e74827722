import itertools
import logging
import zlib
from typing import Optional

import numpy as np

from motor_proposta.constantes import (
    AMPLITUDES_MONTE_CARLO,
    DELTAS_SENSIBILIDADE,
    MESES_POR_ANO,
    MULTIPLICADORES_CENARIO,
    N_MONTE_CARLO_PADRAO,
    PERCENTIS_RISCO,
)
from motor_proposta.kpis import (
    calcular_lcoe,
    calcular_payback_meses,
    calcular_roi_percent,
    calcular_tir,
    calcular_vpl,
)
from motor_proposta.models import (
    CelulaSensibilidade,
    EntradaSimulacao,
    EstatisticasRisco,
    KPIsAvancados,
    KPIsEssenciais,
    RegistroAnoSimulacao,
    ResultadoCenario,
    ResultadoRisco,
    ResultadoSimulacao,
)
from motor_proposta.projecao_tarifa import projetar_tarifas
from motor_proposta.taxas import nao_negativo

logger = logging.getLogger(__name__)


class LogicaSimulacao:

    def __init__(self, entrada: EntradaSimulacao, tarifas: Optional[list[float]] = None):
        self.entrada = entrada
        self.tarifas_informadas = tarifas

    def calcular(
        self,
        incluir_risco: bool = False,
        incluir_sensibilidade: bool = False,
        n_monte_carlo: int = N_MONTE_CARLO_PADRAO,
        semente: Optional[int] = None,
    ) -> ResultadoSimulacao:
        self._preparar_dados()
        self._projetar_tarifas()
        self._construir_cenarios()

        risco = self.simular_risco(n_monte_carlo, semente) if incluir_risco else None
        sensibilidade = self.analisar_sensibilidade() if incluir_sensibilidade else None
        return self._montar_resultado(risco, sensibilidade)

    def _preparar_dados(self):
        e = self.entrada

        self.capex = e.capex
        self.opex_mensal = e.opex_mensal
        self.energia_mensal = e.energia_vendida_kwh_mensal
        self.tusd_pct = e.tusd_absorvida_pct
        self.taxa_desconto = e.taxa_desconto_aa
        self.anos = e.anos_analise

    def _projetar_tarifas(self):
        """One projected tariff per analysis year.

        Caller-supplied tariffs win; a short list repeats its last value.
        """
        if self.tarifas_informadas:
            tarifas = [nao_negativo(t) for t in self.tarifas_informadas[:self.anos]]
            tarifas += [tarifas[-1]] * (self.anos - len(tarifas))
            self.tarifas = tarifas
        else:
            self.tarifas = projetar_tarifas(self.entrada)

    def _garantir_preparo(self):
        if not hasattr(self, "tarifas"):
            self._preparar_dados()
            self._projetar_tarifas()

    def _serie_ano(self, mult: dict) -> list[RegistroAnoSimulacao]:
        """Yearly records under the given multipliers.

        Scenario multipliers carry tarifa/energia/opex; risk draws and the
        sensitivity grid may also scale tusd and capex.
        """
        capex = self.capex * mult.get("capex", 1.0)
        tusd_pct = self.tusd_pct * mult.get("tusd", 1.0)
        energia_mensal = self.energia_mensal * mult["energia"]
        energia_anual = energia_mensal * MESES_POR_ANO
        opex_anual = self.opex_mensal * mult["opex"] * MESES_POR_ANO

        serie = []
        lucro_acumulado = 0.0
        for i, tarifa_base in enumerate(self.tarifas):
            tarifa = tarifa_base * mult["tarifa"]
            receita = energia_anual * tarifa
            tusd = receita * tusd_pct
            lucro = receita - opex_anual - tusd
            lucro_acumulado += lucro

            # LCOE and ROI to date
            energia_acumulada = energia_anual * (i + 1)
            custo_acumulado = capex + opex_anual * (i + 1)
            lcoe = custo_acumulado / energia_acumulada if energia_acumulada > 0 else 0.0
            roi = calcular_roi_percent(capex, lucro_acumulado)

            serie.append(RegistroAnoSimulacao(
                ano=i + 1,
                receita_bruta=receita,
                opex=opex_anual,
                tusd_absorvida=tusd,
                lucro_liquido=lucro,
                tarifa_projetada=tarifa,
                lcoe=lcoe,
                energia_gerada=energia_anual,
                roi_acumulado=roi,
            ))
        return serie

    def _kpis_essenciais(self, serie: list[RegistroAnoSimulacao]) -> KPIsEssenciais:
        lucros = [r.lucro_liquido for r in serie]
        lucro_anual = lucros[0] if lucros else 0.0
        lucro_total = sum(lucros)

        return KPIsEssenciais(
            capex_total=self.capex,
            opex_mensal=self.opex_mensal,
            opex_anual=self.opex_mensal * MESES_POR_ANO,
            lucro_liquido_mensal=lucro_anual / MESES_POR_ANO,
            lucro_liquido_anual=lucro_anual,
            lucro_liquido_total=lucro_total,
            roi_percent=calcular_roi_percent(self.capex, lucro_total),
            payback_meses=calcular_payback_meses(self.capex, lucros),
        )

    def _kpis_avancados(self, serie: list[RegistroAnoSimulacao]) -> KPIsAvancados:
        lucros = [r.lucro_liquido for r in serie]
        return KPIsAvancados(
            vpl=calcular_vpl(self.capex, lucros, self.taxa_desconto),
            tir=calcular_tir([-self.capex] + lucros),
            lcoe=calcular_lcoe(
                self.capex,
                [r.opex for r in serie],
                [r.energia_gerada for r in serie],
            ),
        )

    def _construir_cenarios(self):
        self.cenarios = {}
        for nome, mult in MULTIPLICADORES_CENARIO.items():
            serie = self._serie_ano(mult)
            self.cenarios[nome] = ResultadoCenario(
                nome=nome,
                serie_ano=serie,
                kpis_essenciais=self._kpis_essenciais(serie),
                kpis_avancados=self._kpis_avancados(serie),
            )
            logger.debug(
                "Cenário %s: lucro total R$ %.2f, payback %s meses",
                nome, self.cenarios[nome].kpis_essenciais.lucro_liquido_total,
                self.cenarios[nome].kpis_essenciais.payback_meses,
            )

    def _semente_padrao(self) -> int:
        # mesma entrada, mesma sequência sorteada
        return zlib.crc32(self.entrada.model_dump_json().encode("utf-8"))

    def simular_risco(self, n: int = N_MONTE_CARLO_PADRAO, semente: Optional[int] = None) -> ResultadoRisco:
        """Monte Carlo over the base scenario.

        Each draw scales tariff, generation, TUSD and OPEX by a uniform
        factor within AMPLITUDES_MONTE_CARLO. The generator is seeded, so the
        same input and seed always yield the same samples.
        """
        self._garantir_preparo()
        n = int(nao_negativo(n))
        semente = self._semente_padrao() if semente is None else int(nao_negativo(semente))
        rng = np.random.default_rng(semente)

        chaves = list(AMPLITUDES_MONTE_CARLO)
        amplitudes = np.array([AMPLITUDES_MONTE_CARLO[c] for c in chaves])
        fatores = 1 + rng.uniform(-1.0, 1.0, size=(n, len(chaves))) * amplitudes

        rois, lucros = [], []
        for linha in fatores:
            mult = dict(zip(chaves, linha.tolist()))
            lucro_total = sum(r.lucro_liquido for r in self._serie_ano(mult))
            lucros.append(lucro_total)
            rois.append(calcular_roi_percent(self.capex, lucro_total))

        logger.debug("Monte Carlo: %d amostras, semente %d", n, semente)
        return ResultadoRisco(
            n=n,
            semente=semente,
            roi_amostras=rois,
            lucro_amostras=lucros,
            estatisticas=self._estatisticas_risco(rois, lucros),
        )

    def _estatisticas_risco(self, rois: list[float], lucros: list[float]) -> EstatisticasRisco:
        if not rois:
            return EstatisticasRisco()

        roi = np.asarray(rois, dtype=float)
        lucro = np.asarray(lucros, dtype=float)
        p5, p50, p95 = np.percentile(roi, PERCENTIS_RISCO)
        return EstatisticasRisco(
            roi_medio=float(roi.mean()),
            roi_p5=float(p5),
            roi_p50=float(p50),
            roi_p95=float(p95),
            desvio_padrao_roi=float(roi.std()),
            lucro_medio=float(lucro.mean()),
            probabilidade_lucro_negativo=float((lucro < 0).mean()),
            probabilidade_prejuizo=float((lucro < self.capex).mean()),
        )

    def analisar_sensibilidade(self, deltas: Optional[dict] = None) -> list[CelulaSensibilidade]:
        """ROI% for every combination of tariff, generation, CAPEX and TUSD deltas."""
        self._garantir_preparo()
        grade = dict(DELTAS_SENSIBILIDADE)
        grade.update(deltas or {})

        celulas = []
        for d_tarifa, d_energia, d_capex, d_tusd in itertools.product(
            grade["tarifa"], grade["energia"], grade["capex"], grade["tusd"],
        ):
            mult = {
                "tarifa": 1 + d_tarifa,
                "energia": 1 + d_energia,
                "opex": 1.0,
                "capex": 1 + d_capex,
                "tusd": 1 + d_tusd,
            }
            lucro_total = sum(r.lucro_liquido for r in self._serie_ano(mult))
            celulas.append(CelulaSensibilidade(
                delta_tarifa=d_tarifa,
                delta_energia=d_energia,
                delta_capex=d_capex,
                delta_tusd=d_tusd,
                roi_percent=calcular_roi_percent(self.capex * mult["capex"], lucro_total),
            ))
        return celulas

    def _montar_resultado(self, risco=None, sensibilidade=None) -> ResultadoSimulacao:
        return ResultadoSimulacao(
            entrada=self.entrada,
            tarifas_projetadas=self.tarifas,
            base=self.cenarios["base"],
            otimista=self.cenarios["otimista"],
            pessimista=self.cenarios["pessimista"],
            risco=risco,
            sensibilidade=sensibilidade,
        )


def executar_simulacao(
    entrada: EntradaSimulacao,
    tarifas: Optional[list[float]] = None,
    incluir_risco: bool = False,
    incluir_sensibilidade: bool = False,
    n_monte_carlo: int = N_MONTE_CARLO_PADRAO,
    semente: Optional[int] = None,
) -> ResultadoSimulacao:
    return LogicaSimulacao(entrada, tarifas).calcular(
        incluir_risco, incluir_sensibilidade, n_monte_carlo, semente,
    )
