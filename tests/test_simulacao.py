import math
import unittest

import numpy_financial as npf

from motor_proposta.models import EntradaSimulacao
from motor_proposta.simulacao import LogicaSimulacao, executar_simulacao


def _entrada(**kwargs) -> EntradaSimulacao:
    dados = {
        "capex": 50000,
        "opex_mensal": 200,
        "consumo_mensal_kwh": 1000,
        "energia_vendida_kwh_mensal": 1000,
        "tarifa_inicial": 1.0,
        "anos_analise": 10,
        "tusd_absorvida_pct": 0.1,
        "taxa_desconto_aa": 0.08,
    }
    dados.update(kwargs)
    return EntradaSimulacao(**dados)


class TestSerieAno(unittest.TestCase):
    def setUp(self):
        self.resultado = LogicaSimulacao(_entrada()).calcular()

    def test_three_scenarios(self):
        self.assertEqual(set(self.resultado.cenarios), {"base", "otimista", "pessimista"})
        for nome, cenario in self.resultado.cenarios.items():
            self.assertEqual(cenario.nome, nome)
            self.assertEqual([r.ano for r in cenario.serie_ano], list(range(1, 11)))

    def test_base_first_year(self):
        r = self.resultado.base.serie_ano[0]
        self.assertAlmostEqual(r.tarifa_projetada, 1.08)
        self.assertAlmostEqual(r.receita_bruta, 12000 * 1.08)
        self.assertAlmostEqual(r.tusd_absorvida, 1200 * 1.08)
        self.assertAlmostEqual(r.opex, 2400)
        self.assertAlmostEqual(r.lucro_liquido, 12000 * 1.08 * 0.9 - 2400)
        self.assertAlmostEqual(r.energia_gerada, 12000)
        self.assertAlmostEqual(r.lcoe, (50000 + 2400) / 12000)

    def test_running_lcoe_and_roi(self):
        serie = self.resultado.base.serie_ano
        self.assertAlmostEqual(serie[2].lcoe, (50000 + 3 * 2400) / (3 * 12000))
        acumulado = sum(r.lucro_liquido for r in serie[:3])
        self.assertAlmostEqual(serie[2].roi_acumulado, acumulado / 50000 * 100)

    def test_scenario_multipliers(self):
        base = self.resultado.base.serie_ano[0]
        otimista = self.resultado.otimista.serie_ano[0]
        pessimista = self.resultado.pessimista.serie_ano[0]
        self.assertAlmostEqual(otimista.tarifa_projetada, base.tarifa_projetada * 1.10)
        self.assertAlmostEqual(otimista.energia_gerada, base.energia_gerada * 1.05)
        self.assertAlmostEqual(otimista.opex, base.opex * 0.95)
        self.assertAlmostEqual(pessimista.tarifa_projetada, base.tarifa_projetada * 0.95)
        self.assertAlmostEqual(pessimista.energia_gerada, base.energia_gerada * 0.95)
        self.assertAlmostEqual(pessimista.opex, base.opex * 1.05)

    def test_scenarios_are_ordered(self):
        total = {nome: c.kpis_essenciais.lucro_liquido_total for nome, c in self.resultado.cenarios.items()}
        self.assertGreater(total["otimista"], total["base"])
        self.assertGreater(total["base"], total["pessimista"])


class TestKpisCenario(unittest.TestCase):
    def setUp(self):
        self.cenario = executar_simulacao(_entrada()).base

    def test_kpis_essenciais(self):
        kpis = self.cenario.kpis_essenciais
        lucros = [r.lucro_liquido for r in self.cenario.serie_ano]
        self.assertEqual(kpis.capex_total, 50000)
        self.assertEqual(kpis.opex_mensal, 200)
        self.assertEqual(kpis.opex_anual, 2400)
        self.assertAlmostEqual(kpis.lucro_liquido_anual, lucros[0])
        self.assertAlmostEqual(kpis.lucro_liquido_mensal, lucros[0] / 12)
        self.assertAlmostEqual(kpis.lucro_liquido_total, sum(lucros))
        self.assertAlmostEqual(kpis.roi_percent, sum(lucros) / 50000 * 100)
        self.assertTrue(0 < kpis.payback_meses < 120)

    def test_vpl_matches_formula(self):
        lucros = [r.lucro_liquido for r in self.cenario.serie_ano]
        esperado = -50000 + sum(l / 1.08 ** (t + 1) for t, l in enumerate(lucros))
        self.assertAlmostEqual(self.cenario.kpis_avancados.vpl, esperado, places=6)

    def test_npv_at_irr_is_zero(self):
        tir = self.cenario.kpis_avancados.tir
        self.assertIsNotNone(tir)
        fluxos = [-50000] + [r.lucro_liquido for r in self.cenario.serie_ano]
        self.assertAlmostEqual(float(npf.npv(tir, fluxos)), 0, delta=1e-4)

    def test_lcoe(self):
        self.assertAlmostEqual(self.cenario.kpis_avancados.lcoe, (50000 + 10 * 2400) / (10 * 12000))


class TestCasosLimite(unittest.TestCase):
    def test_payback_never_decreases_with_capex(self):
        paybacks = [
            executar_simulacao(_entrada(capex=capex)).base.kpis_essenciais.payback_meses
            for capex in range(0, 200001, 10000)
        ]
        self.assertEqual(paybacks, sorted(paybacks))
        self.assertEqual(paybacks[0], 0)
        self.assertEqual(paybacks[-1], math.inf)

    def test_zero_capex(self):
        kpis = executar_simulacao(_entrada(capex=0)).base.kpis_essenciais
        self.assertEqual(kpis.payback_meses, 0)
        self.assertEqual(kpis.roi_percent, 0)

    def test_no_energy(self):
        cenario = executar_simulacao(_entrada(energia_vendida_kwh_mensal=0)).base
        self.assertTrue(all(r.lcoe == 0 for r in cenario.serie_ano))
        self.assertEqual(cenario.kpis_avancados.lcoe, 0)
        self.assertEqual(cenario.kpis_essenciais.payback_meses, math.inf)
        self.assertIsNone(cenario.kpis_avancados.tir)

    def test_supplied_tariffs(self):
        resultado = executar_simulacao(_entrada(anos_analise=3), tarifas=[1.0, 1.2])
        self.assertEqual(resultado.tarifas_projetadas, [1.0, 1.2, 1.2])

    def test_regression_with_history(self):
        historico = [{"ano": 2020, "mes": i + 1, "tarifa": 0.5 + 0.01 * i} for i in range(12)]
        resultado = executar_simulacao(_entrada(anos_analise=2, historico=historico))
        self.assertAlmostEqual(resultado.tarifas_projetadas[0], 0.5 + 0.01 * 23)

    def test_invalid_inputs_are_coerced(self):
        resultado = executar_simulacao(EntradaSimulacao(
            capex=-1, opex_mensal=float("nan"), energia_vendida_kwh_mensal="abc",
            anos_analise=0, tusd_absorvida_pct=3,
        ))
        self.assertEqual(len(resultado.base.serie_ano), 1)
        self.assertEqual(resultado.base.kpis_essenciais.capex_total, 0)

    def test_repeated_runs_are_identical(self):
        entrada = _entrada()
        self.assertEqual(executar_simulacao(entrada), executar_simulacao(entrada))


class TestRisco(unittest.TestCase):
    def setUp(self):
        self.logica = LogicaSimulacao(_entrada())
        self.resultado = self.logica.calcular(incluir_risco=True, n_monte_carlo=200)
        self.risco = self.resultado.risco

    def test_off_by_default(self):
        resultado = executar_simulacao(_entrada())
        self.assertIsNone(resultado.risco)
        self.assertIsNone(resultado.sensibilidade)

    def test_sample_count(self):
        self.assertEqual(self.risco.n, 200)
        self.assertEqual(len(self.risco.roi_amostras), 200)
        self.assertEqual(len(self.risco.lucro_amostras), 200)

    def test_same_input_same_samples(self):
        outra = executar_simulacao(_entrada(), incluir_risco=True, n_monte_carlo=200)
        self.assertEqual(outra.risco, self.risco)

    def test_seed_changes_samples(self):
        a = self.logica.simular_risco(50, semente=1)
        b = self.logica.simular_risco(50, semente=2)
        self.assertEqual(a, self.logica.simular_risco(50, semente=1))
        self.assertNotEqual(a.lucro_amostras, b.lucro_amostras)

    def test_samples_within_factor_bounds(self):
        pior = self.logica._serie_ano({"tarifa": 0.90, "energia": 0.93, "tusd": 1.08, "opex": 1.06})
        melhor = self.logica._serie_ano({"tarifa": 1.10, "energia": 1.07, "tusd": 0.92, "opex": 0.94})
        minimo = sum(r.lucro_liquido for r in pior)
        maximo = sum(r.lucro_liquido for r in melhor)
        for lucro in self.risco.lucro_amostras:
            self.assertGreaterEqual(lucro, minimo)
            self.assertLessEqual(lucro, maximo)

    def test_statistics(self):
        est = self.risco.estatisticas
        self.assertLessEqual(est.roi_p5, est.roi_p50)
        self.assertLessEqual(est.roi_p50, est.roi_p95)
        self.assertGreater(est.desvio_padrao_roi, 0)
        self.assertAlmostEqual(est.roi_medio, sum(self.risco.roi_amostras) / 200)
        base = self.resultado.base.kpis_essenciais.roi_percent
        self.assertLess(abs(est.roi_medio - base), 0.1 * base)
        self.assertEqual(est.probabilidade_lucro_negativo, 0)

    def test_unrecoverable_investment(self):
        risco = LogicaSimulacao(_entrada(capex=10**7)).simular_risco(20)
        self.assertEqual(risco.estatisticas.probabilidade_prejuizo, 1.0)

    def test_no_draws(self):
        risco = self.logica.simular_risco(0)
        self.assertEqual(risco.roi_amostras, [])
        self.assertEqual(risco.estatisticas.roi_medio, 0)


class TestSensibilidade(unittest.TestCase):
    def setUp(self):
        self.logica = LogicaSimulacao(_entrada())

    def test_full_grid(self):
        celulas = executar_simulacao(_entrada(), incluir_sensibilidade=True).sensibilidade
        self.assertEqual(len(celulas), 4 ** 4)
        self.assertEqual(
            len({(c.delta_tarifa, c.delta_energia, c.delta_capex, c.delta_tusd) for c in celulas}), 256,
        )

    def test_zero_deltas_match_base_scenario(self):
        celulas = self.logica.analisar_sensibilidade(
            {"tarifa": [0.0], "energia": [0.0], "capex": [0.0], "tusd": [0.0]}
        )
        base = executar_simulacao(_entrada()).base.kpis_essenciais.roi_percent
        self.assertEqual(len(celulas), 1)
        self.assertAlmostEqual(celulas[0].roi_percent, base)

    def test_roi_moves_with_tariff_and_capex(self):
        tarifa = self.logica.analisar_sensibilidade(
            {"tarifa": [0.0, 0.1], "energia": [0.0], "capex": [0.0], "tusd": [0.0]}
        )
        capex = self.logica.analisar_sensibilidade(
            {"tarifa": [0.0], "energia": [0.0], "capex": [-0.1, 0.1], "tusd": [0.0]}
        )
        tusd = self.logica.analisar_sensibilidade(
            {"tarifa": [0.0], "energia": [0.0], "capex": [0.0], "tusd": [0.0, 1.0]}
        )
        self.assertGreater(tarifa[1].roi_percent, tarifa[0].roi_percent)
        self.assertGreater(capex[0].roi_percent, capex[1].roi_percent)
        self.assertGreater(tusd[0].roi_percent, tusd[1].roi_percent)


if __name__ == "__main__":
    unittest.main()
