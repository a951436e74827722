import math
import unittest

from motor_proposta.buyout import (
    COLUNAS_TABELA,
    credito_cashback,
    curva_buyout,
    custos_restantes,
    gerar_tabela_buyout,
    gross_up,
    tabela_buyout_dataframe,
    valor_compra_cliente,
    valor_compra_linear,
    valor_reposicao,
)
from motor_proposta.models import EstadoSimulacao, ParametrosBuyout, ParametrosTarifa
from motor_proposta.taxas import arredondar_centavos


def _params(**kwargs) -> ParametrosBuyout:
    dados = {
        "vm0": 50000,
        "depreciacao_aa": 0.12,
        "ipca_aa": 0.045,
        "inadimplencia_aa": 0.02,
        "tributos_aa": 0.06,
        "custos_fixos_m": 50,
        "opex_m": 30,
        "seguro_m": 20,
        "cashback_pct": 0.1,
        "duracao_meses": 60,
    }
    dados.update(kwargs)
    return ParametrosBuyout(**dados)


def _estado(**kwargs) -> EstadoSimulacao:
    dados = {
        "geracao_mensal_kwh": 600,
        "tarifa": ParametrosTarifa(tarifa_cheia=0.95, desconto=0.15, inflacao_aa=0.08),
        "taxa_minima": 40,
        "buyout": _params(duracao_meses=24),
    }
    dados.update(kwargs)
    return EstadoSimulacao(**dados)


class TestComponentes(unittest.TestCase):
    def test_valor_reposicao(self):
        self.assertEqual(valor_reposicao(1000, 0.12, 0), 1000)
        self.assertEqual(valor_reposicao(1000, 0, 10), 1000)
        self.assertLess(valor_reposicao(1000, 0.12, 10), 1000)
        self.assertEqual(valor_reposicao(-5, 0.12, 10), 0)

    def test_custos_restantes(self):
        self.assertAlmostEqual(custos_restantes(60, 60, 50, 30, 20, 0), 100)
        self.assertAlmostEqual(custos_restantes(59, 60, 50, 30, 20, 0), 200)
        self.assertEqual(custos_restantes(61, 60, 50, 30, 20, 0.05), 0)
        self.assertEqual(custos_restantes(10, 60, 0, 0, 0, 0.05), 0)

    def test_custos_restantes_compound_ipca(self):
        ipca_m = (1.12) ** (1 / 12) - 1
        self.assertAlmostEqual(custos_restantes(59, 60, 100, 0, 0, 0.12), 100 + 100 * (1 + ipca_m))

    def test_gross_up(self):
        self.assertEqual(gross_up(0, 0), 1.0)
        self.assertGreater(gross_up(0.02, 0.06), 1.0)
        self.assertEqual(gross_up(5000, 0), 1.0)

    def test_credito_cashback(self):
        self.assertEqual(credito_cashback(0.1, 1000), 100)
        self.assertEqual(credito_cashback(0, 1000), 0)
        self.assertEqual(credito_cashback(0.1, -1000), 0)


class TestValorCompra(unittest.TestCase):
    def test_zero_outside_window(self):
        params = _params()
        for m in range(0, 7):
            self.assertEqual(valor_compra_cliente(params, m, 1000), 0.0)
        self.assertEqual(valor_compra_cliente(params, 61, 1000), 0.0)

    def test_positive_inside_window(self):
        params = _params()
        for m in range(7, 61):
            self.assertGreater(valor_compra_cliente(params, m, 0), 0)

    def test_documented_formula(self):
        params = ParametrosBuyout(vm0=1000, custos_fixos_m=10, cashback_pct=0.1, duracao_meses=12)
        # 1000 + 3 months × 10 − 10% of 500
        self.assertEqual(valor_compra_cliente(params, 10, 500), 980.0)

    def test_rounded_to_cents(self):
        valor = valor_compra_cliente(_params(), 20, 1234.567)
        self.assertEqual(valor, round(valor, 2))

    def test_cashback_reduces_value(self):
        com = valor_compra_cliente(_params(cashback_pct=0.1), 20, 10000)
        sem = valor_compra_cliente(_params(cashback_pct=0.0), 20, 10000)
        self.assertLess(com, sem)
        self.assertEqual(valor_compra_cliente(_params(cashback_pct=0.0), 20, 0), sem)

    def test_huge_cashback_floors_at_zero(self):
        self.assertEqual(valor_compra_cliente(_params(cashback_pct=1.0), 20, 10**9), 0.0)

    def test_exact_half_cent_rounds_up(self):
        params = ParametrosBuyout(vm0=0.125, duracao_meses=12)
        self.assertEqual(valor_compra_cliente(params, 7), 0.13)

    def test_extreme_ipca_stays_finite(self):
        params = ParametrosBuyout(vm0=1000, opex_m=10, ipca_aa=1e300, duracao_meses=360)
        valor = valor_compra_cliente(params, 7, 0)
        self.assertTrue(math.isfinite(valor))
        self.assertGreaterEqual(valor, 0)
        self.assertTrue(math.isfinite(custos_restantes(7, 360, 10, 0, 0, 1e300)))

    def test_linear_variant(self):
        params = _params()
        v7 = valor_compra_cliente(params, 7, 2000)
        self.assertEqual(valor_compra_linear(params, 7, 2000), v7)
        self.assertEqual(valor_compra_linear(params, 34, 2000), arredondar_centavos(v7 * (26 / 53)))
        self.assertEqual(valor_compra_linear(params, 60, 2000), 0.0)
        self.assertEqual(valor_compra_linear(params, 61, 2000), 0.0)
        self.assertEqual(valor_compra_linear(params, 6, 2000), 0.0)

    def test_linear_needs_duration_after_month_seven(self):
        self.assertEqual(valor_compra_linear(_params(duracao_meses=7), 7, 0), 0.0)


class TestTabelaBuyout(unittest.TestCase):
    def test_one_line_per_month(self):
        linhas = gerar_tabela_buyout(_estado())
        self.assertEqual([l.mes for l in linhas], list(range(1, 25)))

    def test_empty_contract(self):
        self.assertEqual(gerar_tabela_buyout(_estado(buyout=_params(duracao_meses=0))), [])

    def test_residual_only_from_month_seven(self):
        linhas = gerar_tabela_buyout(_estado())
        for linha in linhas:
            if linha.mes < 7:
                self.assertEqual(linha.valor_residual, 0.0)
            else:
                self.assertGreater(linha.valor_residual, 0.0)

    def test_installments_accumulate(self):
        linhas = gerar_tabela_buyout(_estado())
        self.assertAlmostEqual(linhas[-1].prestacao_acum, sum(l.prestacao_efetiva for l in linhas))
        acumulados = [l.prestacao_acum for l in linhas]
        self.assertEqual(acumulados, sorted(acumulados))

    def test_first_month_installment(self):
        estado = _estado(buyout=_params(duracao_meses=12, inadimplencia_aa=0, tributos_aa=0))
        linha = gerar_tabela_buyout(estado)[0]
        self.assertAlmostEqual(linha.tarifa_descontada, 0.95 * 0.85)
        self.assertAlmostEqual(linha.prestacao_efetiva, 600 * 0.95 * 0.85 + 40 + 50 + 30 + 20)

    def test_tariff_escalates_after_first_cycle(self):
        linhas = gerar_tabela_buyout(_estado())
        self.assertAlmostEqual(linhas[12].tarifa_cheia, linhas[0].tarifa_cheia * 1.08)

    def test_manual_paid_amount_caps_cashback(self):
        linhas = gerar_tabela_buyout(_estado(pagos_acum_manual=100))
        self.assertAlmostEqual(linhas[-1].cashback, 100 * 0.1)

    def test_curves(self):
        estado = _estado()
        curva = curva_buyout(estado)
        self.assertEqual(curva, [l.valor_residual for l in gerar_tabela_buyout(estado)])
        linear = curva_buyout(estado, linear=True)
        self.assertEqual(len(linear), 24)
        self.assertEqual(linear[-1], 0.0)
        self.assertEqual(linear[:6], [0.0] * 6)

    def test_dataframe(self):
        df = tabela_buyout_dataframe(gerar_tabela_buyout(_estado()))
        self.assertEqual(list(df.columns), list(COLUNAS_TABELA.values()))
        self.assertEqual(len(df), 24)


if __name__ == "__main__":
    unittest.main()
