import pandas as pd

from motor_proposta.buyout import tabela_buyout_dataframe
from motor_proposta.formatacao import (
    formatar_moeda,
    formatar_payback,
    formatar_percentual,
    formatar_tarifa,
    formatar_tir,
)
from motor_proposta.models import LinhaBuyout, ResultadoCenario, ResultadoSimulacao

COLUNAS_SERIE_ANO = {
    "ano": "Ano",
    "receita_bruta": "Receita Bruta (R$)",
    "opex": "OPEX (R$)",
    "tusd_absorvida": "TUSD Absorvida (R$)",
    "lucro_liquido": "Lucro Líquido (R$)",
    "tarifa_projetada": "Tarifa Projetada (R$/kWh)",
    "lcoe": "LCOE (R$/kWh)",
    "energia_gerada": "Energia Gerada (kWh)",
    "roi_acumulado": "ROI Acumulado (%)",
}


def _csv_br(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False, sep=";", decimal=",").encode("utf-8-sig")


def serie_ano_dataframe(cenario: ResultadoCenario) -> pd.DataFrame:
    df = pd.DataFrame([r.model_dump() for r in cenario.serie_ano], columns=list(COLUNAS_SERIE_ANO))
    return df.rename(columns=COLUNAS_SERIE_ANO)


def exportar_buyout_csv(linhas: list[LinhaBuyout]) -> bytes:
    return _csv_br(tabela_buyout_dataframe(linhas))


def exportar_serie_ano_csv(cenario: ResultadoCenario) -> bytes:
    return _csv_br(serie_ano_dataframe(cenario))


def resumo_kpis(resultado: ResultadoSimulacao) -> pd.DataFrame:
    """KPI cards of the three scenarios side by side, formatted for display."""
    linhas = []
    for nome, cenario in resultado.cenarios.items():
        ess = cenario.kpis_essenciais
        av = cenario.kpis_avancados
        linhas.append({
            "Cenário": nome.capitalize(),
            "CAPEX": formatar_moeda(ess.capex_total),
            "Lucro Anual": formatar_moeda(ess.lucro_liquido_anual),
            "Lucro Total": formatar_moeda(ess.lucro_liquido_total),
            "ROI": formatar_percentual(ess.roi_percent / 100),
            "Payback": formatar_payback(ess.payback_meses),
            "VPL": formatar_moeda(av.vpl),
            "TIR": formatar_tir(av.tir),
            "LCOE": formatar_tarifa(av.lcoe),
        })
    return pd.DataFrame(linhas)
