import logging

import pandas as pd
from pydantic import ValidationError

from motor_proposta.models import EntradaSimulacao
from motor_proposta.simulacao import LogicaSimulacao

logger = logging.getLogger(__name__)


def _traduzir_erro_validacao(e: ValidationError) -> str:
    """Convert Pydantic ValidationError to a Portuguese message."""
    mensagens = []
    for err in e.errors():
        campo = " > ".join(str(loc) for loc in err["loc"])
        tipo = err["type"]
        if "missing" in tipo:
            mensagens.append(f"Campo '{campo}': obrigatório, mas não foi preenchido")
        elif "parsing" in tipo or tipo.endswith("_type"):
            mensagens.append(f"Campo '{campo}': valor '{err.get('input')}' não é do tipo esperado")
        elif "literal_error" in tipo:
            aceitos = err.get("ctx", {}).get("expected", "")
            mensagens.append(f"Campo '{campo}': valor inválido, aceitos: {aceitos}")
        else:
            mensagens.append(f"Campo '{campo}': {err['msg']}")
    return "; ".join(mensagens)


def _linha_vazia(nome: str, erro: str) -> dict:
    return {
        "Nome": nome,
        "CAPEX": 0,
        "Lucro Total": 0,
        "VPL": 0,
        "TIR": None,
        "Payback (meses)": None,
        "_erro": erro,
    }


def processar_lote(entradas, progress_callback=None) -> dict:
    """Run one scenario simulation per item.

    Args:
        entradas: list of dicts (or a DataFrame) with EntradaSimulacao
            fields; an optional "nome" key labels the item.
        progress_callback: Optional callable(progress_float, status_text).

    Returns:
        {'simulacoes': [...], 'consolidado': {...}}
        Each item has keys: Nome, CAPEX, Lucro Total, VPL, TIR,
        Payback (meses), _resultado. On error: _erro replaces _resultado.
    """
    if isinstance(entradas, pd.DataFrame):
        entradas = entradas.to_dict("records")
    entradas = list(entradas or [])

    total = len(entradas)
    if total == 0:
        return {"simulacoes": [], "consolidado": {"total_capex": 0, "total_lucro": 0, "total_vpl": 0}}

    resultados = []

    for idx, item in enumerate(entradas):
        dados = dict(item)
        nome = str(dados.pop("nome", None) or f"Simulação {idx + 1}")
        if progress_callback:
            progress_callback((idx + 1) / total, f"Processando simulação {idx + 1}/{total}: {nome}")

        try:
            entrada = EntradaSimulacao.model_validate(dados)
            res = LogicaSimulacao(entrada).calcular()

            kpis = res.base.kpis_essenciais
            resultados.append({
                "Nome": nome,
                "CAPEX": kpis.capex_total,
                "Lucro Total": kpis.lucro_liquido_total,
                "VPL": res.base.kpis_avancados.vpl,
                "TIR": res.base.kpis_avancados.tir,
                "Payback (meses)": kpis.payback_meses,
                "_resultado": res,
            })
        except ValidationError as e:
            logger.warning("Simulação '%s' com dados inválidos: %s", nome, e.error_count())
            resultados.append(_linha_vazia(nome, _traduzir_erro_validacao(e)))

    return {
        "simulacoes": resultados,
        "consolidado": {
            "total_capex": sum(r["CAPEX"] for r in resultados),
            "total_lucro": sum(r["Lucro Total"] for r in resultados),
            "total_vpl": sum(r["VPL"] for r in resultados),
        },
    }
