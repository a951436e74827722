MESES_POR_ANO = 12

# Reajuste tarifário
MES_REAJUSTE_PADRAO = 6
MES_REFERENCIA_PADRAO = 1
CICLO_MINIMO_REAJUSTE = 12  # nenhum reajuste antes de um ciclo completo

# TUSD Fio B
SIMULTANEIDADE_PADRAO = 0.6
FATOR_INCIDENCIA_PADRAO = 1.0
PESO_TUSD_PADRAO = 0.27
SIMULTANEIDADE_FALLBACK = 0.3

# Transição da Lei 14.300 (fração da TUSD Fio B cobrada por ano)
FATOR_ANO_TUSD = {
    2025: 0.45,
    2026: 0.60,
    2027: 0.75,
    2028: 0.90,
}

SIMULTANEIDADE_POR_PERFIL = {
    "residencial": {"padrao": 0.3, "ems": 0.45, "baterias": 0.6},
    "comercial": {"diurno": 0.7, "refrig_continua": 0.55, "noturno": 0.4},
    "industrial": {"leve": 0.75, "media": 0.6},
    "hibrido": {"padrao": 0.6},
}

# Consumo mínimo faturável (kWh/mês) por tipo de ligação
CONSUMO_MINIMO_KWH = {
    "monofasico": 30.0,
    "bifasico": 50.0,
    "trifasico": 100.0,
}

# Buyout
MES_INICIO_BUYOUT = 7

# Simulação de cenários
CRESCIMENTO_TARIFA_PADRAO = 0.08  # 8% a.a. quando não há histórico suficiente
TARIFA_PADRAO_RKWH = 0.85
MIN_PONTOS_HISTORICO = 6

MULTIPLICADORES_CENARIO = {
    "base": {"tarifa": 1.0, "energia": 1.0, "opex": 1.0},
    "otimista": {"tarifa": 1.10, "energia": 1.05, "opex": 0.95},
    "pessimista": {"tarifa": 0.95, "energia": 0.95, "opex": 1.05},
}

# Risco (Monte Carlo) e sensibilidade
N_MONTE_CARLO_PADRAO = 400
AMPLITUDES_MONTE_CARLO = {  # fator sorteado em 1 ± amplitude
    "tarifa": 0.10,
    "energia": 0.07,
    "tusd": 0.08,
    "opex": 0.06,
}
PERCENTIS_RISCO = (5, 50, 95)

DELTAS_SENSIBILIDADE = {
    "tarifa": (0.0, 0.05, 0.10, 0.15),
    "energia": (-0.10, -0.05, 0.05, 0.10),
    "capex": (-0.20, -0.10, 0.10, 0.20),
    "tusd": (0.0, 0.25, 0.50, 1.0),
}

# TIR (Newton-Raphson)
TIR_CHUTE_INICIAL = 0.1
TIR_MAX_ITERACOES = 100
TIR_TOLERANCIA = 1e-6
TIR_DERIVADA_MINIMA = 1e-8
TIR_TAXA_MINIMA = -0.9999

# Venda direta
HORIZONTE_VENDA_MESES = 360
