"""Enumeraciones estables del dominio.

Por qué `str, Enum`:
- Los identificadores viajan entre planner, registry y persistencia como
  strings; heredar de `str` los hace serializables sin conversión.
- Pydantic los valida y los exporta a JSON tal cual.
"""

from __future__ import annotations

from enum import Enum


class ApiProvider(str, Enum):
    """Identificador estable de cada fuente de datos externa."""

    BRASILAPI = "BRASILAPI"
    CNPJA = "CNPJA"
    DATAJUD = "DATAJUD"
    CVM_DADOS_ABERTOS = "CVM_DADOS_ABERTOS"
    BACEN = "BACEN"
    OPENSANCTIONS = "OPENSANCTIONS"
    INFOSIMPLES = "INFOSIMPLES"
    ESCAVADOR = "ESCAVADOR"
    ASSERTIVA = "ASSERTIVA"
    DENATRAN_SERPRO = "DENATRAN_SERPRO"
    COMPLYADVANTAGE = "COMPLYADVANTAGE"
    OPENCORPORATES = "OPENCORPORATES"
    MAPBIOMAS = "MAPBIOMAS"


class ApiCategory(str, Enum):
    CADASTRAL = "CADASTRAL"
    JUDICIAL = "JUDICIAL"
    CREDITICIO = "CREDITICIO"
    PATRIMONIAL = "PATRIMONIAL"
    SOCIETARIO = "SOCIETARIO"
    COMPLIANCE = "COMPLIANCE"
    VEICULAR = "VEICULAR"
    RURAL_SATELITE = "RURAL_SATELITE"


class QueryType(str, Enum):
    """Tipo de consulta que un proveedor sabe responder."""

    CONSULTA_CPF = "CONSULTA_CPF"
    CONSULTA_CNPJ = "CONSULTA_CNPJ"
    CONSULTA_PROCESSO = "CONSULTA_PROCESSO"
    CONSULTA_VEICULO = "CONSULTA_VEICULO"
    CONSULTA_IMOVEL = "CONSULTA_IMOVEL"
    CONSULTA_PROTESTO = "CONSULTA_PROTESTO"
    CONSULTA_DIVIDA_ATIVA = "CONSULTA_DIVIDA_ATIVA"
    CONSULTA_CVM = "CONSULTA_CVM"
    CONSULTA_SATELITE = "CONSULTA_SATELITE"
    CONSULTA_SOCIETARIA = "CONSULTA_SOCIETARIA"
    CONSULTA_PEP_SANCOES = "CONSULTA_PEP_SANCOES"
    CONSULTA_SCORING = "CONSULTA_SCORING"
    CONSULTA_RURAL = "CONSULTA_RURAL"
    CONSULTA_MARCAS = "CONSULTA_MARCAS"
    MONITORAMENTO = "MONITORAMENTO"


class TargetType(str, Enum):
    """Pessoa Física (CPF) o Pessoa Jurídica (CNPJ)."""

    PF = "PF"
    PJ = "PJ"


class DepthLevel(str, Enum):
    BASICA = "BASICA"
    PADRAO = "PADRAO"
    APROFUNDADA = "APROFUNDADA"
    COMPLETA = "COMPLETA"


class AssetCategory(str, Enum):
    IMOVEL_RURAL = "IMOVEL_RURAL"
    IMOVEL_URBANO = "IMOVEL_URBANO"
    VEICULO_AUTOMOVEL = "VEICULO_AUTOMOVEL"
    VEICULO_CAMINHAO = "VEICULO_CAMINHAO"
    VEICULO_MAQUINARIO = "VEICULO_MAQUINARIO"
    PARTICIPACAO_SOCIETARIA = "PARTICIPACAO_SOCIETARIA"
    FUNDOS_INVESTIMENTO = "FUNDOS_INVESTIMENTO"
    MARCAS_PATENTES = "MARCAS_PATENTES"
    OUTROS = "OUTROS"


class DebtType(str, Enum):
    PROTESTO = "PROTESTO"
    DIVIDA_ATIVA_UNIAO = "DIVIDA_ATIVA_UNIAO"
    DIVIDA_ATIVA_ESTADO = "DIVIDA_ATIVA_ESTADO"
    DIVIDA_ATIVA_MUNICIPIO = "DIVIDA_ATIVA_MUNICIPIO"
    EXECUCAO_FISCAL = "EXECUCAO_FISCAL"
    OUTROS = "OUTROS"


class LawsuitRelevance(str, Enum):
    CRITICA = "CRITICA"
    ALTA = "ALTA"
    MEDIA = "MEDIA"
    BAIXA = "BAIXA"


class QueryStatus(str, Enum):
    """Estado de un registro de ejecución de consulta."""

    PENDENTE = "PENDENTE"
    EXECUTANDO = "EXECUTANDO"
    CONCLUIDA = "CONCLUIDA"
    MOCK = "MOCK"
    SEM_DADOS = "SEM_DADOS"
    ERRO = "ERRO"
    TIMEOUT = "TIMEOUT"


COMPLETED_QUERY_STATUSES = frozenset({QueryStatus.CONCLUIDA, QueryStatus.MOCK, QueryStatus.SEM_DADOS})
FAILED_QUERY_STATUSES = frozenset({QueryStatus.ERRO, QueryStatus.TIMEOUT})
RUNNING_QUERY_STATUSES = frozenset({QueryStatus.PENDENTE, QueryStatus.EXECUTANDO})


class InvestigationStatus(str, Enum):
    PENDENTE = "PENDENTE"
    EM_ANDAMENTO = "EM_ANDAMENTO"
    CONSULTAS_CONCLUIDAS = "CONSULTAS_CONCLUIDAS"
    ANALISE_IA = "ANALISE_IA"
    CONCLUIDA = "CONCLUIDA"
    FALHA = "FALHA"


class ProgressStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class AlertSeverity(str, Enum):
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class LegalBasis(str, Enum):
    """Base legal LGPD (art. 7) que justifica la consulta."""

    EXERCICIO_DIREITOS = "EXERCICIO_DIREITOS"
    PROTECAO_CREDITO = "PROTECAO_CREDITO"
    CUMPRIMENTO_OBRIGACAO = "CUMPRIMENTO_OBRIGACAO"
    LEGITIMO_INTERESSE = "LEGITIMO_INTERESSE"
