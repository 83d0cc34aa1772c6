"""Proveedor: DataJud (API pública del CNJ).

Busca en varios tribunales en paralelo; un tribunal caído no invalida la
consulta (se registra y se sigue con el resto). Cada proceso se clasifica
por relevancia para recuperación de crédito.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from adapters.http_client import fetch_json
from adapters.providers.base import HttpProviderBackend, parse_date, to_float
from core.domain.documents import only_digits
from core.domain.enums import ApiCategory, ApiProvider, LawsuitRelevance, QueryType
from core.domain.errors import ProviderRequestError
from core.domain.models import NormalizedLawsuit, ProviderConfig, ProviderQuery, ProviderResult

logger = logging.getLogger(__name__)

TRIBUNALS = ("tjpr", "tjma", "trf1", "trf4", "trt9", "trt16", "stj", "tst")

ASSET_FREEZE_KEYWORDS = ("penhora", "bloqueio", "arresto", "indisponibilidade", "bacenjud", "sisbajud")

_RELEVANCE_ORDER = {
    LawsuitRelevance.CRITICA: 0,
    LawsuitRelevance.ALTA: 1,
    LawsuitRelevance.MEDIA: 2,
    LawsuitRelevance.BAIXA: 3,
}


def classify_relevance(lawsuit_class: str | None) -> LawsuitRelevance:
    """Relevancia según la clase procesal (ejecución fiscal y quiebra primero)."""

    if not lawsuit_class:
        return LawsuitRelevance.BAIXA
    lower = lawsuit_class.lower()
    if ("execu" in lower and "fiscal" in lower) or "falência" in lower or "falencia" in lower:
        return LawsuitRelevance.CRITICA
    if "recupera" in lower and "judicial" in lower:
        return LawsuitRelevance.CRITICA
    if "cobran" in lower or "execu" in lower:
        return LawsuitRelevance.ALTA
    if "ordin" in lower or "conhecimento" in lower:
        return LawsuitRelevance.MEDIA
    return LawsuitRelevance.BAIXA


def detect_asset_freeze(movements: list[dict[str, Any]]) -> bool:
    for movement in movements:
        name = str(movement.get("nome") or "").lower()
        if any(keyword in name for keyword in ASSET_FREEZE_KEYWORDS):
            return True
    return False


def infer_role(parties: list[dict[str, str]], target: str) -> str:
    for party in parties:
        if only_digits(party.get("documento", "")) != target:
            continue
        side = party.get("tipo", "").upper()
        if any(token in side for token in ("ATIVO", "AUTOR", "EXEQUENTE")):
            return "AUTOR"
        if any(token in side for token in ("PASSIVO", "REU", "EXECUTADO")):
            return "REU"
        return "TERCEIRO"
    return "DESCONHECIDO"


def build_search_query(target_document: str) -> dict[str, Any]:
    target = only_digits(target_document)
    if len(target) == 20:
        return {"match": {"numeroProcesso": target}}
    if len(target) in (11, 14):
        return {
            "nested": {
                "path": "dadosBasicos.polo.parte",
                "query": {"match": {"dadosBasicos.polo.parte.documento": target}},
            }
        }
    return {"match": {"dadosBasicos.polo.parte.nome": target_document}}


class DataJudBackend(HttpProviderBackend):
    name = ApiProvider.DATAJUD
    display_name = "DataJud (CNJ)"
    category = ApiCategory.JUDICIAL
    available_queries = (QueryType.CONSULTA_PROCESSO,)
    default_base_url = "https://api-publica.datajud.cnj.jus.br"

    async def execute_real(self, query: ProviderQuery, config: ProviderConfig) -> ProviderResult:
        if query.query_type is not QueryType.CONSULTA_PROCESSO:
            return self.unsupported(query)

        api_key = self.require_api_key(config)
        target = only_digits(query.target_document)
        body = {
            "query": build_search_query(query.target_document),
            "size": 10,
            "sort": [{"@timestamp": {"order": "desc"}}],
        }
        base_url = self.base_url(config)

        async with self.client({"Authorization": f"APIKey {api_key}"}) as client:
            settled = await asyncio.gather(
                *(self._search_tribunal(client, base_url, tribunal, body) for tribunal in TRIBUNALS),
                return_exceptions=True,
            )

        lawsuits: list[NormalizedLawsuit] = []
        raw_by_tribunal: dict[str, Any] = {}
        for tribunal, outcome in zip(TRIBUNALS, settled):
            if isinstance(outcome, BaseException):
                logger.warning("[DATAJUD] %s search failed: %s", tribunal, outcome)
                raw_by_tribunal[tribunal] = {"error": str(outcome)}
                continue
            raw_by_tribunal[tribunal] = outcome
            for hit in (outcome.get("hits") or {}).get("hits") or []:
                source = hit.get("_source")
                if source:
                    lawsuits.append(self._to_lawsuit(tribunal, source, target))

        failures = [outcome for outcome in settled if isinstance(outcome, BaseException)]
        if len(failures) == len(TRIBUNALS):
            # Ningún tribunal respondió.
            status = getattr(failures[0], "status_code", None)
            raise ProviderRequestError(f"DataJud: all {len(TRIBUNALS)} tribunal searches failed", status_code=status)

        lawsuits.sort(key=lambda lawsuit: _RELEVANCE_ORDER[lawsuit.relevance])
        return self.result(
            query,
            data={"totalProcessos": len(lawsuits), "tribunaisConsultados": len(TRIBUNALS)},
            normalized_lawsuits=lawsuits,
            raw_response=raw_by_tribunal,
        )

    async def _search_tribunal(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        tribunal: str,
        body: dict[str, Any],
    ) -> dict[str, Any]:
        return await fetch_json(
            client,
            "POST",
            f"{base_url}/api_publica_{tribunal}/_search",
            label=f"DataJud {tribunal}",
            json=body,
        )

    def _to_lawsuit(self, tribunal: str, source: dict[str, Any], target: str) -> NormalizedLawsuit:
        lawsuit_class = (source.get("classe") or {}).get("nome") or source.get("classeProcessual")
        poles = (source.get("dadosBasicos") or {}).get("polo") or []
        parties = [
            {
                "nome": party.get("nome") or "",
                "tipo": pole.get("polo") or "DESCONHECIDO",
                "documento": party.get("documento") or "",
            }
            for pole in poles
            for party in pole.get("parte") or []
        ]
        movements = source.get("movimentos") or []
        last = movements[0] if movements else None
        subjects = source.get("assuntos") or source.get("assunto") or []

        return NormalizedLawsuit(
            case_number=source.get("numeroProcesso") or "",
            court=tribunal.upper(),
            vara=(source.get("orgaoJulgador") or {}).get("nome"),
            subject=subjects[0].get("nome") if subjects else None,
            class_=lawsuit_class,
            role=infer_role(parties, target),
            other_parties=parties,
            estimated_value=to_float(source.get("valorCausa")),
            status=source.get("situacao"),
            last_movement=last.get("nome") if last else None,
            last_movement_date=parse_date(last.get("dataHora")) if last else None,
            distribution_date=parse_date(source.get("dataAjuizamento")),
            relevance=classify_relevance(lawsuit_class),
            has_asset_freeze=detect_asset_freeze(movements),
            source_provider=self.name,
            raw_source_data=source,
        )
