"""Generador de datos simulados por tipo de consulta.

Por qué vive en el Core:
- Es el contrato de fallback: cuando un proveedor no está configurado, está
  limitado o falla, el runtime devuelve esto en lugar de un error.
- La forma de salida es la misma que la de los mappers reales (mismos
  modelos normalizados); solo `is_mock=True` los distingue.

Escenario: objetivos del agro en Maringá/PR y Balsas/MA (soja, pecuaria),
con procesos en TJPR/TRF4, camionetas, fazendas y protestos.

Invariantes:
- CPFs/CNPJs generados pasan el dígito verificador.
- Las participaciones de los socios de una empresa suman 100.
- `cost == 0` siempre.
"""

from __future__ import annotations

import random
import unicodedata
from datetime import date, datetime, timedelta
from typing import Any, Callable, Sequence, TypeVar

from core.domain.documents import generate_cnpj, generate_cpf
from core.domain.enums import (
    ApiProvider,
    AssetCategory,
    DebtType,
    LawsuitRelevance,
    QueryType,
)
from core.domain.models import (
    NormalizedAsset,
    NormalizedCorporateLink,
    NormalizedDebt,
    NormalizedLawsuit,
    ProviderQuery,
    ProviderResult,
)

T = TypeVar("T")

MALE_NAMES = (
    "Carlos Eduardo Silva",
    "Marcos Antonio Pereira",
    "Jose Roberto Santos",
    "Antonio Carlos Oliveira",
    "Paulo Henrique Souza",
    "Luiz Fernando Costa",
    "Ricardo Alexandre Ferreira",
    "Joao Paulo Rodrigues",
    "Andre Luis Almeida",
    "Fernando Augusto Lima",
)

FEMALE_NAMES = (
    "Maria Fernanda Silva",
    "Ana Carolina Pereira",
    "Juliana Santos Costa",
    "Camila Oliveira Souza",
    "Patricia Helena Lima",
    "Renata Cristina Ferreira",
    "Claudia Maria Rodrigues",
    "Luciana Aparecida Almeida",
)

COMPANY_NAMES = (
    "Agropecuaria Cerrado Verde Ltda",
    "Fazenda Boa Esperanca S/A",
    "Granja Maringa Producoes Rurais Ltda",
    "Agroflora Sul Participacoes S/A",
    "Balsas Commodities Exportadora Ltda",
    "Sojamais Comercio e Exportacao S/A",
    "Tocantins Agro Industrial Ltda",
    "Cerealista Parana Trading S/A",
    "Grupo Rural Integrado Participacoes Ltda",
    "MG Agri Holdings S/A",
)

MARINGA_ADDRESSES = (
    {"logradouro": "Av. Brasil", "numero": "4590", "bairro": "Zona 01", "cep": "87013-160"},
    {"logradouro": "Rua Neo Alves Martins", "numero": "1234", "bairro": "Zona 01", "cep": "87013-060"},
    {"logradouro": "Av. Colombo", "numero": "5790", "bairro": "Zona 07", "cep": "87020-900"},
    {"logradouro": "Rua Santos Dumont", "numero": "890", "bairro": "Zona 02", "cep": "87013-050"},
    {"logradouro": "Av. Herval", "numero": "1456", "bairro": "Centro", "cep": "87013-110"},
)

BALSAS_ADDRESSES = (
    {"logradouro": "Av. Balsas", "numero": "1500", "bairro": "Centro", "cep": "65800-000"},
    {"logradouro": "Rua Coelho Neto", "numero": "350", "bairro": "Tresidela", "cep": "65800-050"},
    {"logradouro": "Av. Presidente Medici", "numero": "780", "bairro": "Bacaba", "cep": "65800-100"},
    {"logradouro": "Rua Santa Luzia", "numero": "220", "bairro": "Centro", "cep": "65800-030"},
)

CNAES_AGRO = (
    {"codigo": "01.11-3/01", "descricao": "Cultivo de arroz"},
    {"codigo": "01.15-6/00", "descricao": "Cultivo de soja"},
    {"codigo": "01.51-2/01", "descricao": "Criacao de bovinos para corte"},
    {"codigo": "01.41-5/01", "descricao": "Producao de sementes certificadas"},
    {"codigo": "01.61-0/01", "descricao": "Producao de algodao herbaceo"},
)

CARTORIOS_PR = (
    "1o Oficio de Registro de Imoveis de Maringa",
    "2o Oficio de Registro de Imoveis de Maringa",
    "1o Tabelionato de Notas de Maringa",
    "Registro de Imoveis de Londrina",
)

CARTORIOS_MA = (
    "Oficio de Registro de Imoveis de Balsas",
    "Registro de Imoveis de Balsas - 2a Circunscricao",
    "Tabelionato de Notas de Balsas",
)

CREDITORS = (
    ("Banco do Brasil S/A", "00.000.000/0001-91"),
    ("Banco Bradesco S/A", "60.746.948/0001-12"),
    ("Sicredi Parana", "81.099.491/0001-82"),
    ("Cooperativa Cocamar", "79.119.023/0001-68"),
    ("John Deere Financial", "03.014.553/0001-97"),
    ("Bunge Alimentos S/A", "84.046.101/0001-93"),
    ("Cargill Agricola S/A", "60.498.706/0001-40"),
    ("Syngenta Protecao de Cultivos Ltda", "60.744.463/0001-90"),
)

_COURTS = (
    {"court": "TJPR", "vara": "1a Vara Civel de Maringa", "code": "8.16"},
    {"court": "TJPR", "vara": "2a Vara Civel de Maringa", "code": "8.16"},
    {"court": "TJPR", "vara": "Vara de Execucoes Fiscais de Maringa", "code": "8.16"},
    {"court": "TJPR", "vara": "1a Vara Civel de Curitiba", "code": "8.16"},
    {"court": "TJPR", "vara": "Vara Empresarial de Curitiba", "code": "8.16"},
    {"court": "TRF4", "vara": "1a Vara Federal de Maringa", "code": "5.04"},
    {"court": "TRF4", "vara": "2a Vara Federal de Curitiba", "code": "5.04"},
)

# (classe, assunto, papel, relevância, bloqueio, índice de vara fixa)
_MANDATORY_LAWSUITS: tuple[tuple[str, str, str, LawsuitRelevance, bool, int | None], ...] = (
    ("Recuperacao Judicial", "Recuperacao Judicial - Lei 11.101/2005", "Requerente", LawsuitRelevance.CRITICA, False, 4),
    ("Execucao Fiscal", "ICMS - Execucao Fiscal Estadual", "Executado", LawsuitRelevance.ALTA, True, 2),
    ("Execucao Fiscal", "Contribuicoes Sociais - Execucao Fiscal Federal", "Executado", LawsuitRelevance.ALTA, True, 5),
)

_EXTRA_LAWSUITS: tuple[tuple[str, str, str, LawsuitRelevance, bool, int | None], ...] = (
    ("Acao de Cobranca", "Cobranca - Duplicata Mercantil", "Reu", LawsuitRelevance.MEDIA, False, None),
    ("Execucao de Titulo Extrajudicial", "Execucao - Cedula de Credito Bancario", "Executado", LawsuitRelevance.ALTA, True, None),
    ("Acao Monitoria", "Acao Monitoria - Contrato de Servico", "Reu", LawsuitRelevance.BAIXA, False, None),
    ("Cumprimento de Sentenca", "Obrigacao de Pagar Quantia Certa", "Executado", LawsuitRelevance.MEDIA, False, None),
    ("Mandado de Seguranca", "Tributario - Mandado de Seguranca", "Impetrante", LawsuitRelevance.MEDIA, False, None),
)


class _Dice:
    """Helpers de azar sobre un `random.Random` (inyectable en tests)."""

    _LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

    def __init__(self, rng: random.Random) -> None:
        self.rng = rng

    def between(self, low: int, high: int) -> int:
        return self.rng.randint(low, high)

    def decimal(self, low: float, high: float, decimals: int = 2) -> float:
        return round(self.rng.uniform(low, high), decimals)

    def pick(self, items: Sequence[T]) -> T:
        return self.rng.choice(items)

    def pick_many(self, items: Sequence[T], count: int) -> list[T]:
        return self.rng.sample(list(items), min(count, len(items)))

    def chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def past_date(self, min_years: float, max_years: float) -> date:
        years = self.decimal(min_years, max_years, 1)
        return date.today() - timedelta(days=round(years * 365.25))

    def recent_date(self, max_days: int) -> date:
        return date.today() - timedelta(days=self.between(1, max_days))

    def digits(self, length: int) -> str:
        return "".join(str(self.between(0, 9)) for _ in range(length))

    def mercosul_plate(self) -> str:
        prefix = "".join(self.pick(self._LETTERS) for _ in range(3))
        return f"{prefix}{self.between(0, 9)}{self.pick(self._LETTERS)}{self.digits(2)}"

    def process_number(self, year: int, justice: str, branch: str) -> str:
        return f"{self.between(1_000_000, 9_999_999)}-{self.between(10, 99)}.{year}.{justice}.{branch}"


def _result(
    provider: ApiProvider,
    query: ProviderQuery,
    dice: _Dice,
    data: dict[str, Any],
    *,
    latency: tuple[int, int],
    raw: Any = None,
    **collections: Any,
) -> ProviderResult:
    return ProviderResult(
        success=True,
        provider=provider,
        query_type=query.query_type,
        data=data,
        raw_response=raw,
        response_time_ms=dice.between(*latency),
        cost=0.0,
        is_mock=True,
        **collections,
    )


def _slug_email(name: str) -> str:
    ascii_name = unicodedata.normalize("NFD", name.lower()).encode("ascii", "ignore").decode()
    return ascii_name.replace(" ", ".")


def _cpf(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    name = dice.pick(MALE_NAMES + FEMALE_NAMES)
    address = dice.pick(MARINGA_ADDRESSES + BALSAS_ADDRESSES)
    in_maringa = address in MARINGA_ADDRESSES
    ddd = "44" if in_maringa else "99"

    data = {
        "nome": name,
        "cpf": query.target_document,
        "dataNascimento": f"{dice.between(1960, 1990)}-{dice.between(1, 12):02d}-{dice.between(1, 28):02d}",
        "situacaoCadastral": "REGULAR",
        "rg": f"{dice.between(10, 99)}.{dice.between(100, 999)}.{dice.between(100, 999)}-{dice.between(0, 9)}",
        "orgaoEmissor": "SSP/PR",
        "endereco": {
            **address,
            "cidade": "Maringa" if in_maringa else "Balsas",
            "uf": "PR" if in_maringa else "MA",
        },
        "telefones": [
            f"({ddd}) 9{dice.between(8000, 9999)}-{dice.between(1000, 9999)}",
            f"({ddd}) 3{dice.between(200, 399)}-{dice.between(1000, 9999)}",
        ],
        "email": f"{_slug_email(name)}@email.com",
        "profissao": dice.pick(("Empresario", "Produtor Rural", "Administrador", "Engenheiro Agronomo")),
        "rendaEstimada": dice.decimal(15_000, 120_000),
        "participacoesSocietarias": dice.between(1, 4),
    }
    return _result(provider, query, dice, data, latency=(200, 800), raw=data)


def _cnpj(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    company = dice.pick(COMPANY_NAMES)
    cnae = dice.pick(CNAES_AGRO)
    capital = dice.decimal(5_000_000, 50_000_000)
    opened = dice.past_date(5, 20)

    first = dice.decimal(40, 60)
    second = dice.decimal(20, 35)
    partners = [
        {
            "nome": dice.pick(MALE_NAMES),
            "cpf": generate_cpf(dice.rng),
            "qualificacao": "Socio-Administrador",
            "percentual": first,
            "dataEntrada": dice.past_date(5, 15),
        },
        {
            "nome": dice.pick(MALE_NAMES),
            "cpf": generate_cpf(dice.rng),
            "qualificacao": "Socio",
            "percentual": second,
            "dataEntrada": dice.past_date(3, 10),
        },
        {
            "nome": dice.pick(FEMALE_NAMES),
            "cpf": generate_cpf(dice.rng),
            "qualificacao": "Socio",
            "percentual": round(100 - first - second, 2),
            "dataEntrada": dice.past_date(1, 8),
        },
    ]

    links = [
        NormalizedCorporateLink(
            company_name=company,
            company_cnpj=query.target_document,
            company_status="ATIVA",
            cnae=cnae["codigo"],
            open_date=opened,
            role=f"{p['qualificacao']} ({p['nome']})",
            share_percentage=p["percentual"],
            capital_value=round(capital * p["percentual"] / 100, 2),
            entry_date=p["dataEntrada"],
            source_provider=provider,
            raw_source_data={"socio": p["nome"], "cpf": p["cpf"]},
        )
        for p in partners
    ]

    data = {
        "razaoSocial": company,
        "nomeFantasia": company.replace("Ltda", "").replace("S/A", "").strip(),
        "cnpj": query.target_document,
        "situacaoCadastral": "ATIVA",
        "dataAbertura": opened.isoformat(),
        "naturezaJuridica": "206-2 - Sociedade Empresaria Limitada",
        "capitalSocial": capital,
        "porte": "DEMAIS",
        "cnaePrincipal": cnae,
        "cnaeSecundarios": dice.pick_many([c for c in CNAES_AGRO if c["codigo"] != cnae["codigo"]], 2),
        "sede": {**dice.pick(MARINGA_ADDRESSES), "cidade": "Maringa", "uf": "PR"},
        "filiais": [{**dice.pick(BALSAS_ADDRESSES), "cidade": "Balsas", "uf": "MA", "situacao": "ATIVA"}],
        "socios": [{**p, "dataEntrada": p["dataEntrada"].isoformat()} for p in partners],
        "telefones": [
            f"(44) 3{dice.between(200, 399)}-{dice.between(1000, 9999)}",
            f"(99) 3{dice.between(500, 599)}-{dice.between(1000, 9999)}",
        ],
        "email": company.lower().replace(" ", "")[:12] + "@empresa.com.br",
    }
    return _result(
        provider, query, dice, data, latency=(300, 1200), raw=data, normalized_corporate_links=links
    )


def _lawsuits(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    count = dice.between(3, 8)
    kinds = list(_MANDATORY_LAWSUITS) + dice.pick_many(_EXTRA_LAWSUITS, count - len(_MANDATORY_LAWSUITS))

    lawsuits: list[NormalizedLawsuit] = []
    for klass, subject, role, relevance, freeze, court_idx in kinds:
        court = _COURTS[court_idx] if court_idx is not None else dice.pick(_COURTS)
        justice, branch = court["code"].split(".")
        year = dice.between(2018, 2025)
        lawsuits.append(
            NormalizedLawsuit(
                case_number=dice.process_number(year, justice, f"{branch}.{dice.between(1, 20):04d}"),
                court=court["court"],
                vara=court["vara"],
                subject=subject,
                class_=klass,
                role=role,
                other_parties=[
                    {
                        "nome": dice.pick(MALE_NAMES + COMPANY_NAMES),
                        "tipo": "Autor" if role in ("Reu", "Executado") else "Reu",
                    }
                ],
                estimated_value=dice.decimal(50_000, 5_000_000),
                status=dice.pick(("Em andamento", "Suspenso", "Em fase de execucao")),
                last_movement=dice.pick(
                    (
                        "Juntada de peticao",
                        "Despacho de mero expediente",
                        "Decisao interlocutoria",
                        "Intimacao da parte autora",
                        "Certidao de publicacao",
                    )
                ),
                last_movement_date=dice.recent_date(90),
                distribution_date=dice.past_date(0.5, 6),
                relevance=relevance,
                has_asset_freeze=freeze,
                source_provider=provider,
            )
        )

    payload = [item.model_dump(mode="json") for item in lawsuits]
    return _result(
        provider,
        query,
        dice,
        {"totalProcessos": len(lawsuits), "processos": payload},
        latency=(500, 2000),
        raw={"processos": payload},
        normalized_lawsuits=lawsuits,
    )


def _vehicles(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    pickups = (
        ("Chevrolet", "S10 High Country 2.8 Diesel 4x4", (250_000, 380_000)),
        ("Toyota", "Hilux SRX 2.8 Diesel 4x4", (280_000, 420_000)),
        ("Volkswagen", "Amarok V6 Extreme", (300_000, 450_000)),
        ("Ford", "Ranger Limited 3.2 Diesel 4x4", (230_000, 350_000)),
    )
    today = date.today()
    vehicles: list[NormalizedAsset] = []

    for brand, model, (low, high) in dice.pick_many(pickups, dice.between(2, 3)):
        year = dice.between(2020, 2025)
        restricted = dice.chance(0.3)
        city, state = dice.pick((("Maringa", "PR"), ("Balsas", "MA")))
        vehicles.append(
            NormalizedAsset(
                category=AssetCategory.VEICULO_AUTOMOVEL,
                subcategory="Caminhonete",
                description=f"{brand} {model} {year}/{year}",
                registration_id=dice.digits(11),
                location=f"{city}/{state}",
                state=state,
                city=city,
                estimated_value=dice.decimal(low, high),
                valuation_method="FIPE",
                valuation_date=today,
                has_restriction=restricted,
                restriction_type=(
                    dice.pick(("Alienacao Fiduciaria", "Arrendamento Mercantil")) if restricted else None
                ),
                restriction_detail="Restricao financeira ativa" if restricted else None,
                is_seizable=not restricted,
                ownership_percentage=100,
                source_provider=provider,
                raw_source_data={
                    "placa": dice.mercosul_plate(),
                    "renavam": dice.digits(11),
                    "anoFabricacao": year,
                    "anoModelo": year,
                    "cor": dice.pick(("Branca", "Prata", "Preta", "Cinza")),
                    "combustivel": "Diesel",
                },
            )
        )

    truck_year = dice.between(2019, 2024)
    vehicles.append(
        NormalizedAsset(
            category=AssetCategory.VEICULO_CAMINHAO,
            subcategory="Caminhao Pesado",
            description=f"Volvo FH 540 6x4 {truck_year}/{truck_year}",
            registration_id=dice.digits(11),
            location="Maringa/PR",
            state="PR",
            city="Maringa",
            estimated_value=dice.decimal(600_000, 1_200_000),
            valuation_method="FIPE",
            valuation_date=today,
            ownership_percentage=100,
            source_provider=provider,
            raw_source_data={
                "placa": dice.mercosul_plate(),
                "anoFabricacao": truck_year,
                "anoModelo": truck_year,
                "cor": "Branca",
                "combustivel": "Diesel",
                "tipoVeiculo": "CAMINHAO",
            },
        )
    )

    return _result(
        provider,
        query,
        dice,
        {"totalVeiculos": len(vehicles), "veiculos": [v.description for v in vehicles]},
        latency=(300, 1000),
        normalized_assets=vehicles,
    )


def _properties(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    farms = ("Fazenda Boa Vista", "Fazenda Santa Maria", "Sitio Sao Jose", "Fazenda Cerrado Dourado")
    assets: list[NormalizedAsset] = []

    for farm in farms[: dice.between(2, 4)]:
        area = dice.decimal(100, 2000, 1)
        restricted = dice.chance(0.25)
        assets.append(
            NormalizedAsset(
                category=AssetCategory.IMOVEL_RURAL,
                subcategory="Propriedade Rural",
                description=f"{farm} - {area} ha - Municipio de Balsas/MA",
                registration_id=f"MAT-{dice.between(10_000, 99_999)}",
                location="Zona Rural, Balsas/MA",
                state="MA",
                city="Balsas",
                estimated_value=round(area * dice.decimal(15_000, 45_000), 2),
                valuation_method="Valor de mercado regional",
                valuation_date=dice.recent_date(180),
                has_restriction=restricted,
                restriction_type=(
                    dice.pick(("Hipoteca", "Alienacao Fiduciaria", "Reserva Legal")) if restricted else None
                ),
                restriction_detail=f"Gravame registrado em {dice.pick(CARTORIOS_MA)}" if restricted else None,
                is_seizable=not restricted,
                ownership_percentage=dice.decimal(50, 100),
                source_provider=provider,
                latitude=dice.decimal(-7.7, -7.3, 4),
                longitude=dice.decimal(-46.3, -45.8, 4),
                area_hectares=area,
                car_code=f"MA-{dice.between(1_000_000, 9_999_999)}",
                raw_source_data={
                    "cartorio": dice.pick(CARTORIOS_MA),
                    "comarca": "Balsas",
                    "averbacoes": dice.between(2, 8),
                },
            )
        )

    flat_area = dice.between(80, 200)
    building = dice.pick(("Ed. Solar das Flores", "Ed. Residencial Maringa", "Ed. Torre Nobre", "Cond. Alto Padrao"))
    neighbourhood = dice.pick(MARINGA_ADDRESSES)["bairro"]
    assets.append(
        NormalizedAsset(
            category=AssetCategory.IMOVEL_URBANO,
            subcategory="Apartamento",
            description=f"Apartamento {flat_area}m2 - {building} - {neighbourhood}, Maringa/PR",
            registration_id=f"MAT-{dice.between(50_000, 99_999)}",
            location="Maringa/PR",
            state="PR",
            city="Maringa",
            estimated_value=dice.decimal(400_000, 1_500_000),
            valuation_method="Avaliacao comparativa de mercado",
            valuation_date=dice.recent_date(120),
            impenhorability_reason=(
                "Possivel bem de familia (Art. 1o, Lei 8.009/90)" if dice.chance(0.5) else None
            ),
            ownership_percentage=100,
            source_provider=provider,
            raw_source_data={"cartorio": dice.pick(CARTORIOS_PR), "comarca": "Maringa"},
        )
    )

    return _result(
        provider,
        query,
        dice,
        {"totalImoveis": len(assets), "imoveis": [a.description for a in assets]},
        latency=(400, 1500),
        normalized_assets=assets,
    )


def _protests(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    kinds = (
        ("Duplicata Mercantil", "DUPLICATA"),
        ("Duplicata de Servico", "DUPLICATA"),
        ("Cheque", "CHEQUE"),
        ("Nota Promissoria", "NOTA_PROMISSORIA"),
        ("Letra de Cambio", "LETRA_CAMBIO"),
    )
    debts: list[NormalizedDebt] = []
    for _ in range(dice.between(3, 6)):
        label, origin = dice.pick(kinds)
        creditor, creditor_doc = dice.pick(CREDITORS)
        value = dice.decimal(5_000, 500_000)
        debts.append(
            NormalizedDebt(
                debt_type=DebtType.PROTESTO,
                creditor=creditor,
                creditor_document=creditor_doc,
                original_value=value,
                current_value=round(value * dice.decimal(1, 1.3), 2),
                inscription_date=dice.past_date(0.2, 3),
                description=f"Protesto - {label}",
                status=dice.pick(("Protestado", "Protestado - Intimado", "Aguardando Pagamento")),
                origin=origin,
                source_provider=provider,
                raw_source_data={
                    "cartorio": dice.pick(
                        (
                            f"{dice.between(1, 4)}o Tabelionato de Protestos de Maringa/PR",
                            "Tabelionato de Protestos de Balsas/MA",
                        )
                    )
                },
            )
        )

    return _result(
        provider,
        query,
        dice,
        {"totalProtestos": len(debts)},
        latency=(300, 900),
        normalized_debts=debts,
    )


def _tax_debts(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    federal = (
        "IRPJ - Imposto de Renda Pessoa Juridica",
        "CSLL - Contribuicao Social sobre o Lucro Liquido",
        "PIS/COFINS - Contribuicoes Sociais",
        "Funrural - Contribuicao Previdenciaria Rural",
    )
    debts: list[NormalizedDebt] = []
    for description in dice.pick_many(federal, dice.between(1, 3)):
        value = dice.decimal(100_000, 3_000_000)
        debts.append(
            NormalizedDebt(
                debt_type=DebtType.DIVIDA_ATIVA_UNIAO,
                creditor="Procuradoria-Geral da Fazenda Nacional",
                creditor_document="00.394.460/0001-41",
                original_value=value,
                current_value=round(value * dice.decimal(1.2, 2.5), 2),
                inscription_date=dice.past_date(1, 5),
                description=description,
                case_number=(
                    f"{dice.between(10_000, 99_999)}.{dice.between(10, 99)}."
                    f"{dice.between(1000, 9999)}.{dice.between(10, 99)}"
                ),
                status=dice.pick(("Inscrito", "Em cobranca", "Parcelado", "Ajuizado")),
                origin="PGFN",
                source_provider=provider,
            )
        )

    if dice.chance(0.6):
        value = dice.decimal(50_000, 800_000)
        debts.append(
            NormalizedDebt(
                debt_type=DebtType.DIVIDA_ATIVA_ESTADO,
                creditor="Secretaria da Fazenda do Parana",
                original_value=value,
                current_value=round(value * dice.decimal(1.1, 1.8), 2),
                inscription_date=dice.past_date(0.5, 3),
                description="ICMS - Imposto sobre Circulacao de Mercadorias",
                status="Inscrito em Divida Ativa",
                origin="SEFA/PR",
                source_provider=provider,
            )
        )

    return _result(
        provider,
        query,
        dice,
        {"totalDividas": len(debts)},
        latency=(400, 1200),
        normalized_debts=debts,
    )


def _cvm(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    funds = ("FIDC Agro Recebiveis Sul", "FIDC Credito Produtivo Nacional", "FIDC Multi Setorial Parana")
    assets: list[NormalizedAsset] = []

    for fund in funds[: dice.between(1, 2)]:
        assets.append(
            NormalizedAsset(
                category=AssetCategory.FUNDOS_INVESTIMENTO,
                subcategory="FIDC",
                description=f"{fund} - Cotas Subordinadas",
                registration_id=f"CVM-{dice.between(100_000, 999_999)}",
                estimated_value=dice.decimal(200_000, 3_000_000),
                valuation_method="Valor patrimonial da cota",
                valuation_date=dice.recent_date(30),
                ownership_percentage=dice.decimal(1, 15),
                source_provider=provider,
                raw_source_data={
                    "cnpjFundo": generate_cnpj(dice.rng),
                    "classeCotas": "Subordinada",
                    "administrador": dice.pick(("BTG Pactual", "Oliveira Trust", "Vortx")),
                },
            )
        )

    if dice.chance(0.7):
        assets.append(
            NormalizedAsset(
                category=AssetCategory.FUNDOS_INVESTIMENTO,
                subcategory="FII",
                description=f"FII {dice.pick(('Logistica Sul', 'Agro Terras', 'Galpoes Industriais PR'))} - Cotas",
                registration_id=f"CVM-{dice.between(100_000, 999_999)}",
                estimated_value=dice.decimal(100_000, 800_000),
                valuation_method="Cotacao B3",
                valuation_date=dice.recent_date(7),
                ownership_percentage=dice.decimal(0.5, 5),
                source_provider=provider,
                raw_source_data={
                    "cnpjFundo": generate_cnpj(dice.rng),
                    "ticker": dice.pick(("LGCP11", "AGRO11", "GALP11")),
                    "quantidade": dice.between(100, 5000),
                },
            )
        )

    return _result(
        provider,
        query,
        dice,
        {"totalRegistros": len(assets)},
        latency=(300, 1000),
        normalized_assets=assets,
    )


def _satellite(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    total_area = dice.decimal(500, 3000, 1)
    coverage = {
        "areaTotal": total_area,
        "sojaHa": round(total_area * 0.60, 1),
        "sojaPercent": 60,
        "pastoHa": round(total_area * 0.25, 1),
        "pastoPercent": 25,
        "appHa": round(total_area * 0.15, 1),
        "appPercent": 15,
        "ndviMedio": dice.decimal(0.5, 0.85),
        "dataImagem": dice.recent_date(15).isoformat(),
    }
    alerts = [
        {
            "dataDeteccao": dice.recent_date(180).isoformat(),
            "areaHa": dice.decimal(0.5, 15, 1),
            "tipo": dice.pick(("Desmatamento", "Degradacao", "Corte raso")),
            "bioma": "Cerrado",
            "municipio": "Balsas",
            "uf": "MA",
            "fonte": dice.pick(("DETER/INPE", "PRODES/INPE", "MapBiomas Alerta")),
            "coordenadas": {"lat": dice.decimal(-7.7, -7.3, 4), "lng": dice.decimal(-46.3, -45.8, 4)},
            "severidade": dice.pick(("BAIXA", "MEDIA", "ALTA")),
        }
        for _ in range(dice.between(0, 3))
    ]
    data = {
        "coberturaSolo": coverage,
        "alertasDesmatamento": alerts,
        "totalAlertas": len(alerts),
        "statusAmbiental": "ATENCAO" if alerts else "REGULAR",
    }
    return _result(provider, query, dice, data, latency=(800, 3000), raw={"cobertura": coverage, "alertas": alerts})


def _corporate(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    links: list[NormalizedCorporateLink] = []
    for _ in range(dice.between(2, 5)):
        recent = dice.chance(0.2)
        irregular = dice.chance(0.15)
        links.append(
            NormalizedCorporateLink(
                company_name=dice.pick(COMPANY_NAMES),
                company_cnpj=generate_cnpj(dice.rng),
                company_status=dice.pick(("ATIVA", "ATIVA", "ATIVA", "BAIXADA", "INAPTA")),
                cnae=dice.pick(CNAES_AGRO)["codigo"],
                open_date=dice.recent_date(365) if recent else dice.past_date(2, 15),
                role=dice.pick(("Socio-Administrador", "Socio", "Procurador", "Diretor")),
                share_percentage=dice.decimal(5, 100),
                capital_value=dice.decimal(100_000, 20_000_000),
                entry_date=dice.recent_date(365) if recent else dice.past_date(1, 10),
                is_recent_creation=recent,
                has_irregularity=irregular,
                irregularity_desc=(
                    dice.pick(
                        (
                            "Empresa inapta na Receita Federal",
                            "Situacao cadastral irregular",
                            "Pendencia fiscal",
                        )
                    )
                    if irregular
                    else None
                ),
                source_provider=provider,
            )
        )

    return _result(
        provider,
        query,
        dice,
        {"totalEmpresas": len(links)},
        latency=(400, 1500),
        normalized_corporate_links=links,
    )


def _compliance(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    hits: list[dict[str, Any]] = []
    is_pep = dice.chance(0.15)
    is_sanctioned = dice.chance(0.05)
    if is_pep:
        hits.append(
            {
                "nome": query.target_document,
                "score": dice.decimal(0.6, 0.9),
                "fonte": "Tribunal Superior Eleitoral",
                "lista": "PEP Brasil",
                "tipo": "PEP",
                "detalhes": "Pessoa Exposta Politicamente - Mandato municipal encerrado",
            }
        )
    if is_sanctioned:
        hits.append(
            {
                "nome": query.target_document,
                "score": dice.decimal(0.7, 0.95),
                "fonte": "OFAC - SDN List",
                "lista": "Sanctions",
                "tipo": "SANCTION",
                "detalhes": "Potential match - requires manual review",
            }
        )
    data = {"pepStatus": is_pep, "sanctionStatus": is_sanctioned, "hits": hits}
    return _result(provider, query, dice, data, latency=(500, 2000), raw=data)


def _scoring(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    score = dice.between(200, 900)
    if score >= 700:
        band = "BAIXO_RISCO"
    elif score >= 400:
        band = "MEDIO_RISCO"
    else:
        band = "ALTO_RISCO"
    data = {
        "score": score,
        "faixa": band,
        "probabilidadeInadimplencia": dice.decimal(0.02, 0.45),
        "dataConsulta": datetime.now().isoformat(timespec="seconds"),
        "negativacoes": dice.between(0, 5),
        "pendenciasFinanceiras": dice.between(0, 3),
        "protestos": dice.between(0, 4),
        "chequesSemFundo": dice.between(0, 2),
    }
    return _result(provider, query, dice, data, latency=(200, 800), raw=data)


def _rural(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    assets: list[NormalizedAsset] = []
    for _ in range(dice.between(1, 3)):
        area = dice.decimal(200, 2500, 1)
        car = f"MA-{dice.between(1_000_000, 9_999_999)}"
        assets.append(
            NormalizedAsset(
                category=AssetCategory.IMOVEL_RURAL,
                subcategory="Imovel Rural - CAR",
                description=f"Imovel rural em Balsas/MA - CAR registrado - {area} ha",
                registration_id=f"CAR-{car}",
                location="Balsas/MA",
                state="MA",
                city="Balsas",
                estimated_value=round(area * dice.decimal(18_000, 35_000), 2),
                valuation_method="Valor regional INCRA",
                has_restriction=dice.chance(0.2),
                source_provider=provider,
                latitude=dice.decimal(-7.7, -7.3, 4),
                longitude=dice.decimal(-46.3, -45.8, 4),
                area_hectares=area,
                car_code=car,
            )
        )
    return _result(
        provider,
        query,
        dice,
        {"totalImoveis": len(assets)},
        latency=(300, 1200),
        normalized_assets=assets,
    )


def _brands(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    assets: list[NormalizedAsset] = []
    if dice.chance(0.4):
        assets.append(
            NormalizedAsset(
                category=AssetCategory.MARCAS_PATENTES,
                subcategory="Marca Registrada",
                description=f'Marca "{dice.pick(COMPANY_NAMES).split()[0]}" - Classe NCL {dice.between(1, 45)}',
                registration_id=f"BR{dice.between(100_000_000, 999_999_999)}",
                estimated_value=dice.decimal(50_000, 500_000),
                valuation_method="Estimativa baseada em faturamento",
                source_provider=provider,
            )
        )
    return _result(
        provider, query, dice, {"totalMarcas": len(assets)}, latency=(200, 600), normalized_assets=assets
    )


def _monitoring(provider: ApiProvider, query: ProviderQuery, dice: _Dice) -> ProviderResult:
    data = {
        "monitoramentoAtivo": True,
        "proximaVerificacao": (datetime.now() + timedelta(days=1)).isoformat(timespec="seconds"),
    }
    return _result(provider, query, dice, data, latency=(100, 300))


_Handler = Callable[[ApiProvider, ProviderQuery, _Dice], ProviderResult]

_HANDLERS: dict[QueryType, _Handler] = {
    QueryType.CONSULTA_CPF: _cpf,
    QueryType.CONSULTA_CNPJ: _cnpj,
    QueryType.CONSULTA_PROCESSO: _lawsuits,
    QueryType.CONSULTA_VEICULO: _vehicles,
    QueryType.CONSULTA_IMOVEL: _properties,
    QueryType.CONSULTA_PROTESTO: _protests,
    QueryType.CONSULTA_DIVIDA_ATIVA: _tax_debts,
    QueryType.CONSULTA_CVM: _cvm,
    QueryType.CONSULTA_SATELITE: _satellite,
    QueryType.CONSULTA_SOCIETARIA: _corporate,
    QueryType.CONSULTA_PEP_SANCOES: _compliance,
    QueryType.CONSULTA_SCORING: _scoring,
    QueryType.CONSULTA_RURAL: _rural,
    QueryType.CONSULTA_MARCAS: _brands,
    QueryType.MONITORAMENTO: _monitoring,
}


def generate_mock_result(
    provider: ApiProvider,
    query: ProviderQuery,
    rng: random.Random | None = None,
) -> ProviderResult:
    """Genera un `ProviderResult` simulado para `query`.

    `rng` permite tests reproducibles; por defecto no hay semilla.
    """

    dice = _Dice(rng or random.Random())
    handler = _HANDLERS.get(query.query_type)
    if handler is None:
        return _result(
            provider,
            query,
            dice,
            {"message": "No mock data available for this query type"},
            latency=(50, 200),
        )
    return handler(provider, query, dice)
