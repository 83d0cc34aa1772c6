"""Proveedores concretos (backends HTTP).

Por qué un paquete:
- Un módulo por fuente de datos; todos implementan
  `core.interfaces.provider.ProviderBackend` vía `HttpProviderBackend`.
- `DEFAULT_BACKENDS` fija el orden de registro (de fuentes gratuitas a
  premium), que es también el desempate del planificador.
"""

from adapters.providers.assertiva import AssertivaBackend
from adapters.providers.bacen import BacenBackend
from adapters.providers.base import HttpProviderBackend
from adapters.providers.brasilapi import BrasilApiBackend
from adapters.providers.cnpja import CnpjaBackend
from adapters.providers.complyadvantage import ComplyAdvantageBackend
from adapters.providers.cvm import CvmBackend
from adapters.providers.datajud import DataJudBackend
from adapters.providers.escavador import EscavadorBackend
from adapters.providers.infosimples import InfoSimplesBackend
from adapters.providers.mapbiomas import MapBiomasBackend
from adapters.providers.opencorporates import OpenCorporatesBackend
from adapters.providers.opensanctions import OpenSanctionsBackend
from adapters.providers.serpro import SerproBackend

DEFAULT_BACKENDS: tuple[type[HttpProviderBackend], ...] = (
    BrasilApiBackend,
    CnpjaBackend,
    DataJudBackend,
    CvmBackend,
    BacenBackend,
    OpenSanctionsBackend,
    InfoSimplesBackend,
    EscavadorBackend,
    AssertivaBackend,
    SerproBackend,
    ComplyAdvantageBackend,
    OpenCorporatesBackend,
    MapBiomasBackend,
)

__all__ = [
    "AssertivaBackend",
    "BacenBackend",
    "BrasilApiBackend",
    "CnpjaBackend",
    "ComplyAdvantageBackend",
    "CvmBackend",
    "DEFAULT_BACKENDS",
    "DataJudBackend",
    "EscavadorBackend",
    "HttpProviderBackend",
    "InfoSimplesBackend",
    "MapBiomasBackend",
    "OpenCorporatesBackend",
    "OpenSanctionsBackend",
    "SerproBackend",
]
