from typing import Dict, List

from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter(prefix="/cities", tags=["Cities"])


class City(BaseModel):
    id: str
    name: str
    default: bool = False


class CityCatalogue(BaseModel):
    cities: List[City]
    neighborhoods: Dict[str, List[str]]


CITIES = [
    City(id="la-habana", name="Habana", default=True),
    City(id="santiago-de-cuba", name="Santiago de Cuba"),
    City(id="camaguey", name="Camagüey"),
    City(id="holguin", name="Holguín"),
    City(id="santa-clara", name="Santa Clara"),
    City(id="guantanamo", name="Guantánamo"),
    City(id="bayamo", name="Bayamo"),
    City(id="cienfuegos", name="Cienfuegos"),
    City(id="pinar-del-rio", name="Pinar del Río"),
    City(id="matanzas", name="Matanzas"),
    City(id="las-tunas", name="Las Tunas"),
    City(id="sancti-spiritus", name="Sancti Spíritus"),
    City(id="ciego-de-avila", name="Ciego de Ávila"),
    City(id="villa-clara", name="Villa Clara"),
    City(id="artemisa", name="Artemisa"),
    City(id="mayabeque", name="Mayabeque"),
    City(id="isla-de-la-juventud", name="Isla de la Juventud"),
    City(id="all", name="Toda Cuba"),
]

NEIGHBORHOODS = {
    "la-habana": [
        "Vedado",
        "Centro Habana",
        "Habana Vieja",
        "Miramar",
        "Playa",
        "Cerro",
        "Diez de Octubre",
        "San Miguel del Padrón",
        "Boyeros",
        "Arroyo Naranjo",
        "Cotorro",
        "Habana del Este",
        "Marianao",
        "La Lisa",
        "Guanabacoa",
        "Regla",
    ],
}


@router.get("/", response_model=CityCatalogue)
def list_cities():
    """Cities a listing can be placed in, plus known neighborhoods per city."""
    return CityCatalogue(cities=CITIES, neighborhoods=NEIGHBORHOODS)
