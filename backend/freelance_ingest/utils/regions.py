from __future__ import annotations
import re

DUTCH_PROVINCES = (
    "Drenthe",
    "Flevoland",
    "Friesland",
    "Gelderland",
    "Groningen",
    "Limburg",
    "Noord-Brabant",
    "Noord-Holland",
    "Overijssel",
    "Utrecht",
    "Zeeland",
    "Zuid-Holland",
)

# Matched as whole words, allowing the adjective suffix "-se" ("Utrechtse"),
# so "ede" does not fire on "Nederland".
CITY_TO_PROVINCE: dict[str, str] = {
    "amsterdam": "Noord-Holland",
    "haarlem": "Noord-Holland",
    "hilversum": "Noord-Holland",
    "zaandam": "Noord-Holland",
    "alkmaar": "Noord-Holland",
    "hoofddorp": "Noord-Holland",
    "rotterdam": "Zuid-Holland",
    "den haag": "Zuid-Holland",
    "'s-gravenhage": "Zuid-Holland",
    "leiden": "Zuid-Holland",
    "delft": "Zuid-Holland",
    "dordrecht": "Zuid-Holland",
    "zoetermeer": "Zuid-Holland",
    "gouda": "Zuid-Holland",
    "nieuwegein": "Utrecht",
    "amersfoort": "Utrecht",
    "utrecht": "Utrecht",
    "eindhoven": "Noord-Brabant",
    "tilburg": "Noord-Brabant",
    "breda": "Noord-Brabant",
    "den bosch": "Noord-Brabant",
    "'s-hertogenbosch": "Noord-Brabant",
    "helmond": "Noord-Brabant",
    "arnhem": "Gelderland",
    "nijmegen": "Gelderland",
    "apeldoorn": "Gelderland",
    "wageningen": "Gelderland",
    "ede": "Gelderland",
    "groningen": "Groningen",
    "almere": "Flevoland",
    "lelystad": "Flevoland",
    "zwolle": "Overijssel",
    "enschede": "Overijssel",
    "deventer": "Overijssel",
    "maastricht": "Limburg",
    "venlo": "Limburg",
    "heerlen": "Limburg",
    "leeuwarden": "Friesland",
    "assen": "Drenthe",
    "emmen": "Drenthe",
    "middelburg": "Zeeland",
}


_CITY_PATTERNS = [
    (re.compile(rf"(?<![a-z]){re.escape(city)}(?:se)?(?![a-z])"), province)
    for city, province in CITY_TO_PROVINCE.items()
]


def infer_province(location: str | None) -> str | None:
    if not location:
        return None
    loc = location.strip().lower()

    for pattern, province in _CITY_PATTERNS:
        if pattern.search(loc):
            return province

    # Some platforms put the province name itself in the region field.
    for province in DUTCH_PROVINCES:
        if loc == province.lower():
            return province
    return None
