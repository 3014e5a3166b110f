"""Built-in alias table for the portfolio's properties.

Keys are free-text labels as they show up in cleaning-table OCR output and
Airbnb listing titles; values are canonical property names. Keys are
normalized when the table is built, so accents and spacing here don't matter.
"""

SEVILHA_307 = "Sevilha 307"
SEVILHA_G07 = "Sevilha G07"
MALAGA_M07 = "Málaga M07"
MAXHAUS_43R = "MaxHaus 43R"
SALAS_BRASAL = "Salas Brasal"
HADDOCK_LOBO = "Next Haddock Lobo ap 33"
SESIMBRA = "Sesimbra ap 505- Portugal"
THERA = "Thera by Yoo"
CASA_IBIRAPUERA = "Casa Ibirapuera torre 3 ap 1411"
LIVING_FARIA_LIMA = "Living Full Faria Lima setor 1 res 1808"

CANONICAL_PROPERTIES = (
    SEVILHA_307,
    SEVILHA_G07,
    MALAGA_M07,
    MAXHAUS_43R,
    SALAS_BRASAL,
    HADDOCK_LOBO,
    SESIMBRA,
    THERA,
    CASA_IBIRAPUERA,
    LIVING_FARIA_LIMA,
)

_VARIANTS = {
    MAXHAUS_43R: [
        "MAXHAUS", "MAX HAUS", "MAXHOUS", "MAX HOUS", "MAX HOUS 43", "MAXHOUSS",
        "MAXHAUS 43R", "MAXHAUS 43", "MAXHAUS43R", "MAXHAUS43", "MAX HAUS 43R",
        "MAX HAUS 43", "MAX HAUS 43 R", "43R", "43 R", "MAXHAUS43 R",
        "MAXHAUS BERRINI",
        "2 quartos, maravilhoso, na Avenida Berrini",
    ],
    SEVILHA_G07: [
        "SEVILHA G07", "SEVILHAG07", "SEVILHA G 07", "SEVILHA G 0 7", "G07",
        "G 07", "G 0 7", "TORRE G 07", "TORRE G07", "SEVILHA TORRE G07",
        "SEV G07", "SEVG07", "SEVILHA G", "SEVILHAG", "SEV G 07", "SEVILHA TG07",
        "1 Suíte + Quintal privativo",
    ],
    SEVILHA_307: [
        "SEVILHA 307", "SEVILHA307", "SEVILHA 3 07", "SEVILHA 3 0 7", "307",
        "3 07", "3 0 7", "TORRE 6 307", "TORRE 6307", "6 000307", "6000307",
        "SEVILHA TORRE 307", "SEV 307", "SEV307", "TORRE6 307",
        "1 Suíte Wonderful Einstein Morumbi",
    ],
    HADDOCK_LOBO: [
        "HADDOCK LOBO", "HADDOCK", "HADDOK LOBO", "HADOCK LOBO", "HADOK LOBO",
        "HADDOCKLOBO", "HADDOKLOBO", "HADOCKLOBO", "HADOKLOBO", "NEXT HADDOCK",
        "NEXT HADDOCK LOBO", "NEXT HADDOK", "NEXT HADOCK", "NEXT HADOK", "HADDOK",
        "HADOCK", "HADOK", "HADDOC LOBO", "HADOC LOBO", "NEXTHADDOCK",
        "Studio Premium - Haddock Lobo", "Studio Premium - Haddock Lobo.",
    ],
    MALAGA_M07: [
        "MALAGA M07", "MALAGAM07", "MALAGAM 07", "MALAGA M 07", "MALAGA M 0 7",
        "MALAGA", "M07", "M 07", "M 0 7", "MALAGA M", "MALAGAM", "MAL M07",
        "MAL M 07", "MALM07", "MALA M07",
        "2 Quartos + Quintal Privativo",
    ],
    THERA: [
        "THERA", "THERA BY YOO", "THERA BY YOU", "THERA BY", "THERA YOO",
        "THERABYYOO", "THERABY", "THERAYOO", "THERA B YOO", "THERA B Y",
        "THERABY YOO", "THER A", "THERA Y00", "THERA BY Y00", "THERA YO",
        "THE RA", "THERA B",
        "Studio Premium - Thera by Yoo",
    ],
    LIVING_FARIA_LIMA: [
        "LIVING", "LIVING FULL", "LIVING FULL FARIA LIMA", "LIVINGFULL",
        "LIVING FARIA LIMA", "LIVING FL", "LIVING FARIALIMA", "FARIA LIMA",
        "FARIALIMA", "LIVING F LIMA", "LIVING FULL FL", "LIV FULL",
        "LIV FARIA LIMA", "LIVINGFL", "FL",
    ],
    CASA_IBIRAPUERA: [
        "CASA IBIRAPUERA", "CASAIBIRAPUERA", "IBIRAPUERA", "CASA IBR", "CASAIBR",
        "IBR", "CASA IBIRAP", "CASAIBIRAP", "IBIRAP", "C IBIRAPUERA",
        "CIBIRAPUERA", "CASA I", "CASA IBIR", "IBIRAP CASA", "CASA IBIRA", "IBIRA",
    ],
    SALAS_BRASAL: [
        "SALAS BRASAL", "SALASBRASAL", "SALA BRASAL", "SALABRASAL", "BRASAL",
        "SALAS BR", "SALASBR", "S BRASAL", "SBRASAL", "BRASAL SALAS", "SALA BR",
        "SALABR", "BRASAL S", "BRASALS", "SALAS BRASIL", "BRASSAL",
    ],
    SESIMBRA: [
        "SESIMBRA", "SESIMBRA 505", "SESIMBRA AP 505", "SESIMBRA PORTUGAL",
        "SESIMBRA PT", "505", "AP 505", "SESIMBRA A 505", "SESIMBRA P",
        "SESIMBRA 5 05", "SESIMBRA5", "SESIMBRA AP505", "SES 505",
        "SESIMBRA 50 5", "SESIMBRA APT 505", "SESIMBRA APT",
        "Sesimbra SeaView Studio 502: Sol, Luxo e Mar",
    ],
}

DEFAULT_ALIASES: dict[str, str] = {
    variant: canonical
    for canonical, variants in _VARIANTS.items()
    for variant in variants
}
