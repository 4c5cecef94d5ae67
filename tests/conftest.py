"""Shared fixtures: a small catalog with the key-naming drift of the real data."""

import sqlite3

import pytest

from pcbuild_catalog.config import CompilerConfig
from pcbuild_catalog.db import ComponentStore, write_collections
from pcbuild_catalog.search import FilterCompiler


CATALOG: dict[str, list[dict]] = {
    "processor_productos": [
        {
            "_id": "c1", "Nombre": "AMD Ryzen 7 7700X", "Marca": "AMD",
            "Características": {
                "Enchufe": "AM5", "Núcleos": "8", "Reloj base": "4.50 GHz", "TDP": "105 W",
                "Enfriador incluido": "No", "GPU integrada": "Radeon Graphics",
            },
            "gpu_integrada": True,
        },
        {
            "_id": "c2", "Nombre": "AMD Ryzen 5 5600", "Marca": "AMD",
            "Características": {
                "Socket": "AM4", "Núcleos": 6, "Reloj base": "3.5 GHz", "TDP": "65 W",
                "Enfriador incluido": "Sí", "GPU integrada": "No",
            },
        },
        {
            "_id": "c3", "Nombre": "Intel Core i5-13400F", "Marca": "Intel",
            "Características": {"Enchufe": "LGA1700", "Núcleos": "10", "Reloj base": "N/A", "TDP": "65 W"},
            "reloj_base": "2.5 GHz",
            "gpu_integrada": False,
        },
        {
            "_id": "c4", "Nombre": "Intel Core i7-14700K", "Marca": "Intel",
            "Características": {
                "Enchufe": "LGA1700", "Núcleos": "20", "Reloj base": "4.70 GHz", "TDP": "125 W",
                "GPU integrada": "Intel UHD Graphics 770",
            },
            "enfriador_incluido": False,
        },
        {
            "_id": "c5", "Nombre": "AMD Ryzen 9 7950X3D", "Marca": "AMD",
            "Características": {"Enchufe": "AM5", "Núcleos": "16", "Reloj base": "4.2 GHz", "TDP": "120 W"},
        },
    ],
    "graphic-card_productos": [
        {
            "_id": "g1", "Nombre": "ASUS RTX 4070 Dual", "Marca": "ASUS",
            "Características": {
                "Memoria": "12 GB", "Longitud": "267 mm", "Tipo de memoria": "GDDR6X",
                "Interfaz": "PCIe 4.0 x16", "TDP": "200 W",
            },
        },
        {
            "_id": "g2", "Nombre": "Sapphire Pulse RX 7800 XT", "Marca": "Sapphire",
            "Características": {
                "Memoria": "16 GB", "Longitud": "280 mm", "Tipo de memoria": "GDDR6",
                "Interfaz": "PCIe 4.0 x16", "TDP": "263 W",
            },
        },
        {
            "_id": "g3", "Nombre": "MSI GeForce GTX 1650", "Marca": "MSI",
            "memoria": 4, "longitud": "178 mm", "tipo_de_memoria": "GDDR6",
        },
        {
            "_id": "g4", "Nombre": "Intel Arc A750", "Marca": "Intel",
            "Características": {"Memoria": "8 GB", "Tipo de memoria": "GDDR6"},
        },
    ],
    "motherboard_productos": [
        {
            "_id": "m1", "Nombre": "ASUS ROG STRIX B650-A",
            "Características": {
                "Socket": "AM5", "Factor de forma": "ATX", "Tipo de memoria": "DDR5",
                "Ranuras de RAM": 4, "Ranuras M.2": "3", "WiFi": "Wi-Fi 6E",
            },
        },
        {
            "_id": "m2", "Nombre": "MSI PRO B760M-P",
            "Características": {
                "Enchufe": "LGA1700", "Formato": "Micro-ATX", "Tipo de memoria": "DDR4",
                "Ranuras de RAM": "4", "Ranuras M.2": "2", "WiFi": "No",
            },
        },
        {
            "_id": "m3", "Nombre": "Gigabyte A620I AX",
            "enchufe": "AM5", "factor_de_forma": "Mini-ITX", "redes_inalambricas": True, "ranuras_de_ram": "2",
        },
    ],
    "memory_productos": [
        {
            "_id": "r1", "Nombre": "Corsair Vengeance 32GB",
            "Características": {
                "Tipo": "DDR5", "Velocidad": "6000 MHz", "Configuración": "2 x 16GB",
                "Refrigeración pasiva": "Sí", "Latencia CAS": 30,
            },
        },
        {
            "_id": "r2", "Nombre": "Kingston Fury Beast 16GB",
            "Características": {
                "Tipo de memoria": "DDR4", "Velocidad": "3200 MHz", "Configuración": "1 x 16GB",
                "Latencia CAS": "16",
            },
            "refrigeracion_pasiva": False,
        },
    ],
    "storage_productos": [
        {
            "_id": "s1", "Nombre": "Samsung 990 Pro (1TB)",
            "Características": {
                "Tipo": "SSD", "Capacidad": "1 TB", "Interfaz": "M.2 PCIe 4.0 X4",
                "Factor de forma": "M.2-2280", "Compatible con NVMe": "Sí",
            },
        },
        {
            "_id": "s2", "Nombre": "Seagate Barracuda 2TB",
            "Características": {
                "Tipo": "7200 RPM", "Capacidad": "2 TB", "Interfaz": "SATA 6.0 Gb/s",
                "Factor de forma": "3.5\"", "Compatible con NVMe": "No",
            },
        },
    ],
    "power-supply_productos": [
        {
            "_id": "p1", "Nombre": "Corsair RM850x",
            "Características": {
                "Potencia": "850 W", "Certificación": "80+ Gold", "Modular": "Completo",
                "Factor de forma": "ATX", "Longitud": "160 mm",
            },
        },
        {
            "_id": "p2", "Nombre": "EVGA 600 BR",
            "Características": {
                "Potencia": "600 W", "Calificación de eficiencia": "80+ Bronze", "Modular": "No",
                "Factor de forma": "ATX",
            },
        },
        {
            "_id": "p3", "Nombre": "Cooler Master V750 SFX",
            "potencia": 750, "calificacion_de_eficiencia": "80+ Gold", "modular": True, "factor_de_forma": "SFX",
        },
    ],
    "case_productos": [
        {
            "_id": "k1", "Nombre": "NZXT H5 Flow",
            "Características": {
                "Longitud máxima de GPU": "365 mm", "Factores de forma": "ATX, Micro-ATX, Mini-ITX",
                "Ranuras de expansión de altura completa": "7",
            },
        },
        {
            "_id": "k2", "Nombre": "Cooler Master NR200",
            "Características": {
                "Longitud máxima de GPU": "330 mm", "Factores de forma": "Mini-ITX",
                "Ranuras de expansión de altura completa": "3",
            },
        },
        {
            "_id": "k3", "Nombre": "Phanteks Enthoo Pro 2",
            "factores_de_forma": ["ATX", "E-ATX"], "longitud_maxima_de_gpu": 503,
        },
    ],
    "cooler_productos": [
        {
            "_id": "f1", "Nombre": "Noctua NH-D15",
            "Características": {
                "Refrigerado por agua": "No", "Sin ventilador": "No",
                "Ruido máximo": "24.6 dB", "RPM máximas": "1500 RPM",
            },
        },
        {
            "_id": "f2", "Nombre": "NZXT Kraken 240",
            "Características": {
                "Refrigerado por agua": "Sí", "Ruido máximo": "36 dB",
                "RPM máximas": "2000 RPM", "Longitud del radiador": "240 mm",
            },
        },
        {
            "_id": "f3", "Nombre": "Thermalright Assassin X 120",
            "Características": {"RPM máximas": "1550 RPM"},
        },
        {
            "_id": "f4", "Nombre": "Arctic Liquid Freezer II 280",
            "refrigerado_por_agua": True, "longitud_del_radiador": 280,
        },
    ],
}


@pytest.fixture
def catalog():
    return CATALOG


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "catalog.db"
    write_collections(path, CATALOG)
    return path


@pytest.fixture
def store(db_path):
    store = ComponentStore(db_path)
    yield store
    store.close()


@pytest.fixture
def compiler(store):
    return FilterCompiler(store, CompilerConfig(verbose_diagnostics=True))


@pytest.fixture
def corrupt_db_path(tmp_path):
    """Store whose processor collection holds a row that is not JSON."""
    path = tmp_path / "corrupt.db"
    write_collections(path, {"processor_productos": CATALOG["processor_productos"][:1]})
    conn = sqlite3.connect(path)
    conn.execute('INSERT INTO "processor_productos" (doc) VALUES (?)', ["{not json"])
    conn.commit()
    conn.close()
    return path
