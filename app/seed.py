"""CLI job to seed the charger store with sample Singapore chargers."""

import argparse
import asyncio
import logging
import time
from typing import List, Optional

from app.config import configure_logging, get_settings
from app.database import create_redis_client
from app.models.charging import Charger, Coordinates
from app.services.ingestion import ChargerIngestionService, IngestionResult

logger = logging.getLogger(__name__)

# id, name, (lat, lng), address, powerKW, pricePerKWh, amenities, minutes since update
SAMPLE_CHARGERS = [
    ("sg-001", "Suntec City Carpark B1", (1.2931, 103.8572),
     "3 Temasek Blvd, Singapore 038983", 60, 0.5, ["Mall", "Toilets", "Food Court"], 5),
    ("sg-002", "ION Orchard L5 EV Bays", (1.304, 103.8318),
     "2 Orchard Turn, Singapore 238801", 150, 0.55, ["Mall", "Food", "ATM"], 2),
    ("sg-003", "Jewel Changi B2 Superchargers", (1.3603, 103.9894),
     "78 Airport Blvd, Singapore 819666", 250, 0.55, ["Mall", "Playground", "Attractions"], 12),
    ("sg-004", "Star Vista Basement Chargers", (1.3065, 103.7908),
     "1 Vista Exchange Green, Singapore 138617", 22, 0.45, ["Mall", "Cinema"], 24),
    ("sg-005", "Vivocity Rooftop EV", (1.2644, 103.8223),
     "1 HarbourFront Walk, Singapore 098585", 120, 0.52, ["Mall", "Sentosa Link"], 7),
    ("sg-006", "Marina Bay Sands Carpark", (1.2834, 103.8607),
     "10 Bayfront Ave, Singapore 018956", 43, 0.48, ["Hotel", "Mall"], 9),
    ("sg-007", "NTU North Hill Chargers", (1.3483, 103.6831),
     "50 Nanyang Ave, Singapore 639798", 50, 0.49, ["Campus", "Cafe"], 30),
    ("sg-008", "Tuas West Road (Public Carpark)", (1.3397, 103.6384),
     "Tuas West Rd, Singapore", 60, 0.47, ["Restrooms"], 45),
    ("sg-009", "Paya Lebar Quarter B3", (1.317, 103.8925),
     "10 Paya Lebar Rd, Singapore 409057", 90, 0.51, ["Mall"], 14),
    ("sg-010", "Westgate Carpark", (1.3347, 103.742),
     "3 Gateway Dr, Singapore 608532", 22, 0.44, ["Mall"], 18),
]


def sample_chargers(now_ms: Optional[int] = None) -> List[Charger]:
    """Build the sample set with timestamps relative to now_ms."""
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return [
        Charger(
            id=charger_id,
            name=name,
            address=address,
            coords=Coordinates(lat=lat, lng=lng),
            power_kw=power,
            price_per_kwh=price,
            amenities=amenities,
            updated_at=now_ms - minutes * 60 * 1000,
        )
        for charger_id, name, (lat, lng), address, power, price, amenities, minutes
        in SAMPLE_CHARGERS
    ]


async def seed(service: ChargerIngestionService, now_ms: Optional[int] = None) -> IngestionResult:
    return await service.upsert_many(sample_chargers(now_ms))


async def run_seed_job() -> IngestionResult:
    settings = get_settings()
    client = create_redis_client(settings)
    try:
        logger.info("Seeding %d chargers into %s", len(SAMPLE_CHARGERS), settings.geo_key)
        return await seed(ChargerIngestionService.from_client(client, settings))
    finally:
        await client.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed Redis with sample EV chargers")
    parser.add_argument("--log-level", dest="log_level", help="Override LOG_LEVEL")
    return parser


def main() -> None:
    args = build_parser().parse_args()
    configure_logging(args.log_level)

    result = asyncio.run(run_seed_job())
    logger.info("Seeded chargers: %d written, %d skipped", len(result.written), len(result.skipped))


if __name__ == "__main__":
    main()
