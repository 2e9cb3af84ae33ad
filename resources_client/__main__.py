"""
Demo: run one full CRUD cycle against a running resources service.

    python -m resources_client [base_url]
"""
import sys
from decimal import Decimal
import httpx
from loguru import logger
from resources_client.client import DEFAULT_BASE_URL, ResourceClient


def run(client: ResourceClient) -> int:
    fan = {"id": 1, "name": "ElectricFan", "quantity": 14, "price": Decimal("20.90")}

    steps = [
        ("create", lambda: client.create(fan)),
        ("get", lambda: client.get(1)),
        ("update", lambda: client.update(1, {**fan, "quantity": 15, "price": Decimal("29.80")})),
        ("list", lambda: client.list()),
        ("delete", lambda: client.delete(1)),
        ("list", lambda: client.list()),
        ("get", lambda: client.get(1)),
    ]
    for name, call in steps:
        result = call()
        logger.info(f"{name}: {result.status_code} {result.body}")
    return 0


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    base_url = argv[0] if argv else DEFAULT_BASE_URL
    with ResourceClient(base_url) as client:
        try:
            return run(client)
        except httpx.RequestError:
            logger.error(f"Resources service unavailable at {base_url}")
            return 1


if __name__ == "__main__":
    sys.exit(main())
