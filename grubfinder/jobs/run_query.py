"""CLI job to resolve and enrich restaurants for one search."""

import argparse
import asyncio
import dataclasses
import json
import logging
from typing import List, Optional

from grubfinder.core.config import ConfigError, get_settings
from grubfinder.models import EnrichedRestaurant, SearchCriterion
from grubfinder.pipeline import GrubFinder

logger = logging.getLogger(__name__)


def run_query_job(
    *,
    cuisine: str,
    city: str,
    sub_cuisine: Optional[str] = None,
    strategy: Optional[str] = None,
    eager_images: bool = False,
) -> List[EnrichedRestaurant]:
    if not cuisine.strip() or not city.strip():
        raise ValueError("cuisine and city are required")

    settings = get_settings()
    overrides = {}
    if strategy:
        overrides["resolver_strategy"] = strategy
    if eager_images:
        overrides["image_mode"] = "eager"
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    finder = GrubFinder(settings)
    if sub_cuisine is not None:
        sub_cuisine = sub_cuisine.strip()
    criterion = SearchCriterion(cuisine=cuisine.strip(), sub_cuisine=sub_cuisine, city=city.strip())
    restaurants = asyncio.run(finder.resolve_and_enrich(criterion))
    logger.info("Completed search: %d restaurants", len(restaurants))
    return restaurants


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find restaurants and enrich them with ambiance descriptions")
    parser.add_argument("--cuisine", dest="cuisine", required=True, help="Cuisine type, e.g. Italian")
    parser.add_argument("--city", dest="city", required=True, help="City to search in")
    parser.add_argument(
        "--sub-cuisine",
        dest="sub_cuisine",
        default=None,
        help="Sub-cuisine; an empty value means any, omitting it means no preference",
    )
    parser.add_argument(
        "--strategy",
        dest="strategy",
        choices=("generative", "lookup"),
        default=None,
        help="Override RESOLVER_STRATEGY",
    )
    parser.add_argument("--images", dest="eager_images", action="store_true", help="Generate images eagerly")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    try:
        restaurants = run_query_job(
            cuisine=args.cuisine,
            city=args.city,
            sub_cuisine=args.sub_cuisine,
            strategy=args.strategy,
            eager_images=args.eager_images,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        raise SystemExit(2) from exc

    if not restaurants:
        logger.warning("No restaurants found for %s in %s", args.cuisine, args.city)
    print(json.dumps([restaurant.to_dict() for restaurant in restaurants], indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
