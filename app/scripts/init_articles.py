import argparse
import asyncio
import logging
import sys
from app.core.config import settings
from app.dependencies import build_services
from app.schemas.gnews import IngestionSummary
from app.services.gnews import run_init_articles

logger = logging.getLogger(__name__)


async def run(request_delay: float, analysis_delay: float) -> IngestionSummary:
    services = await build_services(settings)
    try:
        return await run_init_articles(
            services.store,
            services.gnews,
            services.extractor,
            services.adapters,
            request_delay=request_delay,
            analysis_delay=analysis_delay,
        )
    finally:
        await services.aclose()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Fetch GNews headlines and analyze one article per category")
    parser.add_argument("--request-delay", type=float, default=settings.gnews_request_delay)
    parser.add_argument("--analysis-delay", type=float, default=settings.analysis_delay)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        summary = asyncio.run(run(args.request_delay, args.analysis_delay))
    except Exception as e:
        logger.error(f"Ingestion script failed: {e}")
        return 1

    print(summary.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
