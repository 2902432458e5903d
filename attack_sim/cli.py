#!/usr/bin/env python3
"""
Attack campaign simulator command line
======================================

    attack-sim generate-campaign --type ransomware --events 200 --targets 25
    attack-sim serve --port 8000
"""

import argparse
import asyncio
import json
import logging
import random
import sys
from typing import List, Optional

from .core.config import alert_index_for, settings
from .core.exceptions import DocumentSinkError, SimulationError
from .models.event import TimestampConfig
from .services.content_generator import build_content_generator
from .services.document_sink import ElasticsearchSink, KibanaSpaces
from .services.simulation_engine import COMPLEXITY_LEVELS, AttackSimulationEngine
from .utils.generator_utils import parse_timestamp

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="attack-sim", description="Multi-stage attack campaign generator")
    sub = p.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate-campaign", help="Generate a correlated attack campaign")
    gen.add_argument("--type", dest="scenario_type", default="apt",
                     help="Scenario type: apt, ransomware, insider or supply_chain")
    gen.add_argument("--complexity", default="high", choices=COMPLEXITY_LEVELS)
    gen.add_argument("--targets", type=int, default=10, help="Number of synthetic target hosts")
    gen.add_argument("--events", type=int, default=50, help="Total events across all stages")
    gen.add_argument("--space", default="default", help="Kibana space")
    gen.add_argument("--no-mitre", dest="use_mitre", action="store_false", help="Skip MITRE technique tagging")
    gen.add_argument("--ai", action="store_true", help="Generate alert bodies with the configured LLM")
    gen.add_argument("--start-date", help="Override event window start (ISO 8601)")
    gen.add_argument("--end-date", help="Override event window end (ISO 8601)")
    gen.add_argument("--seed", type=int, default=None, help="Seed for reproducible campaigns")
    gen.add_argument("--no-index", dest="index", action="store_false", help="Do not write to Elasticsearch")
    gen.add_argument("--output", help="Write the generated events and summary to a JSON file")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")

    return p.parse_args(argv)


def _timestamp_override(args: argparse.Namespace) -> Optional[TimestampConfig]:
    if not args.start_date and not args.end_date:
        return None
    start, end = parse_timestamp(args.start_date), parse_timestamp(args.end_date)
    if start is None or end is None or start >= end:
        raise SystemExit("--start-date and --end-date must both be valid ISO timestamps with start before end")
    return TimestampConfig(start=start, end=end)


async def generate_campaign(args: argparse.Namespace) -> int:
    rng = random.Random(args.seed)
    generator = build_content_generator(settings, rng, use_ai=args.ai)
    engine = AttackSimulationEngine(generator=generator, rng=rng, settings=settings)

    try:
        simulation = engine.generate_attack_simulation(args.scenario_type, args.complexity)
    except SimulationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2

    campaign = simulation.campaign
    print(f"🎯 {campaign.name} ({campaign.type.value}) by {campaign.threat_actor}")
    for index, stage in enumerate(simulation.stages, start=1):
        print(f"  {index}. {stage.name:28} {stage.start_time:%Y-%m-%d %H:%M} -> {stage.end_time:%Y-%m-%d %H:%M}"
              f"  [{', '.join(stage.techniques)}]")

    result = await engine.generate_campaign_events(
        simulation,
        target_count=args.targets,
        event_count=args.events,
        space=args.space,
        use_mitre=args.use_mitre,
        timestamp_config=_timestamp_override(args),
    )
    summary = result.summary
    print(f"✅ Generated {summary.generated}/{summary.requested} events ({summary.failed} failed)")
    for correlation in summary.correlations:
        print(f"🔗 {correlation.rule_name}: {correlation.matched_events} events, "
              f"confidence {correlation.confidence_score:.2f}")
    print(f"📊 Campaign success score: {summary.success_score}%")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(
                {
                    "simulation": simulation.model_dump(mode="json"),
                    "summary": summary.model_dump(),
                    "events": result.events,
                },
                f,
                indent=2,
            )
        print(f"💾 Wrote {len(result)} events to {args.output}")

    if args.index and result.events:
        index = alert_index_for(args.space)
        sink = ElasticsearchSink.from_settings(settings)
        try:
            await KibanaSpaces.from_settings(settings).ensure_space_async(args.space)
            await sink.ensure_index_async(index)
            stats = await sink.bulk_index_async(index, result.events)
        except DocumentSinkError as e:
            print(f"❌ Indexing failed: {e}", file=sys.stderr)
            return 1
        finally:
            sink.client.close()
        print(f"📤 Indexed {stats['indexed']} events into {index} ({stats['errors']} errors)")

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("attack_sim.main:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    return asyncio.run(generate_campaign(args))


if __name__ == "__main__":
    sys.exit(main())
