#!/usr/bin/env python3
"""
World Facts Harvester Orchestrator

Builds the registries of sovereign states, territories and their facts from
public reference pages, in dependency order, persisting each one so that a
later run only fetches what is missing. This is the main entry point.
"""

import argparse
import os
import sys
import time
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from pydantic import BaseModel

from builders.calling_codes import build_calling_codes
from builders.capitals import Capital, build_capitals
from builders.currencies import Currency, build_currencies
from builders.flags import Flag, build_emojis, build_flags
from builders.languages import Language, attach_language_zones, build_languages
from builders.regions import Region, build_regions
from builders.sovereign_states import SovereignState, build_sovereign_states, check_un_member_count, un_member_states
from builders.un_members import UNMember, build_un_members
from exporters.xlsx_exporter import create_excel_workbook
from scrapers import fetcher
from utils.config import Config, load_config
from utils.exceptions import BuilderError, HarvestError
from utils.logger import get_logger, log_stage, setup_logger
from utils.registry_store import load_alias_table, load_registry, save_registry
from utils.task_pool import TaskPoolError

# Module-level logger
logger = get_logger(__name__)

# Failures a builder may raise that end its stage
STAGE_ERRORS = (HarvestError, TaskPoolError, OSError)


def run_stage(
    name: str,
    build: Callable[[], Dict[str, Any]],
    output_dir: str,
    model: Optional[Type[BaseModel]] = None,
    refresh: bool = False,
    dry_run: bool = False,
    reuse: bool = True
) -> Mapping[str, Any]:
    """
    Load a persisted registry or build it.

    A non-empty persisted registry is trusted and its document is not
    fetched. A freshly built registry is persisted unless this is a dry run;
    a failed build persists nothing.

    Args:
        name: Stage name, also the registry file stem
        build: Zero-argument builder
        output_dir: Registry directory
        model: Entity model of the registry values (None for strings)
        refresh: Ignore persisted registries
        dry_run: Do not write registries
        reuse: Load a non-empty persisted registry instead of building

    Returns:
        Read-only registry

    Raises:
        BuilderError: the builder failed
    """
    path = os.path.join(output_dir, f"{name}.json")

    if reuse and not refresh:
        persisted = load_registry(path, model)
        if persisted:
            logger.info(f"Using {len(persisted)} persisted {name} from {path}")
            return MappingProxyType(persisted)

    with log_stage(name):
        try:
            registry = build()
        except BuilderError:
            raise
        except STAGE_ERRORS as e:
            raise BuilderError(name, e) from e

    if not dry_run:
        save_registry(registry, path)

    return MappingProxyType(registry)


def require(name: str, upstream: str, registry: Mapping[str, Any]) -> None:
    """Refuse to build on top of an empty reference registry."""
    if not registry:
        raise BuilderError(name, HarvestError(f"Reference registry '{upstream}' is empty"))


def fetch_un_members(
    config: Config,
    aliases: Dict[str, List[str]],
    refresh: bool,
    dry_run: bool
) -> List[UNMember]:
    """
    UN members are only a hint for identifiers and membership checks; any
    failure leaves the pipeline running with an empty list.
    """
    def build():
        members = build_un_members(fetcher.fetch_document(config.sources.un_members), aliases)
        return {m.name: m for m in members}

    try:
        registry = run_stage("un_members", build, config.paths.output_dir, UNMember, refresh, dry_run)
    except BuilderError as e:
        logger.error(f"Continuing without UN member states: {e}")
        return []

    return list(registry.values())


def run_pipeline(
    config: Config,
    refresh: bool = False,
    skip_flags: bool = False,
    dry_run: bool = False
) -> Dict[str, Mapping[str, Any]]:
    """
    Build every registry in dependency order.

    Args:
        config: Application configuration
        refresh: Rebuild even when persisted registries exist
        skip_flags: Do not acquire flag images
        dry_run: Build without writing registries

    Returns:
        Registry name to read-only registry, in build order

    Raises:
        BuilderError: a stage failed
        ConfigError: the seed alias table is invalid
    """
    fetcher.configure(config.scraping)
    aliases = load_alias_table(config.paths.seed_countries)
    output_dir = config.paths.output_dir
    sources = config.sources

    def stage(name, build, model=None):
        return run_stage(name, build, output_dir, model, refresh, dry_run)

    registries: Dict[str, Mapping[str, Any]] = {}

    un_members = fetch_un_members(config, aliases, refresh, dry_run)
    registries['un_members'] = MappingProxyType({m.name: m for m in un_members})

    states = stage(
        'sovereign_states',
        lambda: build_sovereign_states(fetcher.fetch_document(sources.sovereign_states), un_members, aliases),
        SovereignState
    )
    registries['sovereign_states'] = states
    check_un_member_count(dict(states), un_members, config.pipeline.expected_un_members)

    reference_states = un_member_states(dict(states)) if config.pipeline.un_members_only else dict(states)
    require('regions', 'sovereign_states', reference_states)

    regions = stage(
        'regions',
        lambda: build_regions(fetcher.fetch_document(sources.iso_3166), reference_states),
        Region
    )
    registries['regions'] = regions

    if skip_flags:
        logger.info("Skipping flag images")
    else:
        flag_states = un_member_states(dict(states))
        require('flags', 'sovereign_states', flag_states)
        # Always rebuilt: the registry follows the images on disk
        registries['flags'] = run_stage(
            'flags',
            lambda: build_flags(
                lambda: fetcher.fetch_document(sources.flags),
                flag_states,
                config.paths.flags_dir,
                workers=config.flags.workers,
                attempts=config.flags.attempts,
                retry_delay=config.flags.retry_delay
            ),
            output_dir,
            Flag,
            refresh,
            dry_run,
            reuse=False
        )

    require('currencies', 'regions', regions)

    registries['currencies'] = stage(
        'currencies',
        lambda: build_currencies(fetcher.fetch_document(sources.currencies), regions, aliases),
        Currency
    )

    registries['emojis'] = stage(
        'emojis',
        lambda: build_emojis(fetcher.fetch_document(sources.emojis), regions)
    )

    registries['calling_codes'] = stage(
        'calling_codes',
        lambda: build_calling_codes(fetcher.fetch_document(sources.calling_codes), regions, aliases)
    )

    def languages():
        items = build_languages(fetcher.fetch_document(sources.language_codes))
        if not items:
            raise HarvestError("No languages found")
        attach_language_zones(fetcher.fetch_document(sources.language_zones), regions, items, aliases)
        return items

    registries['languages'] = stage('languages', languages, Language)

    registries['capitals'] = stage(
        'capitals',
        lambda: build_capitals(fetcher.fetch_document(sources.capitals), regions, aliases),
        Capital
    )

    return registries


def print_summary(registries: Mapping[str, Mapping[str, Any]], duration: float, output_dir: Optional[str]) -> None:
    """
    Print summary report at end of the run.

    Args:
        registries: Registry name to registry
        duration: Total duration in seconds
        output_dir: Where registries were written (None on a dry run)
    """
    minutes = int(duration // 60)
    seconds = int(duration % 60)

    print(f"\n{'='*60}")
    print(f"    World Facts Harvest Complete")
    print(f"{'='*60}")
    print(f"")
    print(f"Duration: {minutes}m {seconds}s")
    print(f"")

    for name, registry in registries.items():
        print(f"  {name.replace('_', ' ').title():<20} {len(registry):>6}")

    if output_dir:
        print(f"\nOutput: {output_dir}/")
    else:
        print(f"\nDry run: no registries written")

    print(f"{'='*60}\n")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='World Facts Harvester',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # Build missing registries
  python main.py --refresh                        # Rebuild everything
  python main.py --skip-flags --export-xlsx       # No flag images, export workbook
  python main.py --config config/other.yaml --dry-run
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config/config.yaml',
        help='Configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--refresh',
        action='store_true',
        help='Ignore persisted registries and fetch every document again'
    )

    parser.add_argument(
        '--skip-flags',
        action='store_true',
        help='Do not download flag images'
    )

    parser.add_argument(
        '--export-xlsx',
        action='store_true',
        help='Export the registries to XLSX after building'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Build without writing registries'
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    setup_logger(
        log_level=config.logging.log_level,
        log_to_file=config.logging.log_to_file,
        log_to_console=config.logging.log_to_console
    )

    try:
        start_time = time.time()
        registries = run_pipeline(
            config,
            refresh=args.refresh,
            skip_flags=args.skip_flags,
            dry_run=args.dry_run
        )

        if args.export_xlsx:
            if args.dry_run:
                logger.warning("Dry run: skipping XLSX export")
            else:
                create_excel_workbook(registries, config.paths.xlsx_output)
                print(f"Exported registries to {config.paths.xlsx_output}")

        print_summary(registries, time.time() - start_time, None if args.dry_run else config.paths.output_dir)

    except KeyboardInterrupt:
        print("\nOperation interrupted by user.")
        sys.exit(130)
    except HarvestError as e:
        logger.error(f"Fatal error: {e}")
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
