"""CLI entrypoint for the Montréal roadworks proximity tools."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from roadworks.background.locations import JsonLocationStore
from roadworks.background.notifier import LoggingNotifier
from roadworks.background.scheduler import IntervalScheduler
from roadworks.background.service import SweepService
from roadworks.common.config_loader import RoadworksConfig, load_config
from roadworks.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS
from roadworks.common.errors import RoadworksError
from roadworks.common.http import HttpClient
from roadworks.common.ids import generate_run_id
from roadworks.common.logging import build_logger, log_event
from roadworks.common.models import LatLon
from roadworks.harvest.runner import fetch_route_or_none, fetch_snapshot
from roadworks.pipeline.export import write_route_geojson
from roadworks.pipeline.proximity import clamp_threshold
from roadworks.pipeline.render import STATUS_OK, RenderSession


def parse_lat_lon(value: str) -> LatLon:
    try:
        lat_text, lon_text = value.split(",")
        point = LatLon(float(lat_text), float(lon_text))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}") from exc
    if not (-90 <= point.lat <= 90 and -180 <= point.lon <= 180):
        raise argparse.ArgumentTypeError(f"coordinates out of range: {value!r}")
    return point


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--from", dest="origin", type=parse_lat_lon, default=None, help="route start as LAT,LON")
    parser.add_argument("--to", dest="destination", type=parse_lat_lon, default=None, help="route end as LAT,LON")
    parser.add_argument("--threshold", type=float, default=None, help="metres from the route")
    parser.add_argument("--label", default=None)
    parser.add_argument("--lat", type=float, default=None)
    parser.add_argument("--lon", type=float, default=None)
    parser.add_argument("--id", dest="location_id", default=None)
    return parser.parse_args(argv)


def _store(config: RoadworksConfig, data_dir: Path) -> JsonLocationStore:
    locations_path, _ledger_path = config.storage.resolve(data_dir)
    return JsonLocationStore(locations_path)


def _sweep_service(config: RoadworksConfig, client: HttpClient, data_dir: Path, logger: logging.Logger, run_id: str):
    _locations_path, ledger_path = config.storage.resolve(data_dir)
    return SweepService(
        config,
        client=client,
        store=_store(config, data_dir),
        notifier=LoggingNotifier(logger, run_id=run_id),
        ledger_path=ledger_path,
        data_dir=data_dir,
        logger=logger,
    )


def run_near_route(args, config: RoadworksConfig, data_dir: Path, logger: logging.Logger, run_id: str) -> int:
    if args.origin is None or args.destination is None:
        raise RoadworksError("near-route needs both --from and --to")
    threshold = args.threshold if args.threshold is not None else config.proximity.default_threshold_m
    threshold = clamp_threshold(
        threshold,
        minimum=config.proximity.threshold_min_m,
        maximum=config.proximity.threshold_max_m,
    )

    session = RenderSession(config.classification)
    request_id = session.begin_request()
    with HttpClient(timeout=config.timeout, retry=config.retry, logger=logger) as client:
        snapshot = fetch_snapshot(config, client, logger=logger, run_id=run_id)
        route = fetch_route_or_none(config, client, args.origin, args.destination, logger=logger, run_id=run_id)
    session.complete(request_id, snapshot, route, threshold)

    view = session.view
    out_path = write_route_geojson(data_dir, view)
    log_event(
        logger,
        "nothing near route yet" if not view.markers else f"route view written to {out_path}",
        run_id=run_id,
        stage="near-route",
        event="VIEW_WRITTEN",
        status=view.status,
        rows_out=len(view.markers),
    )
    if view.status != STATUS_OK or not snapshot.complete:
        return EXIT_PARTIAL
    return EXIT_SUCCESS


def run_locations(args, config: RoadworksConfig, data_dir: Path) -> int:
    store = _store(config, data_dir)
    if args.command == "add-location":
        if args.label is None or args.lat is None or args.lon is None:
            raise RoadworksError("add-location needs --label, --lat and --lon")
        print(store.create(args.label, (args.lon, args.lat)))
        return EXIT_SUCCESS
    if args.command == "list-locations":
        for location in store.list():
            print(json.dumps({"id": location.id, "label": location.label, "lat": location.point.lat,
                              "lon": location.point.lon}, ensure_ascii=False))
        return EXIT_SUCCESS
    if args.location_id is None:
        raise RoadworksError(f"{args.command} needs --id")
    if args.command == "rename-location":
        if args.label is None:
            raise RoadworksError("rename-location needs --label")
        changed = store.update(args.location_id, args.label)
    else:
        changed = store.delete(args.location_id)
    return EXIT_SUCCESS if changed else EXIT_PARTIAL


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    config = load_config(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
    log_event(logger, "command start", run_id=run_id, stage=args.command, event="COMMAND_START", status="ok")

    if args.command == "near-route":
        return run_near_route(args, config, data_dir, logger, run_id)

    if args.command in ("add-location", "list-locations", "rename-location", "remove-location"):
        return run_locations(args, config, data_dir)

    with HttpClient(timeout=config.timeout, retry=config.retry, logger=logger) as client:
        service = _sweep_service(config, client, data_dir, logger, run_id)
        if args.command == "sweep":
            outcome = service.run_sweep()
            return EXIT_PARTIAL if outcome.failed_sources else EXIT_SUCCESS

        scheduler = IntervalScheduler(config.sweep.interval_seconds, service.run_sweep, logger=logger)
        try:
            scheduler.run_forever()
        except KeyboardInterrupt:
            scheduler.stop()
        return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except RoadworksError as exc:
        print(f"{exc.error_code}: {exc}", file=sys.stderr)
        return EXIT_HARD_FAIL
    except Exception as exc:
        print(f"UNEXPECTED_ERROR: {exc}", file=sys.stderr)
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
