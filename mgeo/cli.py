#!/usr/bin/env python3
"""
CLI entry point for the mgeo geolocation backend.

Defines the following commands:
  mgeo serve [--settings FILE] [--host 127.0.0.1] [--port 8000]
  mgeo locate [--wifi BSSID,SIGNAL ...] [--cell MCC,MNC,LAC,CID,SIGNAL[,RADIO] ...]
              [--settings FILE] [--timeout SECONDS] [--dry-run]
  mgeo version
"""

import sys
from argparse import ArgumentParser, ArgumentTypeError, Namespace
from importlib.metadata import PackageNotFoundError, version as _get_version

import uvicorn
from pydantic import ValidationError
from rich.console import Console

from mgeo.codec.encoder import RequestEncoder, decode_payload
from mgeo.engine.arbiter import Arbiter
from mgeo.engine.config import BackendConfig, SettingsFile
from mgeo.engine.reporter import LatestEstimateReporter
from mgeo.engine.types import MIN_WIFIS
from mgeo.server import create_app
from mgeo.transport.fetcher import HttpFetcher
from mgeo.utils.log import get_logger
from mgeo.utils.validate import CellObservation, RadioType, WifiObservation

logger = get_logger(__name__)
console = Console()


def parse_wifi(text: str) -> WifiObservation:
    """
    Parse `BSSID,SIGNAL`, e.g. `AA:BB:CC:DD:EE:FF,-50`.
    """
    try:
        bssid, signal = text.split(",")
        return WifiObservation(bssid=bssid.strip(), signal=int(signal))
    except (ValueError, ValidationError) as exc:
        raise ArgumentTypeError(f"invalid Wi-Fi observation {text!r}") from exc


def parse_cell(text: str) -> CellObservation:
    """
    Parse `MCC,MNC,LAC,CID,SIGNAL[,RADIO]`, e.g. `310,260,100,200,-85,LTE`.
    """
    parts = text.split(",")
    try:
        if len(parts) not in (5, 6):
            raise ValueError("expected 5 or 6 fields")
        mcc, mnc, lac, cid, signal = (int(p) for p in parts[:5])
        radio = RadioType(parts[5].strip().upper()) if len(parts) == 6 else RadioType.GSM
        return CellObservation(mcc=mcc, mnc=mnc, lac=lac, cid=cid, signal=signal, radio=radio)
    except (ValueError, ValidationError) as exc:
        raise ArgumentTypeError(f"invalid cell observation {text!r}") from exc


def serve(settings: str | None, host: str, port: int) -> None:
    """
    Spin up FastAPI+Uvicorn hosting one backend session.

    Parameters
    ----------
    settings
        Optional JSON settings file, re-read on every reload.
    host
        Interface to bind.
    port
        Port on which to serve HTTP.
    """
    logger.info("Serve: settings=%s, host=%s, port=%d", settings, host, port)
    app = create_app(settings)
    uvicorn.run(app, host=host, port=port)


def dry_run(cfg: BackendConfig, wifis: list[WifiObservation], cells: list[CellObservation]) -> None:
    """
    Print the lookup URLs the arbiter would request, with decoded records.
    """
    encoder = RequestEncoder(cfg.wifi_url, cfg.cell_url)
    lookups = []
    if cfg.use_wifis and len(wifis) >= MIN_WIFIS:
        lookups.append(encoder.encode_wifis(wifis))
    if cfg.use_cells and cells:
        lookups.append(encoder.encode_cells(cells))
    if not lookups:
        console.print("[yellow]not enough observations for a lookup[/yellow]")
    for req in lookups:
        console.print(f"[bold]{req.source}[/bold] {req.url}")
        for record in decode_payload(req.payload):
            console.print("  " + ",".join(record))


def locate(
    wifis: list[WifiObservation],
    cells: list[CellObservation],
    settings: str | None,
    timeout: float,
    show_only: bool,
) -> int:
    """
    Run one arbitrated lookup and print the estimate.

    Returns
    -------
    int
        Process exit code: 0 when a location was reported, 1 otherwise.
    """
    config_source = SettingsFile(settings).load if settings else BackendConfig.default
    cfg = config_source()
    if show_only:
        dry_run(cfg, wifis, cells)
        return 0

    fetcher = HttpFetcher(timeout_s=lambda: arbiter.config.timeout_s)
    reporter = LatestEstimateReporter()
    arbiter = Arbiter(fetcher, reporter, config_source=config_source)
    arbiter.start()
    try:
        # load both halves before the single trigger
        if cfg.use_wifis:
            arbiter.store.update_wifis(wifis)
        if cfg.use_cells:
            arbiter.store.update_cells(cells)
        if not arbiter.trigger():
            logger.warning("Not enough observations for a lookup")
            return 1
        if not arbiter.wait_idle(timeout):
            logger.warning("Lookup did not finish within %.1fs", timeout)
            return 1
    finally:
        arbiter.stop()
        fetcher.close()

    estimate = reporter.latest
    if estimate is None:
        console.print("[red]no location found[/red]")
        return 1
    console.print_json(estimate.model_dump_json())
    return 0


def version() -> None:
    """
    Print the installed mgeo package version.
    """
    try:
        ver = _get_version("mgeo")
    except PackageNotFoundError:
        ver = "unknown"
    logger.info("mgeo version %s", ver)


def parse_args(argv: list[str] | None = None) -> Namespace:
    """
    Parse command-line arguments and return the populated namespace.
    """
    parser = ArgumentParser(prog="mgeo")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # mgeo serve
    p = subparsers.add_parser("serve", help="Serve the backend via FastAPI + Uvicorn.")
    p.add_argument("--settings", type=str, help="JSON settings file.")
    p.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind.")
    p.add_argument(
        "--port", type=int, default=8000, help="Port number to serve on."
    )

    # mgeo locate
    p = subparsers.add_parser("locate", help="Resolve a position once.")
    p.add_argument(
        "--wifi", dest="wifis", type=parse_wifi, action="append", default=[],
        help="Visible access point as BSSID,SIGNAL (repeatable).",
    )
    p.add_argument(
        "--cell", dest="cells", type=parse_cell, action="append", default=[],
        help="Visible cell as MCC,MNC,LAC,CID,SIGNAL[,RADIO] (repeatable).",
    )
    p.add_argument("--settings", type=str, help="JSON settings file.")
    p.add_argument(
        "--timeout", type=float, default=30.0, help="Seconds to wait for the lookup."
    )
    p.add_argument(
        "--dry-run", action="store_true", help="Print the request URLs without fetching."
    )

    # mgeo version
    subparsers.add_parser("version", help="Show mgeo version and exit.")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """
    Entry point: dispatch to the selected subcommand.
    """
    args = parse_args(argv)
    match args.command:
        case "serve":
            serve(args.settings, args.host, args.port)
        case "locate":
            sys.exit(locate(args.wifis, args.cells, args.settings, args.timeout, args.dry_run))
        case "version":
            version()
        case _:
            sys.exit(1)


if __name__ == "__main__":
    main()
