"""Typer CLI entrypoint."""

from __future__ import annotations

import os

import typer

from pedalctl.core.builder import KINDS
from pedalctl.core.errors import PedalctlError
from pedalctl.core.logs import configure_logging
from pedalctl.core.model import FirmwareInfo
from pedalctl.core.service import PedalService

app = typer.Typer(help="Configure programmable USB foot pedals")

_OUTPUT = {"color": True}


def _style(text: str, **styles: object) -> str:
    if not _OUTPUT["color"]:
        return text
    return typer.style(text, **styles)


def _echo(message: str = "", *, err: bool = False) -> None:
    typer.echo(message, err=err, color=None if _OUTPUT["color"] else False)


def _fail(exc: PedalctlError) -> typer.Exit:
    _echo(f"{_style('Error:', fg=typer.colors.RED, bold=True)} {exc}", err=True)
    return typer.Exit(code=1)


def _build_service() -> PedalService:
    service = PedalService()
    for warning in getattr(service, "load_warnings", ()):
        _echo(f"{_style('Warning:', fg=typer.colors.YELLOW)} {warning}", err=True)
    return service


def _firmware_text(firmware: FirmwareInfo | None) -> str:
    if firmware is None:
        return "firmware unknown"
    return f"firmware {firmware.model} {firmware.version}"


@app.callback()
def main(
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase log output (-v debug, -vv trace)"
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Configure programmable USB foot pedals."""
    configure_logging(verbose)
    _OUTPUT["color"] = not no_color and "NO_COLOR" not in os.environ


@app.command("list")
def list_devices() -> None:
    """List connected pedal devices."""
    try:
        service = _build_service()
        devices = service.list_devices()
        if not devices:
            _echo("No pedal devices found")
            return

        for summary in devices:
            descriptor = summary.descriptor
            _echo(
                f"{_style(f'[{summary.index}]', bold=True)} {descriptor.name} "
                f"({descriptor.usb_id_text}) {_firmware_text(summary.firmware)}"
            )
            _echo(f"    {descriptor.pedal_count} pedal(s): {', '.join(descriptor.pedal_names)}")
    except PedalctlError as exc:
        raise _fail(exc) from None


@app.command("models")
def list_models() -> None:
    """List supported device models."""
    try:
        service = _build_service()
        for descriptor in service.list_models():
            names = ", ".join(descriptor.pedal_names)
            _echo(
                f"{descriptor.usb_id_text} {_style(descriptor.name, bold=True)} "
                f"[{descriptor.id}] {descriptor.pedal_count} pedal(s): {names}"
            )
    except PedalctlError as exc:
        raise _fail(exc) from None


@app.command("show")
def show(device_index: int = typer.Argument(..., help="Device index from 'pedalctl list'")) -> None:
    """Show the configuration stored on every pedal of a device."""
    try:
        service = _build_service()
        report = service.show(device_index)
        _echo(
            f"{_style(f'Device {report.index}:', bold=True)} {report.descriptor.name} "
            f"({report.descriptor.usb_id_text})"
        )
        firmware = report.firmware or FirmwareInfo(model="unknown", version="unknown")
        _echo(f"Firmware: {firmware.model}")
        _echo(f"Version: {firmware.version}")
        for pedal in report.pedals:
            _echo(f"[{pedal.slot + 1}] {pedal.name}: {pedal.configuration.describe()}")
    except PedalctlError as exc:
        raise _fail(exc) from None


@app.command("set", context_settings={"ignore_unknown_options": True})
def set_pedal(
    device_index: int = typer.Argument(..., help="Device index from 'pedalctl list'"),
    pedal: str = typer.Argument(..., help="Pedal number (1-based) or name, e.g. 'left'"),
    kind: str = typer.Argument(..., help=f"One of: {', '.join(KINDS)}"),
    args: list[str] | None = typer.Argument(None, help="Arguments for KIND"),
    once: bool = typer.Option(False, "--once", help="Fire once per press instead of repeating (keyboard only)"),
    invert: bool = typer.Option(False, "--invert", help="Trigger on release instead of press"),
) -> None:
    """Configure one pedal.

    \b
    Examples:
      pedalctl set 0 left keyboard ctrl+c
      pedalctl set 0 2 axis 10 -5 0
      pedalctl set 0 right text "Hello"
      pedalctl set 0 middle media play-pause
      pedalctl set 0 left keyboard space --once
      pedalctl set 0 right none
    """
    try:
        service = _build_service()
        result = service.set_pedal(
            device_index,
            pedal,
            kind,
            args or [],
            once=once,
            invert=invert,
        )
        _echo(
            f"Set [{result.slot + 1}] {result.pedal_name} on device {result.index} "
            f"to {result.requested.describe()}"
        )
        if not result.verified:
            _echo(
                f"{_style('Warning:', fg=typer.colors.YELLOW)} device reports "
                f"{result.confirmed.describe()}",
                err=True,
            )
    except PedalctlError as exc:
        raise _fail(exc) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
