"""Validate many config files and report every failure, not just the first."""

from typing import Sequence

from liquidip_toolkit.shared.exceptions import ConfigFormatError
from liquidip_toolkit.shared.results import Result, ValidationSummary
from liquidip_toolkit.utils.file_utils import open_config_view, read_config_bytes
from liquidip_toolkit.utils.formatters import console


def validate_file(config_path: str) -> Result:
    try:
        view = open_config_view(read_config_bytes(config_path)).validate()
    except ConfigFormatError as e:
        return Result.from_exception(
            "codec",
            e,
            {"file": config_path, "epoch": e.epoch, "position": e.position, "offset": e.offset},
        )
    except (OSError, ValueError) as e:
        return Result.from_exception("file", e, {"file": config_path})

    result = Result.ok(view)
    if view.num_epochs() > 1 and len(set(view.durations())) == 1:
        result.add_warning("codec", "all epochs share the same duration")
    return result


def validate_files(config_paths: Sequence[str]) -> ValidationSummary:
    summary = ValidationSummary()
    for path in config_paths:
        summary.record(path, validate_file(path))
    return summary


def run(config_paths: Sequence[str]) -> ValidationSummary:
    summary = validate_files(config_paths)
    for path, result in summary.results.items():
        if result.success:
            console.print(f"[green]OK[/green]      {path}")
        else:
            error = result.errors[0]
            console.print(
                f"[red]INVALID[/red] {path}: "
                f"{error.context.get('error_type')} - {error.message}"
            )
    console.print(
        f"\n{summary.valid_count} valid, {summary.invalid_count} invalid"
    )
    return summary
