from liquidip_toolkit.utils.file_utils import (
    load_json,
    open_config_view,
    read_config_bytes,
)
from liquidip_toolkit.utils.formatters import (
    console,
    format_duration,
    format_timestamp,
    save_json_output,
)

__all__ = [
    "console",
    "format_duration",
    "format_timestamp",
    "load_json",
    "open_config_view",
    "read_config_bytes",
    "save_json_output",
]
