"""Encode a JSON campaign description into the binary config format."""

from pathlib import Path
from typing import Optional

from rich.panel import Panel

from liquidip_toolkit.config.codec import encode_config
from liquidip_toolkit.config.encrypted_codec import encode_encrypted_config
from liquidip_toolkit.config.models import CampaignConfig, EncryptedCampaignConfig
from liquidip_toolkit.utils.file_utils import load_json
from liquidip_toolkit.utils.formatters import console


def encode_campaign_file(input_path: str) -> bytes:
    """
    Build config bytes from a JSON file.

    The JSON carries ``"variant": "public"`` (default) or ``"private"`` and
    the fields of the matching model.
    """
    data = load_json(input_path)
    variant = data.get("variant", "public")
    if variant == "public":
        return encode_config(CampaignConfig.from_dict(data))
    if variant == "private":
        return encode_encrypted_config(EncryptedCampaignConfig.from_dict(data))
    raise ValueError(f"Unknown config variant '{variant}', expected public or private")


def run(input_path: str, output_path: Optional[str] = None, as_hex: bool = False) -> bytes:
    console.print(Panel("Encoding Campaign Config", style="bold magenta"))
    encoded = encode_campaign_file(input_path)

    if output_path:
        target = Path(output_path)
        if as_hex:
            target.write_text("0x" + encoded.hex())
        else:
            target.write_bytes(encoded)
        console.print(f"[cyan]Wrote {len(encoded)} bytes to:[/cyan] {target}")
    else:
        console.print(f"[green]0x{encoded.hex()}[/green]")
    return encoded
