"""Query the patent registry for the status backing a license token."""

from typing import Any, Dict, Optional

from rich.panel import Panel

from liquidip_toolkit.patents.registry import PatentRegistryService, PatentStatus
from liquidip_toolkit.utils.formatters import console, format_address

_STATUS_STYLE = {
    PatentStatus.VALID: "green",
    PatentStatus.INVALID: "red",
    PatentStatus.UNDER_ATTACK: "yellow",
    PatentStatus.UNKNOWN: "dim",
}


def run(
    chain_id: int, patent_id: int, registry: Optional[str] = None
) -> Dict[str, Any]:
    console.print(Panel("Patent Status", style="bold magenta"))
    service = PatentRegistryService(chain_id, registry_address=registry)

    status = service.get_status(patent_id)
    owner = service.get_owner(patent_id)
    style = _STATUS_STYLE[status]
    console.print(f"Registry: {format_address(service.registry_address)}")
    console.print(f"Patent {patent_id}: [{style}]{status.name}[/{style}]")
    console.print(f"Owner: {owner}")
    return {"patent_id": patent_id, "status": status.name, "owner": owner}
