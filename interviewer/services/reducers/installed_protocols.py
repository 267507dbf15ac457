"""
Installed protocols reducer.

Records are keyed by storage key. The key to write is decided by the
reconciler before InstallProtocolComplete is dispatched; the reducer
only refuses to leave two records with the same name behind.
"""

from typing import Dict

import structlog

from interviewer.domain.models.actions import DeleteProtocol, InstallProtocolComplete
from interviewer.domain.models.protocol import InstalledProtocol

log = structlog.get_logger(__name__)

InstalledProtocols = Dict[str, InstalledProtocol]


def installed_protocols_reducer(protocols: InstalledProtocols, action) -> InstalledProtocols:
    if isinstance(action, InstallProtocolComplete):
        record = InstalledProtocol.from_protocol(action.protocol, action.installed_at)
        # Drop any other record carrying the same name
        kept = {
            k: v
            for k, v in protocols.items()
            if k == action.key or v.name != record.name
        }
        return {**kept, action.key: record}

    if isinstance(action, DeleteProtocol):
        if action.protocol_uid not in protocols:
            return protocols
        return {k: v for k, v in protocols.items() if k != action.protocol_uid}

    return protocols
