"""Protocol loader for imported protocol files.

Reads the protocol definition (protocol.json, or protocol.yaml) from a
protocol's asset directory and validates it into a Protocol.
"""

import json
from pathlib import Path
from typing import Optional

import structlog
import yaml
from pydantic import ValidationError

from interviewer.core.exceptions import ProtocolSchemaError
from interviewer.domain.models.protocol import Protocol

log = structlog.get_logger(__name__)

PROTOCOL_FILES = ("protocol.json", "protocol.yaml", "protocol.yml")


def find_protocol_file(directory: Path) -> Optional[Path]:
    for name in PROTOCOL_FILES:
        path = directory / name
        if path.is_file():
            return path
    return None


def load_protocol(directory: Path, uid: Optional[str] = None) -> Protocol:
    """Load a protocol definition from its asset directory.

    Args:
        directory: Directory the import pipeline extracted the protocol to
        uid: Storage key of that directory (default: the directory name)

    Returns:
        Validated Protocol with uid set to the storage key

    Raises:
        FileNotFoundError: No protocol file in the directory
        ProtocolSchemaError: The file is not valid JSON/YAML or fails validation
    """
    directory = Path(directory)
    path = find_protocol_file(directory)
    if path is None:
        raise FileNotFoundError(f"Protocol file not found in {directory}")

    try:
        with open(path) as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ProtocolSchemaError(f"Could not parse {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolSchemaError(f"{path.name} must contain a mapping")

    data["uid"] = uid or directory.name
    try:
        protocol = Protocol.model_validate(data)
    except ValidationError as e:
        raise ProtocolSchemaError(f"Invalid protocol {path.name}: {e}") from e

    log.info(
        "protocol_loaded",
        protocol_name=protocol.name,
        uid=protocol.uid,
        stages=len(protocol.stages),
    )
    return protocol
